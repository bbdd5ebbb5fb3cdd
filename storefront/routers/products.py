# storefront/routers/products.py

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, auth
from ..database import get_db
from ..crud import crud_product
from ..services.pricing_engine import PricingEngine, ProductNotFoundError, PricedProduct

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)


class SortBy(str, Enum):
    NAME = "name"
    PRICE = "price"
    NEWEST = "newest"
    DISCOUNT = "discount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def get_pricing_engine(db: Session = Depends(get_db)):
    return PricingEngine(db=db)


def to_product_with_pricing(priced: PricedProduct) -> schemas.ProductWithPricing:
    # The product row is left untouched; pricing fields live on the response only.
    return schemas.ProductWithPricing(
        **schemas.Product.model_validate(priced.product).model_dump(),
        **priced.pricing.model_dump(),
    )


def _sort_key(sort_by: SortBy):
    if sort_by == SortBy.PRICE:
        return lambda p: p.discounted_price
    if sort_by == SortBy.NEWEST:
        return lambda p: p.created_at
    if sort_by == SortBy.DISCOUNT:
        return lambda p: p.discount_percentage or Decimal(0)
    return lambda p: p.name.lower()


def _get_product_or_404(db: Session, product_id: int) -> models.Product:
    db_product = crud_product.get_product(db=db, product_id=product_id)
    if db_product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return db_product


@router.get("/", response_model=List[schemas.ProductWithPricing])
def read_products(
    query: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort_by: SortBy = SortBy.NAME,
    sort_order: SortOrder = SortOrder.ASC,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    db: Session = Depends(get_db),
    pricing_engine: PricingEngine = Depends(get_pricing_engine),
    current_user: Optional[models.User] = Depends(auth.get_optional_user),
):
    """
    Catalog listing. The whole filtered set is priced in one go (the number of
    discount queries does not grow with the number of products), sorted, and
    only then cut to the requested page.
    """
    products_from_db = crud_product.search_products(
        db, query=query, category=category, min_price=min_price, max_price=max_price
    )
    priced = pricing_engine.get_bulk_pricing(
        products_from_db, current_user.id if current_user else None
    )
    products = [to_product_with_pricing(p) for p in priced]
    products.sort(key=_sort_key(sort_by), reverse=sort_order == SortOrder.DESC)
    return products[skip:skip + limit]


@router.get("/{product_id}", response_model=schemas.ProductWithPricing)
def read_product(
    product_id: int,
    db: Session = Depends(get_db),
    pricing_engine: PricingEngine = Depends(get_pricing_engine),
    current_user: Optional[models.User] = Depends(auth.get_optional_user),
):
    db_product = _get_product_or_404(db, product_id)
    if not db_product.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    try:
        pricing = pricing_engine.get_product_pricing(db_product.id, current_user.id if current_user else None)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return to_product_with_pricing(PricedProduct(product=db_product, pricing=pricing))


@router.post("/", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product_endpoint(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    return crud_product.create_product(db=db, product=product)


@router.put("/{product_id}", response_model=schemas.Product)
def update_product_endpoint(
    product_id: int,
    product_update: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    db_product = _get_product_or_404(db, product_id)
    return crud_product.update_product(db=db, db_product=db_product, product_update=product_update)


@router.delete("/{product_id}", response_model=schemas.Product)
def delete_product_endpoint(
    product_id: int,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    """Soft delete: the product is deactivated, not removed."""
    db_product = _get_product_or_404(db, product_id)
    return crud_product.set_product_active(db=db, db_product=db_product, is_active=False)


@router.post("/{product_id}/restore", response_model=schemas.Product)
def restore_product_endpoint(
    product_id: int,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    db_product = _get_product_or_404(db, product_id)
    return crud_product.set_product_active(db=db, db_product=db_product, is_active=True)
