# storefront/routers/discounts.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas, auth, crud
from ..crud import crud_product
from ..database import get_db
from ..models import DiscountType
from ..services.pricing_engine import PricingEngine, ProductNotFoundError

logger = logging.getLogger(__name__)

# Reads are public; every write endpoint requires an admin.
router = APIRouter(
    prefix="/discounts",
    tags=["Discounts"],
)


def _get_discount_or_404(db: Session, discount_id: int) -> models.Discount:
    db_discount = crud.discount.get(db, id=discount_id)
    if db_discount is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Discount with id {discount_id} not found."
        )
    return db_discount


def _check_products_exist(db: Session, product_ids: Optional[List[int]]) -> None:
    if not product_ids:
        return
    found = {p.id for p in crud_product.get_products_by_ids(db, product_ids=product_ids)}
    missing = sorted(set(product_ids) - found)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown product ids: {missing}"
        )


@router.post("/", response_model=schemas.Discount, status_code=status.HTTP_201_CREATED)
def create_discount(
    discount_in: schemas.DiscountCreate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    """
    Create a discount rule.

    - **Protected**: admins only.
    - `active` is derived from `enabled` and the validity window when the rule is saved.
    """
    if discount_in.type == DiscountType.PRODUCT:
        _check_products_exist(db, discount_in.product_ids)

    new_discount = crud.discount.create(db=db, obj_in=discount_in)
    logger.info("Discount %s (%s, %s%%) created by user %s",
                new_discount.id, new_discount.type.value, new_discount.percentage, current_admin.id)
    return new_discount


@router.get("/", response_model=List[schemas.Discount])
def read_discounts(
    active: Optional[bool] = None,
    type: Optional[DiscountType] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    List discounts, newest first.

    `active=true` keeps rules in effect right now; `active=false` keeps the
    disabled, expired and not-yet-started ones.
    """
    return crud.discount.get_filtered(db, active=active, discount_type=type, skip=skip, limit=limit)


@router.get("/product/{product_id}", response_model=List[schemas.Discount])
def read_product_discounts(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(auth.get_optional_user),
):
    """Discounts that currently apply to a product, best first."""
    try:
        return PricingEngine(db).get_applicable_discounts(product_id, current_user.id if current_user else None)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{discount_id}", response_model=schemas.Discount)
def read_discount(discount_id: int, db: Session = Depends(get_db)):
    return _get_discount_or_404(db, discount_id)


@router.put("/{discount_id}", response_model=schemas.Discount)
def update_discount(
    discount_id: int,
    discount_in: schemas.DiscountUpdate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    """
    Update a discount (e.g. extend its end date or switch it off).

    - **Protected**: admins only.
    - `active` is recomputed on every update.
    """
    db_discount = _get_discount_or_404(db, discount_id)
    _check_products_exist(db, discount_in.product_ids)

    try:
        return crud.discount.update(db=db, db_obj=db_discount, obj_in=discount_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{discount_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    _get_discount_or_404(db, discount_id)
    crud.discount.remove(db=db, id=discount_id)
    logger.info("Discount %s deleted by user %s", discount_id, current_admin.id)
    return None
