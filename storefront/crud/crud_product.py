# storefront/crud/crud_product.py

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas

# Each function does exactly one database operation.


def get_product(db: Session, product_id: int) -> models.Product | None:
    return db.query(models.Product).filter(models.Product.id == product_id).first()


def get_products_by_ids(db: Session, *, product_ids: List[int]) -> list[models.Product]:
    if not product_ids:
        return []
    return db.query(models.Product).filter(models.Product.id.in_(set(product_ids))).all()


def search_products(
    db: Session,
    *,
    query: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
) -> list[models.Product]:
    """
    Every active product matching the catalog filters, in id order.
    Not paginated; the catalog slices its page after pricing and sorting.
    """
    q = db.query(models.Product).filter(models.Product.is_active.is_(True))
    if query:
        pattern = f"%{query}%"
        q = q.filter(or_(models.Product.name.ilike(pattern), models.Product.description.ilike(pattern)))
    if category:
        q = q.filter(models.Product.category == category)
    if min_price is not None:
        q = q.filter(models.Product.price >= min_price)
    if max_price is not None:
        q = q.filter(models.Product.price <= max_price)
    return q.order_by(models.Product.id).all()


def create_product(db: Session, product: schemas.ProductCreate) -> models.Product:
    db_product = models.Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_product(db: Session, db_product: models.Product, product_update: schemas.ProductUpdate) -> models.Product:
    update_data = product_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_product, key, value)

    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def set_product_active(db: Session, db_product: models.Product, *, is_active: bool) -> models.Product:
    """Soft delete (is_active=False) or restore a product."""
    db_product.is_active = is_active
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product
