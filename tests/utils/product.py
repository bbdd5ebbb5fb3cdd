# tests/utils/product.py

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from faker import Faker
from sqlalchemy.orm import Session

from storefront import crud
from storefront.crud import crud_product
from storefront.models import Discount, DiscountType, Product, utcnow
from storefront.schemas import DiscountCreate, ProductCreate

fake = Faker()


def create_random_product(
    db: Session,
    *,
    price: float = None,
    category: str = None,
    stock: int = None,
    is_active: bool = True,
) -> Product:
    """
    Create a product with random or given data in the test database.

    :param price: Custom price for the test.
    :param category: Custom category; a random, unlikely-to-collide one otherwise.
    :param stock: Custom stock quantity.
    :param is_active: Create the product soft-deleted when False.
    """
    if price is None:
        price = fake.pydecimal(left_digits=3, right_digits=2, positive=True, min_value=1)
    if category is None:
        category = f"cat-{fake.pystr(min_chars=8, max_chars=12)}"
    if stock is None:
        stock = fake.random_int(min=10, max=100)

    product_in = ProductCreate(
        name=fake.catch_phrase(),
        description=fake.sentence(),
        price=Decimal(str(price)),
        category=category,
        stock=stock,
    )
    product = crud_product.create_product(db=db, product=product_in)
    if not is_active:
        product = crud_product.set_product_active(db=db, db_product=product, is_active=False)
    return product


def create_discount(
    db: Session,
    *,
    type: DiscountType = DiscountType.GENERAL,
    percentage: float = 10,
    product_ids: Iterable[int] = (),
    categories: Iterable[str] = (),
    user_group: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    enabled: bool = True,
    name: Optional[str] = None,
) -> Discount:
    """
    Create a discount. By default it started yesterday and ends in a week,
    so it is active right now.
    """
    now = utcnow()
    discount_in = DiscountCreate(
        name=name or fake.catch_phrase(),
        percentage=Decimal(str(percentage)),
        type=type,
        product_ids=list(product_ids),
        categories=list(categories),
        user_group=user_group,
        start_date=start_date or now - timedelta(days=1),
        end_date=end_date or now + timedelta(days=7),
        enabled=enabled,
    )
    return crud.discount.create(db=db, obj_in=discount_in)
