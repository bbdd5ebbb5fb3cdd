# storefront/crud/crud_cart.py

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from .. import models, schemas


class CRUDCart:
    def get_by_user(self, db: Session, *, user_id: int) -> Optional[models.Cart]:
        """The user's cart with its items and their products loaded."""
        return (
            db.query(models.Cart)
            .filter(models.Cart.user_id == user_id)
            .options(selectinload(models.Cart.items).selectinload(models.CartItem.product))
            .first()
        )

    def get_or_create(self, db: Session, *, user_id: int) -> models.Cart:
        """Does not commit."""
        db_cart = self.get_by_user(db, user_id=user_id)
        if db_cart is None:
            db_cart = models.Cart(user_id=user_id, items=[])
            db.add(db_cart)
            db.flush()
        return db_cart

    def find_item(self, db_cart: models.Cart, *, item_id: int) -> Optional[models.CartItem]:
        return next((item for item in db_cart.items if item.id == item_id), None)

    def find_item_for_product(self, db_cart: models.Cart, *, product_id: int) -> Optional[models.CartItem]:
        return next((item for item in db_cart.items if item.product_id == product_id), None)

    def add_item(
        self, db: Session, *, db_cart: models.Cart, product: models.Product, quantity: int,
        pricing: schemas.PricingResult
    ) -> models.CartItem:
        """Append a new line to the cart. Does not commit."""
        db_item = models.CartItem(product_id=product.id, product=product, quantity=quantity)
        self.apply_pricing(db_item, pricing)
        db_cart.items.append(db_item)
        db.add(db_item)
        return db_item

    def apply_pricing(self, db_item: models.CartItem, pricing: schemas.PricingResult) -> models.CartItem:
        """Copy a pricing snapshot onto a cart line. Does not commit."""
        db_item.original_price = pricing.original_price
        db_item.discounted_price = pricing.discounted_price
        if pricing.has_discount:
            db_item.discount_percentage = pricing.discount_percentage
            db_item.discount_name = pricing.discount.name if pricing.discount else None
        else:
            db_item.discount_percentage = None
            db_item.discount_name = None
        return db_item

    def remove_item(self, db: Session, *, db_cart: models.Cart, db_item: models.CartItem) -> None:
        """Does not commit."""
        db_cart.items.remove(db_item)

    def clear(self, db: Session, *, db_cart: models.Cart) -> None:
        """Does not commit."""
        db_cart.items.clear()


cart = CRUDCart()
