# storefront/services/cart_service.py

import logging

from sqlalchemy.orm import Session

from .. import models, schemas, crud
from ..crud import crud_product
from .pricing_engine import PricingEngine, ProductNotFoundError, round_money

logger = logging.getLogger(__name__)


# Custom exceptions so the router can map them to HTTP errors.
class CartLogicError(ValueError): pass
class CartItemNotFoundError(LookupError): pass


class CartService:
    def __init__(self, db: Session):
        self.db = db
        self.pricing_engine = PricingEngine(db)

    def get_cart(self, *, user: models.User) -> schemas.CartResponse:
        """Reprice every line with the discounts valid right now and return the totals."""
        db_cart = crud.cart.get_by_user(self.db, user_id=user.id)
        if db_cart is None:
            return schemas.CartResponse()

        for db_item in db_cart.items:
            pricing = self.pricing_engine.get_product_pricing(db_item.product_id, user.id)
            crud.cart.apply_pricing(db_item, pricing)

        self.db.commit()
        return self._build_response(db_cart)

    def add_item(self, *, user: models.User, item_in: schemas.CartItemAdd) -> schemas.CartResponse:
        product = crud_product.get_product(self.db, product_id=item_in.product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(f"Product with id {item_in.product_id} not found.")

        db_cart = crud.cart.get_or_create(self.db, user_id=user.id)
        db_item = crud.cart.find_item_for_product(db_cart, product_id=product.id)
        current_quantity = db_item.quantity if db_item else 0
        requested_quantity = current_quantity + item_in.quantity
        if requested_quantity > product.stock:
            self.db.rollback()
            raise CartLogicError(
                f"Not enough stock. Available: {product.stock}, "
                f"max you can add: {max(product.stock - current_quantity, 0)}"
            )

        pricing = self.pricing_engine.get_product_pricing(product.id, user.id)
        if db_item is not None:
            db_item.quantity = requested_quantity
            crud.cart.apply_pricing(db_item, pricing)
        else:
            crud.cart.add_item(self.db, db_cart=db_cart, product=product, quantity=item_in.quantity, pricing=pricing)

        self.db.commit()
        self.db.refresh(db_cart)
        logger.info("User %s added %d x product %s to cart", user.id, item_in.quantity, product.id)
        return self._build_response(db_cart)

    def update_item(self, *, user: models.User, item_id: int, item_in: schemas.CartItemUpdate) -> schemas.CartResponse:
        db_cart = crud.cart.get_by_user(self.db, user_id=user.id)
        if db_cart is None:
            raise CartItemNotFoundError("Cart not found")
        db_item = crud.cart.find_item(db_cart, item_id=item_id)
        if db_item is None:
            raise CartItemNotFoundError("Item not found in cart")

        if item_in.quantity > db_item.product.stock:
            raise CartLogicError(f"Not enough stock. Available: {db_item.product.stock}")

        db_item.quantity = item_in.quantity
        crud.cart.apply_pricing(db_item, self.pricing_engine.get_product_pricing(db_item.product_id, user.id))
        self.db.commit()
        self.db.refresh(db_cart)
        return self._build_response(db_cart)

    def remove_item(self, *, user: models.User, item_id: int) -> schemas.CartResponse:
        db_cart = crud.cart.get_by_user(self.db, user_id=user.id)
        if db_cart is None:
            raise CartItemNotFoundError("Cart not found")
        db_item = crud.cart.find_item(db_cart, item_id=item_id)
        if db_item is None:
            raise CartItemNotFoundError("Item not found in cart")

        crud.cart.remove_item(self.db, db_cart=db_cart, db_item=db_item)
        self.db.commit()
        self.db.refresh(db_cart)
        return self._build_response(db_cart)

    def clear(self, *, user: models.User) -> schemas.CartResponse:
        db_cart = crud.cart.get_by_user(self.db, user_id=user.id)
        if db_cart is not None:
            crud.cart.clear(self.db, db_cart=db_cart)
            self.db.commit()
        return schemas.CartResponse()

    @staticmethod
    def _build_response(db_cart: models.Cart) -> schemas.CartResponse:
        items = []
        total_items = 0
        total_original = 0
        total_discounted = 0
        for db_item in db_cart.items:
            total_items += db_item.quantity
            total_original += db_item.original_price * db_item.quantity
            total_discounted += db_item.discounted_price * db_item.quantity
            items.append(schemas.CartItemResponse(
                id=db_item.id,
                product_id=db_item.product_id,
                product_name=db_item.product.name if db_item.product else None,
                quantity=db_item.quantity,
                original_price=db_item.original_price,
                discounted_price=db_item.discounted_price,
                discount_percentage=db_item.discount_percentage,
                discount_name=db_item.discount_name,
            ))

        total_price = round_money(total_discounted)
        return schemas.CartResponse(
            items=items,
            total_items=total_items,
            total_price=total_price,
            total_discount=round_money(total_original - total_discounted),
        )
