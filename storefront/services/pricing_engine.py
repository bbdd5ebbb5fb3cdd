# storefront/services/pricing_engine.py

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas, crud
from ..crud import crud_product
from ..models import utcnow
from .discount_scopes import (
    CategoryScope, GeneralScope, ProductScope, UserGroupScope, matches, scope_of
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal(100)


class ProductNotFoundError(LookupError):
    """The referenced product does not exist."""


@dataclass(frozen=True)
class PricedProduct:
    product: models.Product
    pricing: schemas.PricingResult


def _as_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round to cents, halves away from zero."""
    return _as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _rank(discount: models.Discount):
    # Highest percentage first; ties go to the oldest rule, then the lowest id.
    return (
        -_as_decimal(discount.percentage),
        discount.created_at or datetime.max,
        discount.id if discount.id is not None else 0,
    )


def pick_best_discount(discounts: Iterable[models.Discount]) -> Optional[models.Discount]:
    return min(discounts, key=_rank, default=None)


def calculate_pricing(price, discount: Optional[models.Discount]) -> schemas.PricingResult:
    """
    Price a product under `discount` (or under no discount).

    The discounted price is rounded once from the exact product of price and
    percentage. The saved amount is the original price minus that rounded
    discounted price, so the two always add back up to the original.
    A 0% discount still counts as a discount.
    """
    original_price = _as_decimal(price)
    if discount is None:
        return schemas.PricingResult(
            original_price=original_price,
            discounted_price=original_price,
            has_discount=False,
        )

    percentage = _as_decimal(discount.percentage)
    discounted_price = round_money(original_price * (HUNDRED - percentage) / HUNDRED)
    return schemas.PricingResult(
        original_price=original_price,
        discounted_price=discounted_price,
        discount_percentage=percentage,
        discount=schemas.Discount.model_validate(discount),
        has_discount=True,
        saved_amount=round_money(original_price - discounted_price),
        discount_type=discount.type,
    )


class PricingEngine:
    """
    Resolves which discount applies to a product and prices it.

    Stateless apart from the request's database session.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Single product ---

    def get_applicable_discounts(
        self, product_id: int, user_id: Optional[int] = None, *, now: Optional[datetime] = None
    ) -> List[models.Discount]:
        """
        Every discount currently applicable to the product, best first.
        Raises ProductNotFoundError if the product does not exist.
        """
        product = self._get_product_or_raise(product_id)
        return self._find_applicable(product, user_id, now or utcnow())

    def get_best_discount(
        self, product_id: int, user_id: Optional[int] = None, *, now: Optional[datetime] = None
    ) -> Optional[models.Discount]:
        discounts = self.get_applicable_discounts(product_id, user_id, now=now)
        return discounts[0] if discounts else None

    def get_product_pricing(
        self, product_id: int, user_id: Optional[int] = None, *, now: Optional[datetime] = None
    ) -> schemas.PricingResult:
        product = self._get_product_or_raise(product_id)
        discounts = self._find_applicable(product, user_id, now or utcnow())
        return calculate_pricing(product.price, discounts[0] if discounts else None)

    # --- Catalog pages ---

    def get_bulk_pricing(
        self, products: List[models.Product], user_id: Optional[int] = None, *, now: Optional[datetime] = None
    ) -> List[PricedProduct]:
        """
        Price a whole list of already loaded products with one scope query
        (plus one user-group query when the user belongs to a group).

        Output order follows input order. If the user-group part fails, the
        products are still priced with the non-personalized discounts.
        """
        if not products:
            return []
        now = now or utcnow()

        pool = crud.discount.get_active_matching(
            self.db,
            scopes=[
                GeneralScope(),
                CategoryScope(frozenset(product.category for product in products)),
                ProductScope(frozenset(product.id for product in products)),
            ],
            now=now,
        )
        user_group, group_pool = self._get_user_group_pool(user_id, now)
        candidates = [(discount, scope_of(discount)) for discount in pool + group_pool]

        logger.debug(
            "Bulk pricing %d products against %d candidate discounts (user group: %s)",
            len(products), len(candidates), user_group,
        )

        priced = []
        for product in products:
            best = pick_best_discount(
                discount for discount, scope in candidates if matches(scope, product, user_group)
            )
            priced.append(PricedProduct(product=product, pricing=calculate_pricing(product.price, best)))
        return priced

    # --- Helpers ---

    def _get_product_or_raise(self, product_id: int) -> models.Product:
        product = crud_product.get_product(self.db, product_id=product_id)
        if product is None:
            raise ProductNotFoundError(f"Product with id {product_id} not found.")
        return product

    def _resolve_user_group(self, user_id: Optional[int]) -> Optional[str]:
        if user_id is None:
            return None
        db_user = crud.user.get(self.db, id=user_id)
        if db_user is not None and db_user.user_group:
            return db_user.user_group
        return None

    def _find_applicable(self, product: models.Product, user_id: Optional[int], now: datetime) -> List[models.Discount]:
        scopes = [
            GeneralScope(),
            CategoryScope(frozenset([product.category])),
            ProductScope(frozenset([product.id])),
        ]
        user_group = self._resolve_user_group(user_id)
        if user_group:
            scopes.append(UserGroupScope(user_group))

        discounts = crud.discount.get_active_matching(self.db, scopes=scopes, now=now)
        logger.debug("Product %s: %d applicable discounts", product.id, len(discounts))
        return discounts

    def _get_user_group_pool(
        self, user_id: Optional[int], now: datetime
    ) -> Tuple[Optional[str], List[models.Discount]]:
        if user_id is None:
            return None, []
        try:
            user_group = self._resolve_user_group(user_id)
            if not user_group:
                return None, []
            return user_group, crud.discount.get_active_for_user_group(self.db, user_group=user_group, now=now)
        except SQLAlchemyError:
            logger.warning(
                "Could not load user-group discounts for user %s; pricing without them", user_id, exc_info=True
            )
            return None, []
