"""
Discount scopes.

A discount applies to products through exactly one scope. The same four
variants describe both what a stored discount targets and what a pricing
request is looking for; the Discount store turns them into SQL filters and the
bulk pricing pass matches them in memory.
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional, Union

from .. import models
from ..models import DiscountType


@dataclass(frozen=True)
class GeneralScope:
    """Applies to every product."""


@dataclass(frozen=True)
class CategoryScope:
    names: FrozenSet[str]


@dataclass(frozen=True)
class ProductScope:
    ids: FrozenSet[int]


@dataclass(frozen=True)
class UserGroupScope:
    label: str


Scope = Union[GeneralScope, CategoryScope, ProductScope, UserGroupScope]


def scope_of(discount: models.Discount) -> Scope:
    """Read the scope a stored discount targets."""
    if discount.type == DiscountType.GENERAL:
        return GeneralScope()
    if discount.type == DiscountType.CATEGORY:
        return CategoryScope(frozenset(discount.categories))
    if discount.type == DiscountType.PRODUCT:
        return ProductScope(frozenset(discount.product_ids))
    if discount.type == DiscountType.USER_GROUP:
        return UserGroupScope(discount.user_group or "")
    raise ValueError(f"Unknown discount type: {discount.type!r}")


def matches(scope: Scope, product: models.Product, user_group: Optional[str] = None) -> bool:
    """
    Does a discount with this scope apply to `product` for a user in `user_group`?

    User-group scopes are checked against the group itself, so a discount for
    another cohort never leaks in even if it reached the candidate pool.
    """
    if isinstance(scope, GeneralScope):
        return True
    if isinstance(scope, CategoryScope):
        return product.category in scope.names
    if isinstance(scope, ProductScope):
        return product.id in scope.ids
    if isinstance(scope, UserGroupScope):
        return bool(user_group) and scope.label == user_group
    raise TypeError(f"Unsupported scope: {scope!r}")
