# storefront/crud/crud_discount.py

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import and_, not_, or_
from sqlalchemy.orm import Session, selectinload

from .base import CRUDBase
from . import crud_product
from .. import models, schemas
from ..models import DiscountType, utcnow
from ..services.discount_scopes import (
    CategoryScope, GeneralScope, ProductScope, Scope, UserGroupScope
)


class CRUDDiscount(CRUDBase[models.Discount, schemas.DiscountCreate, schemas.DiscountUpdate]):

    # --- Persistence ---

    def create(self, db: Session, *, obj_in: schemas.DiscountCreate, now: Optional[datetime] = None) -> models.Discount:
        """
        Persist a new discount. Only the scope payload that belongs to the
        discount's type is stored, and `active` is derived before saving.
        """
        db_obj = self.model(**obj_in.model_dump(exclude={"product_ids", "categories"}))
        self._apply_scope_payload(db, db_obj, product_ids=obj_in.product_ids, categories=obj_in.categories)
        db_obj.refresh_active(now)

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: models.Discount,
        obj_in: Union[schemas.DiscountUpdate, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> models.Discount:
        """
        Update a discount in place. `active` is recomputed on every update,
        not only at creation. Raises ValueError when the result is inconsistent.
        """
        if isinstance(obj_in, dict):
            update_data = dict(obj_in)
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        product_ids = update_data.pop("product_ids", None)
        categories = update_data.pop("categories", None)

        # Validate the merged state before touching the row.
        merged = {field: update_data.get(field, getattr(db_obj, field))
                  for field in ("start_date", "end_date", "type", "user_group")}
        if merged["start_date"] > merged["end_date"]:
            raise ValueError("start_date must not be after end_date")
        if merged["type"] == DiscountType.USER_GROUP and not merged["user_group"]:
            raise ValueError("A userGroup discount requires a non-empty user_group")

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        self._apply_scope_payload(
            db,
            db_obj,
            product_ids=db_obj.product_ids if product_ids is None else product_ids,
            categories=db_obj.categories if categories is None else categories,
        )
        db_obj.refresh_active(now)

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def _apply_scope_payload(
        self, db: Session, db_obj: models.Discount, *, product_ids: Iterable[int], categories: Iterable[str]
    ) -> None:
        if db_obj.type == DiscountType.PRODUCT:
            db_obj.products = crud_product.get_products_by_ids(db, product_ids=list(product_ids))
        else:
            db_obj.products = []

        if db_obj.type == DiscountType.CATEGORY:
            # Reuse existing rows so unchanged names keep their primary key.
            existing = {link.name: link for link in db_obj.category_links}
            db_obj.category_links = [
                existing.get(name) or models.DiscountCategory(name=name)
                for name in dict.fromkeys(categories)
            ]
        else:
            db_obj.category_links = []

        if db_obj.type != DiscountType.USER_GROUP:
            db_obj.user_group = None

    # --- Queries ---

    def _active_clause(self, now: datetime):
        return and_(
            self.model.enabled.is_(True),
            self.model.start_date <= now,
            self.model.end_date >= now,
        )

    def _scope_clause(self, scope: Scope):
        """Translate a scope into its SQL filter."""
        if isinstance(scope, GeneralScope):
            return self.model.type == DiscountType.GENERAL
        if isinstance(scope, CategoryScope):
            return and_(
                self.model.type == DiscountType.CATEGORY,
                self.model.category_links.any(models.DiscountCategory.name.in_(sorted(scope.names))),
            )
        if isinstance(scope, ProductScope):
            return and_(
                self.model.type == DiscountType.PRODUCT,
                self.model.products.any(models.Product.id.in_(sorted(scope.ids))),
            )
        if isinstance(scope, UserGroupScope):
            return and_(
                self.model.type == DiscountType.USER_GROUP,
                self.model.user_group == scope.label,
            )
        raise TypeError(f"Unsupported scope: {scope!r}")

    def get_active_matching(
        self, db: Session, *, scopes: List[Scope], now: Optional[datetime] = None
    ) -> List[models.Discount]:
        """
        Every discount active at `now` whose scope matches any of `scopes`,
        best first: percentage descending, then oldest, then lowest id.
        """
        if not scopes:
            return []
        now = now or utcnow()
        return (
            db.query(self.model)
            .options(selectinload(self.model.products), selectinload(self.model.category_links))
            .filter(or_(*[self._scope_clause(scope) for scope in scopes]))
            .filter(self._active_clause(now))
            .order_by(self.model.percentage.desc(), self.model.created_at.asc(), self.model.id.asc())
            .all()
        )

    def get_active_for_user_group(
        self, db: Session, *, user_group: str, now: Optional[datetime] = None
    ) -> List[models.Discount]:
        return self.get_active_matching(db, scopes=[UserGroupScope(user_group)], now=now)

    def get_filtered(
        self,
        db: Session,
        *,
        active: Optional[bool] = None,
        discount_type: Optional[DiscountType] = None,
        now: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Discount]:
        """Admin/catalog listing, newest first."""
        now = now or utcnow()
        query = db.query(self.model).options(
            selectinload(self.model.products), selectinload(self.model.category_links)
        )
        if discount_type is not None:
            query = query.filter(self.model.type == discount_type)
        if active is True:
            query = query.filter(self._active_clause(now))
        elif active is False:
            query = query.filter(not_(self._active_clause(now)))
        return (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


discount = CRUDDiscount(models.Discount)
