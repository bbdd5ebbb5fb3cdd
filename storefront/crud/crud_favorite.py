# storefront/crud/crud_favorite.py

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from .. import models


def get_favorite(db: Session, *, user_id: int, product_id: int) -> Optional[models.Favorite]:
    return (
        db.query(models.Favorite)
        .filter(models.Favorite.user_id == user_id, models.Favorite.product_id == product_id)
        .first()
    )


def get_favorites_by_user(db: Session, *, user_id: int) -> list[models.Favorite]:
    """The user's favorites with their products loaded, oldest first."""
    return (
        db.query(models.Favorite)
        .options(joinedload(models.Favorite.product))
        .filter(models.Favorite.user_id == user_id)
        .order_by(models.Favorite.created_at, models.Favorite.id)
        .all()
    )


def add_favorite(db: Session, *, user_id: int, product_id: int) -> models.Favorite:
    db_favorite = models.Favorite(user_id=user_id, product_id=product_id)
    db.add(db_favorite)
    db.commit()
    db.refresh(db_favorite)
    return db_favorite


def remove_favorite(db: Session, *, db_favorite: models.Favorite) -> None:
    db.delete(db_favorite)
    db.commit()
