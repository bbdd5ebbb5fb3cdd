# storefront/routers/favorites.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas, auth
from ..crud import crud_favorite, crud_product
from ..database import get_db
from ..services.pricing_engine import PricingEngine
from .products import to_product_with_pricing

# Every favorites endpoint belongs to the logged-in user.
router = APIRouter(
    prefix="/favorites",
    tags=["Favorites"],
)


@router.get("/", response_model=List[schemas.ProductWithPricing])
def read_favorites(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    """Favorite products still on sale, priced for the current user."""
    favorites = crud_favorite.get_favorites_by_user(db, user_id=current_user.id)
    products = [f.product for f in favorites if f.product.is_active]
    priced = PricingEngine(db).get_bulk_pricing(products, current_user.id)
    return [to_product_with_pricing(p) for p in priced]


@router.post("/add", response_model=schemas.Favorite, status_code=status.HTTP_201_CREATED)
def add_favorite(
    favorite_in: schemas.FavoriteAdd,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    db_product = crud_product.get_product(db, product_id=favorite_in.product_id)
    if db_product is None or not db_product.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if crud_favorite.get_favorite(db, user_id=current_user.id, product_id=db_product.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product already in favorites")
    return crud_favorite.add_favorite(db, user_id=current_user.id, product_id=db_product.id)


@router.delete("/remove/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    db_favorite = crud_favorite.get_favorite(db, user_id=current_user.id, product_id=product_id)
    if db_favorite is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favorite not found")
    crud_favorite.remove_favorite(db, db_favorite=db_favorite)
    return None


@router.get("/check/{product_id}", response_model=schemas.FavoriteCheck)
def check_favorite(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    db_favorite = crud_favorite.get_favorite(db, user_id=current_user.id, product_id=product_id)
    return schemas.FavoriteCheck(product_id=product_id, is_favorite=db_favorite is not None)
