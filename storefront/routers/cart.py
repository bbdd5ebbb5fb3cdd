# storefront/routers/cart.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas, auth
from ..database import get_db
from ..services.cart_service import CartService, CartLogicError, CartItemNotFoundError
from ..services.pricing_engine import ProductNotFoundError

router = APIRouter(
    prefix="/cart",
    tags=["Cart"],
)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


@router.get("/", response_model=schemas.CartResponse)
def read_cart(
    service: CartService = Depends(get_cart_service),
    current_user: models.User = Depends(auth.get_current_user)
):
    """Current cart, repriced with the discounts valid now."""
    return service.get_cart(user=current_user)


@router.post("/add", response_model=schemas.CartResponse)
def add_to_cart(
    item_in: schemas.CartItemAdd,
    service: CartService = Depends(get_cart_service),
    current_user: models.User = Depends(auth.get_current_user)
):
    try:
        return service.add_item(user=current_user, item_in=item_in)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CartLogicError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/items/{item_id}", response_model=schemas.CartResponse)
def update_cart_item(
    item_id: int,
    item_in: schemas.CartItemUpdate,
    service: CartService = Depends(get_cart_service),
    current_user: models.User = Depends(auth.get_current_user)
):
    try:
        return service.update_item(user=current_user, item_id=item_id, item_in=item_in)
    except CartItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CartLogicError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/items/{item_id}", response_model=schemas.CartResponse)
def remove_cart_item(
    item_id: int,
    service: CartService = Depends(get_cart_service),
    current_user: models.User = Depends(auth.get_current_user)
):
    try:
        return service.remove_item(user=current_user, item_id=item_id)
    except CartItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/clear", response_model=schemas.CartResponse)
def clear_cart(
    service: CartService = Depends(get_cart_service),
    current_user: models.User = Depends(auth.get_current_user)
):
    return service.clear(user=current_user)
