from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .models import DiscountType, UserRole


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # The database stores naive UTC datetimes.
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# --- Products ---

class ProductBase(BaseModel):
    name: str
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1)
    image_url: str | None = None
    stock: int = Field(0, ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: str | None = Field(None, min_length=1)
    image_url: str | None = None
    stock: int | None = Field(None, ge=0)


# Schema returned by the API (includes the ID).
class Product(ProductBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Users ---

class UserBase(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None


class UserCreate(UserBase):
    # bcrypt only looks at the first 72 bytes.
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole = UserRole.CUSTOMER
    user_group: str = "regular"


# Never return the password (or its hash).
class User(UserBase):
    id: int
    role: UserRole
    user_group: str

    model_config = ConfigDict(from_attributes=True)


# --- Authentication ---

class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: str | None = None


# --- Discounts ---

class DiscountBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    percentage: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    type: DiscountType
    product_ids: List[int] = []
    categories: List[str] = []
    user_group: Optional[str] = None
    start_date: datetime
    end_date: datetime
    enabled: bool = True

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class DiscountCreate(DiscountBase):
    @model_validator(mode="after")
    def check_scope_and_window(self) -> "DiscountCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.type == DiscountType.USER_GROUP and not self.user_group:
            raise ValueError("A userGroup discount requires a non-empty user_group")
        return self


class DiscountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    percentage: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    type: Optional[DiscountType] = None
    product_ids: Optional[List[int]] = None
    categories: Optional[List[str]] = None
    user_group: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    enabled: Optional[bool] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)

    @model_validator(mode="after")
    def check_window(self) -> "DiscountUpdate":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class Discount(DiscountBase):
    id: int
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Pricing ---

class PricingResult(BaseModel):
    """Priced view of a product. Built next to the product, never stored on it."""
    original_price: Decimal
    discounted_price: Decimal
    has_discount: bool
    discount_percentage: Optional[Decimal] = None
    saved_amount: Optional[Decimal] = None
    discount_type: Optional[DiscountType] = None
    discount: Optional[Discount] = None


class ProductWithPricing(Product, PricingResult):
    pass


# --- Cart ---

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0, description="Quantity must be greater than zero")


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0, description="Quantity must be greater than zero")


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str | None = None
    quantity: int
    original_price: Decimal
    discounted_price: Decimal
    discount_percentage: Optional[Decimal] = None
    discount_name: Optional[str] = None


class CartResponse(BaseModel):
    items: List[CartItemResponse] = []
    total_items: int = 0
    total_price: Decimal = Decimal("0.00")
    total_discount: Decimal = Decimal("0.00")


# --- Favorites ---

class FavoriteAdd(BaseModel):
    product_id: int


class Favorite(BaseModel):
    product_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FavoriteCheck(BaseModel):
    product_id: int
    is_favorite: bool


# --- Newsletter ---

class NewsletterSubscribe(BaseModel):
    email: EmailStr


class NewsletterSubscriber(BaseModel):
    id: int
    email: str
    user_id: int | None = None
    is_active: bool
    subscribed_at: datetime

    model_config = ConfigDict(from_attributes=True)
