# storefront/models.py

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, DateTime,
    ForeignKey, Enum, Table, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    """Current UTC instant as a naive datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Enums ---

class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class DiscountType(str, enum.Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    USER_GROUP = "userGroup"
    GENERAL = "general"


# --- Users ---

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CUSTOMER)

    # Only this attribute takes part in discount eligibility.
    user_group = Column(String(100), nullable=False, default="regular")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    cart = relationship("Cart", back_populates="owner", uselist=False)


# --- Catalog ---

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    image_url = Column(String(1024))
    stock = Column(Integer, nullable=False, default=0)

    # Soft delete flag.
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


# --- Discounts ---

discount_products = Table(
    "discount_products",
    Base.metadata,
    Column("discount_id", Integer, ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)


class DiscountCategory(Base):
    __tablename__ = "discount_categories"

    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(100), primary_key=True, index=True)

    discount = relationship("Discount", back_populates="category_links")


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String)
    percentage = Column(Numeric(5, 2), nullable=False)
    type = Column(Enum(DiscountType), nullable=False, index=True)

    # Scope payload; which of these is meaningful depends on `type`.
    user_group = Column(String(100), index=True)
    products = relationship("Product", secondary=discount_products)
    category_links = relationship(
        "DiscountCategory", back_populates="discount", cascade="all, delete-orphan"
    )

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    # `enabled` is the administrative switch; `active` is derived from it and the window.
    enabled = Column(Boolean, nullable=False, default=True)
    active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def product_ids(self) -> list[int]:
        return [product.id for product in self.products]

    @property
    def categories(self) -> list[str]:
        return [link.name for link in self.category_links]

    def is_active_at(self, now: datetime) -> bool:
        return bool(self.enabled) and self.start_date <= now <= self.end_date

    def refresh_active(self, now: datetime | None = None) -> bool:
        """Recompute the derived `active` flag. Called on every persist."""
        self.active = self.is_active_at(now or utcnow())
        return self.active


# --- Cart ---

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # Pricing snapshot taken the last time the line was priced.
    original_price = Column(Numeric(10, 2), nullable=False)
    discounted_price = Column(Numeric(10, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2))
    discount_name = Column(String(255))
    added_at = Column(DateTime, nullable=False, default=utcnow)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")


# --- Favorites ---

class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_favorite_user_product"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    product = relationship("Product")


# --- Newsletter ---

class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    # Set when the address belongs to a registered user.
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    is_active = Column(Boolean, nullable=False, default=True)
    subscribed_at = Column(DateTime, nullable=False, default=utcnow)
