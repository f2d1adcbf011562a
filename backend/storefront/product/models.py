from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from storefront.core.settings import settings
from storefront.db.base import Base, TimestampMixin, utcnow
from storefront.db.query import Manager
from storefront.member.models import Member
from storefront.product.queries import CategoryQuerySet, ProductQuerySet, StockAlertQuerySet

"""
Models Product.

Rôle (fonctionnel) :
- Category : regroupement simple (nom + slug).
- Product : article du catalogue. Prix stocké en centimes (entier), stock entier >= 0.
- StockAlert : un membre demande à être prévenu du retour en stock d’un produit.

Propriétés calculées (Product) :
- price         : prix en Decimal (2 décimales).
- in_stock      : stock > 0.
- is_low_stock  : 0 < stock <= settings.LOW_STOCK_THRESHOLD.
- display_price : "12.50 EUR".

Contraintes :
- slug unique (Category, Product).
- 1 alerte max par (membre, produit).
- stock / price_cents jamais négatifs (validates + CheckConstraint).
"""


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(140), nullable=False, unique=True, index=True)

    objects = Manager(CategoryQuerySet)

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=lambda: settings.DEFAULT_CURRENCY)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    category: Mapped[Optional[Category]] = relationship(Category, lazy="joined")

    objects = Manager(ProductQuerySet)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_positive"),
        CheckConstraint("price_cents >= 0", name="ck_products_price_positive"),
        Index("ix_products_published_price", "is_published", "price_cents"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.slug}>"

    @validates("stock", "price_cents")
    def _validate_non_negative(self, key: str, value: int) -> int:
        if value is not None and value < 0:
            raise ValueError(f"{key} ne peut pas être négatif")
        return value

    @property
    def price(self) -> Decimal:
        return (Decimal(self.price_cents or 0) / 100).quantize(Decimal("0.01"))

    @property
    def in_stock(self) -> bool:
        return (self.stock or 0) > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < (self.stock or 0) <= settings.LOW_STOCK_THRESHOLD

    @property
    def display_price(self) -> str:
        return f"{self.price:.2f} {self.currency}"


class StockAlert(Base):
    __tablename__ = "stock_alerts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    member: Mapped[Member] = relationship(Member, lazy="joined")
    product: Mapped[Product] = relationship(Product, lazy="joined")

    objects = Manager(StockAlertQuerySet)

    __table_args__ = (UniqueConstraint("member_id", "product_id", name="uq_stock_alerts_member_product"),)
