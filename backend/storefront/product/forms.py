from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from storefront.core.forms import Form, ModelForm
from storefront.core.settings import settings
from storefront.product.models import Category, Product
from storefront.product.utils import slugify

"""
Product Forms.

- ProductForm  : création d’un produit. post_process : slug (depuis le nom si absent),
  prix Decimal -> price_cents. La catégorie (category_slug) est résolue par la vue.
- CategoryForm : création d’une catégorie (slug automatique).
- RestockForm / StockAlertForm : payloads des actions (réassort, abonnement).
"""


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ProductForm(ModelForm):
    orm_model = Product
    exclude_fields = ("price", "category_slug")

    name: str = Field(min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, pattern=r"^[A-Za-z]{3}$")
    stock: int = Field(default=0, ge=0)
    is_published: bool = False
    category_slug: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    def post_process(self, instance: Product) -> None:
        instance.slug = slugify(self.slug or self.name)
        instance.price_cents = to_cents(self.price)


class CategoryForm(ModelForm):
    orm_model = Category

    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=140)

    def post_process(self, instance: Category) -> None:
        instance.slug = slugify(self.slug or self.name)


class RestockForm(Form):
    quantity: int


class StockAlertForm(Form):
    email: EmailStr
