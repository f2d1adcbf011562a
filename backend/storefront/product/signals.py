from __future__ import annotations

from sqlalchemy import event

from storefront.product.models import Category, Product
from storefront.product.utils import slugify

"""
Product Signals (listeners ORM SQLAlchemy).

- before_insert / before_update sur Category et Product : un slug vide est recalculé
  depuis le nom (écritures hors formulaire : scripts, agents, tests).
- Product : la devise est toujours stockée en majuscules.
"""


@event.listens_for(Category, "before_insert")
@event.listens_for(Category, "before_update")
def ensure_category_slug(mapper, connection, target: Category) -> None:
    if not target.slug:
        target.slug = slugify(target.name)


@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def ensure_product_fields(mapper, connection, target: Product) -> None:
    if not target.slug:
        target.slug = slugify(target.name)
    if target.currency:
        target.currency = target.currency.upper()
