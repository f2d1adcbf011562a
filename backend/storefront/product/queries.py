from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_

from storefront.core.settings import settings
from storefront.db.query import LIKE_ESCAPE, QuerySet, contains_pattern
from storefront.member.models import Member

"""
Product QuerySets.

Rôle (fonctionnel) :
- Regroupe les filtres du catalogue pour que les vues se contentent de les enchaîner :
    Product.objects.published().in_stock().in_category("cafe").cheapest_first()
- Les filtres sur les relations passent par EXISTS (has) : pas de doublons ni de
  conflit avec le chargement joint de la catégorie.
"""


class CategoryQuerySet(QuerySet):

    def alphabetical(self) -> "CategoryQuerySet":
        return self.order_by(self.model.name.asc())


class ProductQuerySet(QuerySet):

    def published(self) -> "ProductQuerySet":
        return self.filter(self.model.is_published.is_(True))

    def in_stock(self) -> "ProductQuerySet":
        return self.filter(self.model.stock > 0)

    def out_of_stock(self) -> "ProductQuerySet":
        return self.filter(self.model.stock <= 0)

    def low_stock(self, threshold: Optional[int] = None) -> "ProductQuerySet":
        limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        return self.filter(self.model.stock > 0, self.model.stock <= limit)

    def in_category(self, slug: Optional[str]) -> "ProductQuerySet":
        if not slug:
            return self.filter()
        return self.filter(self.model.category.has(slug=slug))

    def price_between(self, min_cents: Optional[int] = None, max_cents: Optional[int] = None) -> "ProductQuerySet":
        """Bornes incluses, en centimes ; chaque borne est optionnelle."""
        criteria = []
        if min_cents is not None:
            criteria.append(self.model.price_cents >= min_cents)
        if max_cents is not None:
            criteria.append(self.model.price_cents <= max_cents)
        return self.filter(*criteria)

    def search(self, term: Optional[str]) -> "ProductQuerySet":
        term = (term or "").strip().lower()
        if not term:
            return self.filter()
        pattern = contains_pattern(term)
        return self.filter(
            or_(
                func.lower(self.model.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(func.coalesce(self.model.description, "")).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    def cheapest_first(self) -> "ProductQuerySet":
        return self.order_by(self.model.price_cents.asc(), self.model.name.asc())

    def newest_first(self) -> "ProductQuerySet":
        return self.order_by(self.model.created_at.desc(), self.model.name.asc())


class StockAlertQuerySet(QuerySet):

    def for_product(self, product) -> "StockAlertQuerySet":
        return self.filter(self.model.product_id == product.id)

    def for_member(self, member) -> "StockAlertQuerySet":
        return self.filter(self.model.member_id == member.id)

    def pending(self) -> "StockAlertQuerySet":
        """Alertes dont le membre est encore actif (les seules à notifier)."""
        return self.filter(self.model.member.has(Member.is_active.is_(True)))

    def oldest_first(self) -> "StockAlertQuerySet":
        return self.order_by(self.model.created_at.asc())
