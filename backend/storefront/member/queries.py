from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_

from storefront.db.query import LIKE_ESCAPE, QuerySet, contains_pattern

"""
Member QuerySet.

Filtres réutilisables sur les membres (Member.objects...) :
- active / inactive
- search(term)      : prénom, nom ou email (insensible à la casse) ; terme vide = pas de filtre
- joined_since(dt)
- newest_first()
- by_email(email)   : comparaison sur l’email normalisé (minuscules)
"""


class MemberQuerySet(QuerySet):

    def active(self) -> "MemberQuerySet":
        return self.filter(self.model.is_active.is_(True))

    def inactive(self) -> "MemberQuerySet":
        return self.filter(self.model.is_active.is_(False))

    def search(self, term: str | None) -> "MemberQuerySet":
        term = (term or "").strip().lower()
        if not term:
            return self.filter()
        pattern = contains_pattern(term)
        m = self.model
        return self.filter(
            or_(
                func.lower(m.first_name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(m.last_name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(m.email).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    def joined_since(self, since: datetime) -> "MemberQuerySet":
        return self.filter(self.model.joined_at >= since)

    def newest_first(self) -> "MemberQuerySet":
        return self.order_by(self.model.joined_at.desc(), self.model.email.asc())

    def by_email(self, email: str) -> "MemberQuerySet":
        return self.filter(self.model.email == (email or "").strip().lower())
