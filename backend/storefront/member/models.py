from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.core.settings import settings
from storefront.db.base import Base, TimestampMixin, as_utc, utcnow
from storefront.db.query import Manager
from storefront.member.queries import MemberQuerySet

"""
Model Member.

Rôle (fonctionnel) :
- Représente un membre inscrit (client de la boutique).
- Modèle volontairement “fin” : colonnes + propriétés calculées, sans effet de bord.
  Les filtres vivent dans MemberQuerySet, les actions (mails, désactivation) dans MemberAgent.

Propriétés :
- full_name : "Prénom Nom" (sans espaces parasites si le nom est vide).
- initials  : initiales en majuscules ("AL").
- is_new    : inscrit depuis moins de settings.NEW_MEMBER_DAYS jours.
"""


class Member(TimestampMixin, Base):
    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")

    # Toujours stocké en minuscules (form + signal before_insert/update)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    objects = Manager(MemberQuerySet)

    def __repr__(self) -> str:
        return f"<Member {self.email}>"

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in (self.first_name, self.last_name) if part).upper()

    @property
    def is_new(self) -> bool:
        joined = as_utc(self.joined_at)
        if joined is None:
            return True
        return utcnow() - joined <= timedelta(days=settings.NEW_MEMBER_DAYS)
