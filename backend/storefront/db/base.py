from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

"""
DB Base.

Rôle (fonctionnel) :
- Définit la classe Base SQLAlchemy commune à tous les modèles ORM des apps “modèles”
  (storefront.member, storefront.product).
- Fournit TimestampMixin (created_at / updated_at) pour les modèles qui le souhaitent.

Note :
- Tous les modèles doivent hériter de Base pour être enregistrés dans la metadata
  (création du schéma via db.session.init_models).
"""


def utcnow() -> datetime:
    """Horodatage UTC (aware) utilisé par défaut sur les colonnes de date."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """Normalise une date lue en base (SQLite renvoie des dates naïves) en UTC aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Classe racine ORM (SQLAlchemy Declarative)."""
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
