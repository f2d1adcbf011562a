"""
storefront.models

Registre des modèles ORM de toutes les apps “modèles”.

Rôle (fonctionnel) :
- Importe chaque modèle (et les signaux associés) pour les enregistrer dans Base.metadata
  avant la création du schéma (db.session.init_models, scripts).
- Permet des imports courts : from storefront.models import Member, Product.
"""

from storefront.member.models import Member
from storefront.product.models import Category, Product, StockAlert

# Connexion des signaux (listeners SQLAlchemy) : effet de bord de l’import
from storefront.member import signals as member_signals  # noqa: F401
from storefront.product import signals as product_signals  # noqa: F401

__all__ = ["Member", "Category", "Product", "StockAlert"]
