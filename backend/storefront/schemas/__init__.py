"""
storefront.schemas

Schémas de sortie (Pydantic) partagés par les apps “vues”.

Rôle (fonctionnel) :
- Sépare les modèles ORM (apps member / product) du contrat HTTP.
- from_attributes=True : construction directe depuis les objets SQLAlchemy,
  propriétés calculées comprises (full_name, display_price, in_stock…).

Les schémas d’entrée sont les formulaires des apps “modèles” (member.forms, product.forms).
"""
