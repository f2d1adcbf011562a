"""
storefront.db

Package base de données : connexion, session et accès aux données.

Contenu :
- base    : Base déclarative + TimestampMixin + helpers de dates UTC.
- session : engine async, sessions (Depends(get_db)), création du schéma.
- query   : QuerySet / Manager / Page, socle des requêtes métier de chaque app “modèles”.
"""
