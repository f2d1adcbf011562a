"""
storefront

Package racine de l’application backend Storefront.

Rôle (fonctionnel) :
- Contient tout le code applicatif (API, apps métier, accès DB, templates).
- Sert de point d’ancrage pour les imports : `from storefront...`

Organisation (par responsabilité) :
- storefront.core      : briques transverses (settings, errors, logs, sécurité, mail, vues, formulaires…)
- storefront.db        : base SQLAlchemy, session async, QuerySet / Manager
- storefront.member    : app “modèles” membres (modèle, requêtes, formulaires, agent, signaux)
- storefront.product   : app “modèles” produits (catégories, produits, alertes de stock)
- storefront.catalogue : app “vues” du catalogue (routes HTTP + templates)
- storefront.account   : app “vues” des comptes membres
- storefront.api       : agrégation des routeurs + health
"""
