"""
storefront.product

App “modèles” : catalogue de données (catégories, produits, alertes de stock).

- models  : Category, Product, StockAlert
- queries : ProductQuerySet, StockAlertQuerySet, CategoryQuerySet
- forms   : ProductForm, CategoryForm, RestockForm, StockAlertForm
- agents  : ProductAgent (réassort + notifications, abonnement, publication)
- signals : slug automatique
- utils   : slugify

Aucune route ici : les vues sont dans storefront.catalogue.
"""
