"""
storefront.catalogue

App “vues” du catalogue : routes HTTP, vues “classe”, filtres de templates.
Les données et règles viennent de storefront.product (aucun modèle ici).
"""
