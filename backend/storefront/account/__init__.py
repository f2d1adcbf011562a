"""
storefront.account

App “vues” des comptes : inscription, fiche membre, (dés)activation.
Les données et règles viennent de storefront.member (aucun modèle ici).
"""
