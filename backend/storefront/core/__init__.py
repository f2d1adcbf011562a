"""
storefront.core

Package “cœur” partagé par toutes les apps : tout ce qui est transversal et ne dépend
d’aucun domaine métier (membres, produits…).

On y trouve :

- settings    : configuration centralisée (env / .env).
- errors      : format d’erreur API + exceptions (AppHTTPException, DomainError, NotFound).
- logging     : logs JSON enrichis (request_id, extras métier).
- request_id  : identifiant de corrélation par requête.
- security    : API key d’administration.
- rate_limit  : limitation de débit en mémoire.
- mail        : envoi de notifications (backends console / memory / smtp).
- tasks       : exécution immédiate ou différée des effets de bord.
- forms       : formulaires Pydantic + ModelForm (hook post_process).
- views       : vues “classe” composées de mixins (liste, détail, formulaire, action).
- templating  : moteur Jinja2 + enregistrement des filtres (“template tags”).

En résumé :
- storefront.core = infrastructure + conventions
- storefront.member / storefront.product = apps “modèles” (données + règles)
- storefront.catalogue / storefront.account = apps “vues” (HTTP + templates)
"""
