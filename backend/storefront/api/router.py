from fastapi import APIRouter

from storefront.account.routes import router as account_router
from storefront.api.health import router as health_router
from storefront.catalogue.routes import router as catalogue_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs des apps “vues” (catalogue, account) + health.
- Point d’entrée unique pour l’inclusion dans l’application FastAPI.
"""

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(catalogue_router)
api_router.include_router(account_router)
