from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Request

from storefront.core.settings import settings
from storefront.core.errors import AppHTTPException

"""
Core Security (clé d’administration).

Rôle (fonctionnel) :
- Garde les routes d’administration de la boutique : création de produits et de
  catégories, réassort, publication, liste des membres.
- Les membres eux-mêmes ne s’authentifient pas : seule l’administration a une clé.

Headers acceptés :
- Authorization: Bearer <clé>
- X-API-Key: <clé>

Règles :
- API_KEY configurée : clé obligatoire (401 UNAUTHORIZED sinon, tentative journalisée).
- API_KEY vide hors prod : accès libre (dev / tests).
- API_KEY vide en prod : 500 SERVER_MISCONFIG (aucune route admin ne doit être ouverte).
"""

log = logging.getLogger("storefront.security")


def admin_key_from(request: Request) -> Optional[str]:
    """Clé présentée par le client (Bearer prioritaire sur X-API-Key)."""
    scheme, _, value = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return (request.headers.get("x-api-key") or "").strip() or None


def admin_key_matches(candidate: Optional[str]) -> bool:
    expected = settings.API_KEY or ""
    return bool(candidate) and secrets.compare_digest(candidate, expected)


async def require_api_key(request: Request) -> None:
    """Dépendance FastAPI : lève AppHTTPException si l’appel n’est pas admin."""
    if not settings.API_KEY:
        if str(settings.ENV).lower() == "prod":
            raise AppHTTPException(500, "SERVER_MISCONFIG", "API_KEY manquante côté serveur")
        return

    if not admin_key_matches(admin_key_from(request)):
        log.warning(
            "admin_denied",
            extra={"event": "admin_denied", "method": request.method, "path": request.url.path},
        )
        raise AppHTTPException(401, "UNAUTHORIZED", "Clé API invalide ou manquante")
