from __future__ import annotations

from fastapi import Depends, Request

from storefront.core.security import require_api_key

"""
Dépendances API.

Rôle (fonctionnel) :
- Centralise les dépendances réutilisables sur les routes des apps “vues”.
- Ici : protection des routes d’administration par API key.
"""


async def require_admin(request: Request) -> None:
    await require_api_key(request)


# Dépendance prête à l’emploi : View.register(..., dependencies=[AdminAuthDep])
AdminAuthDep = Depends(require_admin)
