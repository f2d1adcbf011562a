from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Standardise le format des erreurs renvoyées par l’API (payload homogène).
- Fournit deux familles d’exceptions :
  - AppHTTPException : erreur levée par la couche HTTP (vues, sécurité, rate-limit).
  - DomainError : erreur métier levée par les agents / QuerySet, sans dépendance HTTP.
    La couche API la convertit en réponse (status porté par l’exception).

Convention de réponse (exemple) :
{
  "error": {
    "code": "NOT_FOUND",
    "message": "Produit introuvable",
    "status": 404,
    "request_id": "...",
    "timestamp": "...",
    "details": {...}
  }
}
"""


def now_iso() -> str:
    """Timestamp ISO-8601 en UTC (utilisé dans toutes les erreurs)."""
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construit un payload d’erreur homogène pour l’API."""
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "status": status,
            "request_id": request_id,
            "timestamp": now_iso(),
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppHTTPException(HTTPException):
    """
    Exception applicative standardisée (couche HTTP).

    Exemple :
        raise AppHTTPException(404, "NOT_FOUND", "Produit introuvable")
    """

    def __init__(self, status_code: int, code: str, message: str, details: Any = None):
        super().__init__(status_code=status_code, detail={"code": code, "message": message, "details": details})


class DomainError(Exception):
    """
    Erreur métier (agents, QuerySet).

    Status par défaut 409 : conflit d’état (membre déjà inactif, produit déjà en stock,
    email déjà utilisé…).
    """

    status_code = 409

    def __init__(self, code: str, message: str, *, status: int | None = None, details: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if status is not None:
            self.status_code = status


class NotFound(DomainError):
    """Objet introuvable (QuerySet.get, lookup d’une vue détail)."""

    status_code = 404

    def __init__(self, message: str = "Objet introuvable", *, code: str = "NOT_FOUND", details: Any = None):
        super().__init__(code, message, details=details)
