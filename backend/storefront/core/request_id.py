from __future__ import annotations

import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Stocke l’identifiant de la requête courante (request_id) dans un ContextVar.
- Le request_id vient du header X-Request-Id s’il est fourni, sinon il est généré.
- Utilisé par le logging (chaque ligne JSON), les payloads d’erreur
  et les logs des agents (mails envoyés pendant la requête ou en tâche de fond).
"""

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """Réutilise le request_id entrant (nettoyé) ou génère un UUID."""
    rid = (incoming or "").strip() or str(uuid.uuid4())
    set_request_id(rid)
    return rid
