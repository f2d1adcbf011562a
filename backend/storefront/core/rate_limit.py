from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Tuple

from fastapi import Request

from storefront.core.errors import AppHTTPException
from storefront.core.settings import settings

"""
Core Rate Limit.

Rôle (fonctionnel) :
- Protège les routes “publiques” sensibles (inscription, désinscription…) contre les rafales.
- Implémentation en mémoire par IP + route (method + path), fenêtre fixe de 60 secondes (RPM).
- Les préfixes protégés viennent de settings.RATE_LIMIT_PATHS (CSV).

Activation via settings :
- RATE_LIMIT_ENABLED : active/désactive le rate limiting.
- RATE_LIMIT_RPM : limite de requêtes par minute (par IP + route).
"""

WINDOW_SECONDS = 60.0


@dataclass
class _Bucket:
    """État minimal d’un compteur sur une fenêtre fixe."""
    window_start: float
    count: int


def protected_prefixes() -> tuple[str, ...]:
    """Préfixes de chemins soumis au rate-limit (depuis settings)."""
    raw = getattr(settings, "RATE_LIMIT_PATHS", "") or ""
    return tuple(p.strip() for p in raw.split(",") if p.strip())


class InMemoryRateLimiter:
    """
    Rate limiter en mémoire (best-effort, un process).

    - Un compteur par clé (IP, "METHOD /path") sur une fenêtre de 60s.
    - Déclenche AppHTTPException(429) si la limite est dépassée.
    - Les fenêtres expirées sont purgées au fil des appels (clés par chemin, UUID compris).
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._buckets: Dict[Tuple[str, str], _Bucket] = {}
        self._last_sweep = 0.0

    def _client_ip(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def applies_to(self, request: Request) -> bool:
        """True si la requête est concernée (jamais pour les préflights CORS)."""
        if request.method == "OPTIONS":
            return False
        prefixes = protected_prefixes()
        return bool(prefixes) and request.url.path.startswith(prefixes)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._last_sweep = 0.0

    def _evict_expired(self, now: float) -> None:
        """Supprime les fenêtres terminées (au plus un balayage par fenêtre)."""
        if (now - self._last_sweep) < WINDOW_SECONDS:
            return
        self._last_sweep = now
        for key in [k for k, b in self._buckets.items() if (now - b.window_start) >= WINDOW_SECONDS]:
            del self._buckets[key]

    def check(self, request: Request) -> None:
        """Vérifie la limite pour (IP + route). Lève 429 si dépassement."""
        if not getattr(settings, "RATE_LIMIT_ENABLED", False):
            return

        limit = int(getattr(settings, "RATE_LIMIT_RPM", 120) or 120)
        if limit <= 0:
            return

        key = (self._client_ip(request), f"{request.method} {request.url.path}")
        now = time.time()

        with self._lock:
            self._evict_expired(now)
            bucket = self._buckets.get(key)

            if bucket is None or (now - bucket.window_start) >= WINDOW_SECONDS:
                self._buckets[key] = _Bucket(window_start=now, count=1)
                return

            bucket.count += 1

            if bucket.count > limit:
                raise AppHTTPException(
                    429,
                    "RATE_LIMITED",
                    f"Trop de requêtes (limite: {limit}/min).",
                    details={"limit_rpm": limit},
                )


# Instance globale (utilisée par le middleware)
rate_limiter = InMemoryRateLimiter()
