from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from fastapi import BackgroundTasks

from storefront.core.settings import settings

"""
Core Tasks.

Rôle (fonctionnel) :
- Un seul endroit décide si un effet de bord part maintenant ou après la réponse HTTP.
- Les agents appellent defer(background, send_mail, ...) : remplacer l’envoi direct
  par une file de tâches ne touche que ce module.

Comportement :
- background fourni + settings.MAIL_DEFERRED : planifié via BackgroundTasks (FastAPI),
  exécuté après l’envoi de la réponse.
- sinon : exécuté immédiatement (await si coroutine).
"""

logger = logging.getLogger("storefront.tasks")


async def defer(
    background: Optional[BackgroundTasks],
    fn: Callable[..., Any],
    *args: Any,
    **kwargs: Any,
) -> bool:
    """Planifie ou exécute `fn`. Retourne True si l’appel a été différé."""
    if background is not None and settings.MAIL_DEFERRED:
        background.add_task(fn, *args, **kwargs)
        logger.debug("task deferred: %s", getattr(fn, "__name__", fn))
        return True

    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        await result
    return False
