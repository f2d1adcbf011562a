from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

from fastapi.templating import Jinja2Templates

from storefront.core.settings import settings

"""
Core Templating.

Rôle (fonctionnel) :
- Instance Jinja2 unique pour toutes les apps “vues” (storefront/templates/<app>/...).
- register_filter / register_global : équivalent des “template tags”.
  Chaque app vue déclare ses filtres dans son module templatetags, importé par ses vues.
- render_to_string : rendu d’un template hors requête HTTP (corps des mails des agents).
- pluralize : filtre partagé par toutes les apps.
"""

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_name"] = settings.APP_NAME


def render_to_string(template_name: str, context: Optional[dict[str, Any]] = None) -> str:
    """Rendu hors requête (corps des mails : templates/mail/*.txt)."""
    return templates.get_template(template_name).render(**(context or {}))


def register_filter(name: Optional[str] = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Décorateur : enregistre une fonction comme filtre Jinja ({{ value|name }})."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        templates.env.filters[name or fn.__name__] = fn
        return fn

    return decorator


def register_global(name: Optional[str] = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Décorateur : expose une fonction comme global Jinja ({{ name(...) }})."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        templates.env.globals[name or fn.__name__] = fn
        return fn

    return decorator


@register_filter()
def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Filtre partagé : {{ n|pluralize("article") }} -> "3 articles"."""
    word = singular if abs(int(count or 0)) <= 1 else (plural or f"{singular}s")
    return f"{count} {word}"
