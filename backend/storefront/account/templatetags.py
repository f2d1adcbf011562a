from __future__ import annotations

from typing import Any

from storefront.core.templating import register_filter

"""
Account Template Tags (filtres Jinja2).

- initials(member)      : initiales ("?" si inconnu)
- member_status(member) : "Actif" / "Inactif" (+ " · nouveau" pour un membre récent)
"""


@register_filter()
def initials(member: Any) -> str:
    value = getattr(member, "initials", "") if member is not None else ""
    return value or "?"


@register_filter()
def member_status(member: Any) -> str:
    label = "Actif" if getattr(member, "is_active", False) else "Inactif"
    if getattr(member, "is_active", False) and getattr(member, "is_new", False):
        label += " · nouveau"
    return label
