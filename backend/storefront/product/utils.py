from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str | None) -> str:
    """'Café Crème 250g' -> 'cafe-creme-250g' (jamais vide : 'item' par défaut)."""
    value = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    value = _NON_ALNUM.sub("-", value.lower()).strip("-")
    return value or "item"
