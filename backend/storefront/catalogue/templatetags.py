from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from storefront.core.settings import settings
from storefront.core.templating import register_filter

"""
Catalogue Template Tags (filtres Jinja2).

- money(cents, currency) : 1250 -> "12.50 EUR"
- stock_label(product)   : "Rupture de stock" / "Plus que 3 en stock" / "En stock"
"""


@register_filter()
def money(cents: Optional[int], currency: Optional[str] = None) -> str:
    amount = (Decimal(cents or 0) / 100).quantize(Decimal("0.01"))
    return f"{amount:.2f} {(currency or settings.DEFAULT_CURRENCY).upper()}"


@register_filter()
def stock_label(product: Any) -> str:
    stock = int(getattr(product, "stock", 0) or 0)
    if stock <= 0:
        return "Rupture de stock"
    if stock <= settings.LOW_STOCK_THRESHOLD:
        return f"Plus que {stock} en stock"
    return "En stock"
