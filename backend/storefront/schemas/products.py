from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from storefront.schemas.common import UTCDateTime

"""
Schemas Catalogue (sortie API).

Notes :
- price est exposé en chaîne décimale ("12.50") et price_cents en entier.
- StockAlertOut référence le produit par son slug et le membre par son id.
"""


class CategoryOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    price: Decimal
    price_cents: int
    currency: str
    display_price: str
    stock: int
    in_stock: bool
    is_low_stock: bool
    is_published: bool
    category: Optional[CategoryOut] = None
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class StockAlertOut(BaseModel):
    id: uuid.UUID
    member_id: uuid.UUID
    product_id: uuid.UUID
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)
