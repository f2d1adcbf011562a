from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict

from storefront.schemas.common import UTCDateTime

"""
Schemas Members (sortie API).
"""


class MemberOut(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    initials: str
    email: str
    is_active: bool
    is_new: bool
    joined_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)
