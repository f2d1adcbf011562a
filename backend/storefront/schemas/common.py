from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from storefront.db.base import as_utc

"""
Schemas communs.

- UTCDateTime : datetime toujours sérialisée en UTC explicite
  (SQLite renvoie des dates naïves).
"""

UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
