from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.settings import settings
from storefront.db.session import get_db

"""
API Health.

Rôle (fonctionnel) :
- /health : l’API répond (env exposé en démo).
- /health/db : la base répond à une requête minimale.
"""

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_db)):
    db_ok = True
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_ok = False
    return {"status": "ok" if db_ok else "degraded", "db": {"ok": db_ok}}
