from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storefront.core.settings import settings
from storefront.db.base import Base

"""
DB Session.

Rôle (fonctionnel) :
- Initialise l’engine SQLAlchemy en mode async (runtime FastAPI).
- Fournit une factory de sessions AsyncSession (AsyncSessionLocal).
- Expose `get_db()` comme dépendance FastAPI (surchargée dans les tests).
- Expose `init_models()` : création du schéma au démarrage (settings.DB_AUTO_CREATE).

Notes :
- expire_on_commit=False : permet de réutiliser les objets après commit
  (les agents relisent l’instance après avoir commité).
"""

engine = create_async_engine(settings.DATABASE_URL, echo=False)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db():
    """Dépendance FastAPI : yield une session DB et garantit sa fermeture."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Crée les tables manquantes (toutes les apps modèles doivent être importées)."""
    import storefront.models  # noqa: F401  (enregistre les modèles + signaux)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
