from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import Select, and_, func, not_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import DomainError, NotFound

"""
DB Query (QuerySet / Manager).

Rôle (fonctionnel) :
- Porte les filtres métier au plus près des données : chaque app “modèles” déclare
  son QuerySet (ex : MemberQuerySet.active(), ProductQuerySet.published()) au lieu de
  répéter des `select(...).where(...)` dans les vues.
- QuerySet est immuable : chaque filtre renvoie une nouvelle instance (chaînage sûr).
- Les terminaux (all, first, get, count, exists, paginate) sont async et reçoivent
  la session explicitement (pas de session globale).

Usage :
    members = await Member.objects.active().search("ali").newest_first().all(db)
    page = await Product.objects.published().paginate(db, page=2, page_size=20)
"""

ModelT = TypeVar("ModelT")


@dataclass
class Page(Generic[ModelT]):
    """Une page de résultats + métadonnées de pagination."""
    items: List[ModelT]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        if self.total <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def meta(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "pages": self.pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


class QuerySet(Generic[ModelT]):
    """
    Requête chaînable sur un modèle ORM.

    Le `select(model)` n’est construit qu’au premier besoin : un QuerySet peut être
    créé pendant la déclaration du modèle (Manager) sans que le mapping soit prêt.
    """

    def __init__(self, model: Type[ModelT], statement: Optional[Select] = None) -> None:
        self.model = model
        self._statement = statement

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model.__name__}>"

    @property
    def statement(self) -> Select:
        if self._statement is None:
            return select(self.model)
        return self._statement

    def _clone(self, statement: Select) -> "QuerySet[ModelT]":
        return type(self)(self.model, statement)

    # --- chaînage ---

    def filter(self, *criteria: Any) -> "QuerySet[ModelT]":
        if not criteria:
            return self._clone(self.statement)
        return self._clone(self.statement.where(*criteria))

    def filter_by(self, **kwargs: Any) -> "QuerySet[ModelT]":
        return self._clone(self.statement.filter_by(**kwargs))

    def exclude(self, *criteria: Any) -> "QuerySet[ModelT]":
        if not criteria:
            return self._clone(self.statement)
        return self._clone(self.statement.where(not_(and_(*criteria))))

    def order_by(self, *columns: Any) -> "QuerySet[ModelT]":
        return self._clone(self.statement.order_by(*columns))

    def join(self, target: Any, *args: Any, **kwargs: Any) -> "QuerySet[ModelT]":
        return self._clone(self.statement.join(target, *args, **kwargs))

    def limit(self, n: int) -> "QuerySet[ModelT]":
        return self._clone(self.statement.limit(n))

    def offset(self, n: int) -> "QuerySet[ModelT]":
        return self._clone(self.statement.offset(n))

    # --- terminaux (async) ---

    async def all(self, db: AsyncSession) -> List[ModelT]:
        result = await db.execute(self.statement)
        return list(result.scalars().unique().all())

    async def first(self, db: AsyncSession) -> Optional[ModelT]:
        result = await db.execute(self.statement.limit(1))
        return result.scalars().first()

    async def get(self, db: AsyncSession, **kwargs: Any) -> ModelT:
        """Un seul objet attendu : NotFound si absent, DomainError si plusieurs."""
        rows = await self.filter_by(**kwargs).limit(2).all(db)
        if not rows:
            raise NotFound(f"{self.model.__name__} introuvable", details=_jsonable(kwargs) or None)
        if len(rows) > 1:
            raise DomainError(
                "MULTIPLE_RESULTS",
                f"Plusieurs {self.model.__name__} correspondent",
                details=_jsonable(kwargs) or None,
            )
        return rows[0]

    async def count(self, db: AsyncSession) -> int:
        sub = self.statement.order_by(None).subquery()
        result = await db.execute(select(func.count()).select_from(sub))
        return int(result.scalar_one())

    async def exists(self, db: AsyncSession) -> bool:
        return (await self.first(db)) is not None

    async def paginate(self, db: AsyncSession, page: int = 1, page_size: int = 20) -> Page[ModelT]:
        if page < 1:
            raise ValueError("page doit être >= 1")
        if page_size < 1:
            raise ValueError("page_size doit être >= 1")

        total = await self.count(db)
        items = await self.offset((page - 1) * page_size).limit(page_size).all(db)
        return Page(items=items, page=page, page_size=page_size, total=total)


class Manager:
    """
    Descripteur `Model.objects` : renvoie un QuerySet neuf à chaque accès.

        class Member(Base):
            objects = Manager(MemberQuerySet)

    Accessible uniquement sur la classe (pas sur une instance).
    """

    def __init__(self, queryset_class: Type[QuerySet] = QuerySet) -> None:
        self.queryset_class = queryset_class
        self.name = "objects"

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> QuerySet:
        if instance is not None:
            raise AttributeError(f"Manager '{self.name}' accessible uniquement via la classe {owner.__name__}")
        return self.queryset_class(owner)


def _jsonable(kwargs: dict[str, Any]) -> dict[str, Any]:
    return {k: v if isinstance(v, (str, int, float, bool)) or v is None else str(v) for k, v in kwargs.items()}


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """Motif LIKE « contient `term` » : %, _ et \\ du terme sont pris littéralement."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
