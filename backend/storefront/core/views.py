from __future__ import annotations

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse, Response

from storefront.core.errors import AppHTTPException, NotFound
from storefront.core.forms import Form, form_errors
from storefront.core.settings import settings
from storefront.core.templating import templates
from storefront.db.query import Page, QuerySet
from storefront.db.session import get_db

"""
Core Views (vues “classe” composées de mixins).

Rôle (fonctionnel) :
- Les apps “vues” (catalogue, account) déclarent des classes fines qui assemblent
  des mixins réutilisables au lieu d’écrire des fonctions de route longues.
- View.register(router, path) branche la classe sur un APIRouter FastAPI : une instance
  neuve par requête, avec request / db / background / kwargs (paramètres de chemin).

Mixins :
- QuerySetMixin         : get_queryset() (QuerySet métier de l’app modèle).
- PaginationMixin       : page / page_size depuis la query string, bornés par settings.
- SingleObjectMixin     : get_object() via lookup_field (404 si absent).
- TemplateResponseMixin : rendu Jinja2 (HTML) si le client le demande.
- JsonResponseMixin     : sérialisation Pydantic (schema) + réponse JSON UTF-8.
- FormMixin             : lecture JSON / form-urlencoded + validation (422 détaillé).

Vues composées : ListView, DetailView, CreateView, UpdateView, ActionView.
"""


class UTF8JSONResponse(JSONResponse):
    """Réponse JSON avec charset UTF-8 explicite (cohérent sur tous les endpoints)."""
    media_type = "application/json; charset=utf-8"


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def int_param(request: Request, name: str, *, minimum: Optional[int] = None) -> Optional[int]:
    """Paramètre entier optionnel de la query string (422 si invalide)."""
    raw = request.query_params.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        raise AppHTTPException(422, "VALIDATION_ERROR", f"{name} doit être un entier") from None
    if minimum is not None and value < minimum:
        raise AppHTTPException(422, "VALIDATION_ERROR", f"{name} doit être >= {minimum}")
    return value


def bool_param(request: Request, name: str) -> Optional[bool]:
    """Paramètre booléen optionnel (true/false, 1/0, yes/no, on/off)."""
    raw = request.query_params.get(name)
    if raw is None or raw.strip() == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise AppHTTPException(422, "VALIDATION_ERROR", f"{name} doit être un booléen")


class View:
    http_method_names: Tuple[str, ...] = ("get", "post", "put", "patch", "delete")

    request: Request
    db: AsyncSession
    background: BackgroundTasks
    kwargs: Dict[str, Any]

    def __init__(self, **initkwargs: Any) -> None:
        for key, value in initkwargs.items():
            setattr(self, key, value)

    @classmethod
    def allowed_methods(cls) -> List[str]:
        return [m.upper() for m in cls.http_method_names if callable(getattr(cls, m, None))]

    @classmethod
    def as_endpoint(cls, **initkwargs: Any) -> Callable[..., Any]:
        """Fabrique la fonction de route FastAPI associée à la classe."""

        async def endpoint(
            request: Request,
            background: BackgroundTasks,
            db: AsyncSession = Depends(get_db),
        ):
            view = cls(**initkwargs)
            view.setup(request, db, background)
            return await view.dispatch()

        endpoint.__name__ = cls.__name__
        endpoint.__doc__ = cls.__doc__
        return endpoint

    @classmethod
    def register(
        cls,
        router: APIRouter,
        path: str,
        *,
        name: Optional[str] = None,
        dependencies: Optional[Sequence[Any]] = None,
        **initkwargs: Any,
    ) -> None:
        router.add_api_route(
            path,
            cls.as_endpoint(**initkwargs),
            methods=cls.allowed_methods(),
            name=name or cls.__name__,
            dependencies=list(dependencies or []),
        )

    def setup(self, request: Request, db: AsyncSession, background: BackgroundTasks) -> None:
        self.request = request
        self.db = db
        self.background = background
        self.kwargs = dict(request.path_params)

    async def dispatch(self) -> Response:
        method = self.request.method.lower()
        if method == "head":
            method = "get"

        handler = getattr(self, method, None) if method in self.http_method_names else None
        if handler is None:
            raise AppHTTPException(
                405,
                "METHOD_NOT_ALLOWED",
                f"Méthode {self.request.method} non autorisée",
                details={"allowed": self.allowed_methods()},
            )
        return await handler()


class QuerySetMixin:
    queryset: Optional[QuerySet] = None

    def get_queryset(self) -> QuerySet:
        if self.queryset is None:
            raise TypeError(f"{type(self).__name__} doit définir queryset ou get_queryset()")
        return self.queryset


class PaginationMixin:
    page_size: Optional[int] = None

    def get_pagination(self) -> Tuple[int, int]:
        params = self.request.query_params
        try:
            page = int(params.get("page", 1))
            size = int(params.get("page_size", self.page_size or settings.PAGE_SIZE))
        except ValueError:
            raise AppHTTPException(422, "VALIDATION_ERROR", "page et page_size doivent être des entiers") from None

        if page < 1 or not 1 <= size <= settings.MAX_PAGE_SIZE:
            raise AppHTTPException(
                422,
                "VALIDATION_ERROR",
                "Pagination invalide",
                details={"page_min": 1, "page_size_max": settings.MAX_PAGE_SIZE},
            )
        return page, size

    async def paginate_queryset(self, queryset: QuerySet) -> Page:
        page, size = self.get_pagination()
        return await queryset.paginate(self.db, page=page, page_size=size)


class SingleObjectMixin:
    lookup_field: str = "slug"
    lookup_url_kwarg: Optional[str] = None

    # Conversion du paramètre de chemin (ex : uuid.UUID) ; ValueError => 404
    lookup_cast: Optional[Callable[[str], Any]] = None

    object: Any = None

    def get_lookup_value(self) -> Any:
        raw = self.kwargs.get(self.lookup_url_kwarg or self.lookup_field)
        if self.lookup_cast is None:
            return raw
        try:
            return self.lookup_cast(raw)
        except (TypeError, ValueError):
            raise NotFound("Identifiant invalide", details={self.lookup_field: raw}) from None

    async def get_object(self) -> Any:
        return await self.get_queryset().get(self.db, **{self.lookup_field: self.get_lookup_value()})


class TemplateResponseMixin:
    template_name: Optional[str] = None

    def wants_html(self) -> bool:
        fmt = self.request.query_params.get("format")
        if fmt:
            return fmt.lower() == "html"
        accept = self.request.headers.get("accept", "")
        return "text/html" in accept and "application/json" not in accept

    def get_context_data(self, **kwargs: Any) -> Dict[str, Any]:
        context: Dict[str, Any] = {"view": self}
        context.update(kwargs)
        return context

    def render_to_response(self, context: Dict[str, Any], status_code: int = 200) -> Response:
        if not self.template_name:
            raise TypeError(f"{type(self).__name__} n’a pas de template_name")
        return templates.TemplateResponse(self.request, self.template_name, context, status_code=status_code)


class JsonResponseMixin:
    schema: Optional[Type[BaseModel]] = None

    def serialize(self, obj: Any) -> Dict[str, Any]:
        if self.schema is None:
            return jsonable_encoder(obj)
        return self.schema.model_validate(obj).model_dump(mode="json")

    def serialize_many(self, objects: Iterable[Any]) -> List[Dict[str, Any]]:
        return [self.serialize(obj) for obj in objects]

    def json_response(self, data: Any, status_code: int = 200) -> Response:
        return UTF8JSONResponse(status_code=status_code, content=jsonable_encoder(data))


class FormMixin:
    form_class: Optional[Type[Form]] = None

    async def get_form_data(self) -> Dict[str, Any]:
        content_type = self.request.headers.get("content-type", "")

        if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
            form = await self.request.form()
            return {key: value for key, value in form.items()}

        body = await self.request.body()
        if not body.strip():
            return {}
        try:
            data = json.loads(body)
        except ValueError:
            raise AppHTTPException(422, "INVALID_JSON", "Corps JSON invalide") from None
        if not isinstance(data, dict):
            raise AppHTTPException(422, "INVALID_JSON", "Un objet JSON est attendu")
        return data

    async def get_form(self) -> Form:
        if self.form_class is None:
            raise TypeError(f"{type(self).__name__} n’a pas de form_class")
        data = await self.get_form_data()
        try:
            return self.form_class.model_validate(data)
        except ValidationError as exc:
            raise AppHTTPException(422, "VALIDATION_ERROR", "Formulaire invalide", details=form_errors(exc)) from None


class ListView(QuerySetMixin, PaginationMixin, TemplateResponseMixin, JsonResponseMixin, View):
    http_method_names = ("get",)

    async def get(self) -> Response:
        page = await self.paginate_queryset(self.get_queryset())
        if self.wants_html():
            return self.render_to_response(self.get_context_data(page=page, object_list=page.items))
        return self.json_response({"data": self.serialize_many(page.items), "meta": page.meta()})


class DetailView(QuerySetMixin, SingleObjectMixin, TemplateResponseMixin, JsonResponseMixin, View):
    http_method_names = ("get",)

    async def get_json_data(self) -> Any:
        return self.serialize(self.object)

    async def get(self) -> Response:
        self.object = await self.get_object()
        if self.wants_html():
            return self.render_to_response(self.get_context_data(object=self.object))
        return self.json_response(await self.get_json_data())


class CreateView(FormMixin, JsonResponseMixin, View):
    http_method_names = ("post",)
    success_status = 201

    async def form_valid(self, form: Any) -> Response:
        self.object = await form.save(self.db)
        await self.after_save(self.object)
        return self.json_response(self.serialize(self.object), status_code=self.success_status)

    async def after_save(self, obj: Any) -> None:
        """Hook : effets de bord après création (délégués à un agent)."""

    async def post(self) -> Response:
        form = await self.get_form()
        return await self.form_valid(form)


class UpdateView(QuerySetMixin, SingleObjectMixin, FormMixin, JsonResponseMixin, View):
    http_method_names = ("patch",)

    async def patch(self) -> Response:
        self.object = await self.get_object()
        form = await self.get_form()
        self.object = await form.save(self.db, instance=self.object)
        return self.json_response(self.serialize(self.object))


class ActionView(QuerySetMixin, SingleObjectMixin, FormMixin, JsonResponseMixin, View):
    """POST sur un objet existant : l’action elle-même est déléguée à un agent (perform)."""

    http_method_names = ("post",)
    success_status = 200

    async def perform(self, form: Optional[Form]) -> Any:
        raise NotImplementedError

    async def post(self) -> Response:
        self.object = await self.get_object()
        form = await self.get_form() if self.form_class is not None else None
        data = await self.perform(form)
        return self.json_response(data, status_code=self.success_status)
