from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from starlette.responses import Response

from storefront.catalogue import templatetags  # noqa: F401  (enregistre les filtres Jinja)
from storefront.core.errors import DomainError, NotFound
from storefront.core.forms import Form
from storefront.core.views import (
    ActionView,
    CreateView,
    DetailView,
    ListView,
    PaginationMixin,
    bool_param,
    int_param,
)
from storefront.member.models import Member
from storefront.product.agents import ProductAgent
from storefront.product.forms import CategoryForm, ProductForm, RestockForm, StockAlertForm
from storefront.product.models import Category, Product
from storefront.schemas.products import CategoryOut, ProductOut, StockAlertOut

"""
Catalogue Views.

Rôle (fonctionnel) :
- App “vues” : aucune table ici, uniquement la couche HTTP au-dessus de storefront.product.
- Chaque vue assemble les vues génériques de core.views et se limite à :
  - choisir le QuerySet (filtres métier déjà écrits dans ProductQuerySet),
  - choisir le formulaire / le schéma de sortie / le template,
  - déléguer les effets de bord à ProductAgent.
"""

SORTS = {
    "name": lambda qs: qs.order_by(Product.name.asc()),
    "price": lambda qs: qs.cheapest_first(),
    "newest": lambda qs: qs.newest_first(),
}


class ProductListView(ListView):
    """Produits publiés, filtrables (q, category, min_price, max_price, in_stock, sort)."""

    schema = ProductOut
    template_name = "catalogue/product_list.html"

    def get_queryset(self):
        params = self.request.query_params
        qs = (
            Product.objects.published()
            .search(params.get("q"))
            .in_category(params.get("category"))
            .price_between(
                int_param(self.request, "min_price", minimum=0),
                int_param(self.request, "max_price", minimum=0),
            )
        )
        if bool_param(self.request, "in_stock"):
            qs = qs.in_stock()

        sort = SORTS.get(params.get("sort") or "name", SORTS["name"])
        return sort(qs)


class ProductDetailView(DetailView):
    schema = ProductOut
    template_name = "catalogue/product_detail.html"

    def get_queryset(self):
        return Product.objects.published()


class CategoryListView(ListView):
    schema = CategoryOut
    template_name = "catalogue/category_list.html"
    page_size = 100

    def get_queryset(self):
        return Category.objects.alphabetical()


class CategoryDetailView(PaginationMixin, DetailView):
    """Une catégorie + ses produits publiés (paginés)."""

    schema = CategoryOut
    template_name = "catalogue/product_list.html"

    def get_queryset(self):
        return Category.objects.filter()

    async def get(self) -> Response:
        self.object = await self.get_object()
        products = Product.objects.published().in_category(self.object.slug).order_by(Product.name.asc())
        page = await self.paginate_queryset(products)

        if self.wants_html():
            return self.render_to_response(
                self.get_context_data(category=self.object, page=page, object_list=page.items)
            )
        return self.json_response(
            {
                "category": self.serialize(self.object),
                "data": [ProductOut.model_validate(p).model_dump(mode="json") for p in page.items],
                "meta": page.meta(),
            }
        )


class ProductCreateView(CreateView):
    form_class = ProductForm
    schema = ProductOut

    async def form_valid(self, form: ProductForm) -> Response:
        product = Product()
        if form.category_slug:
            category = await Category.objects.filter_by(slug=form.category_slug).first(self.db)
            if category is None:
                raise NotFound("Catégorie introuvable", code="CATEGORY_NOT_FOUND", details={"slug": form.category_slug})
            product.category = category

        try:
            self.object = await form.save(self.db, instance=product)
        except IntegrityError:
            await self.db.rollback()
            raise DomainError("SLUG_TAKEN", "Un produit utilise déjà ce slug") from None

        return self.json_response(self.serialize(self.object), status_code=self.success_status)


class CategoryCreateView(CreateView):
    form_class = CategoryForm
    schema = CategoryOut

    async def form_valid(self, form: CategoryForm) -> Response:
        try:
            self.object = await form.save(self.db)
        except IntegrityError:
            await self.db.rollback()
            raise DomainError("SLUG_TAKEN", "Une catégorie utilise déjà ce slug") from None
        return self.json_response(self.serialize(self.object), status_code=self.success_status)


class RestockView(ActionView):
    """Réassort (admin) : notifie les membres abonnés si le produit était en rupture."""

    form_class = RestockForm
    schema = ProductOut

    def get_queryset(self):
        return Product.objects.filter()

    async def perform(self, form: Optional[Form]) -> Any:
        notified = await ProductAgent(self.object, self.db, self.background).restock(form.quantity)
        return {"product": self.serialize(self.object), "notified": notified}


class PublishView(ActionView):
    schema = ProductOut
    publish = True

    def get_queryset(self):
        return Product.objects.filter()

    async def perform(self, form: Optional[Form]) -> Any:
        agent = ProductAgent(self.object, self.db, self.background)
        product = await (agent.publish() if self.publish else agent.unpublish())
        return self.serialize(product)


class StockAlertCreateView(ActionView):
    """Abonnement d’un membre (par email) au retour en stock d’un produit publié."""

    form_class = StockAlertForm
    schema = StockAlertOut

    def get_queryset(self):
        return Product.objects.published()

    async def perform(self, form: Optional[Form]) -> Any:
        member = await Member.objects.by_email(form.email).first(self.db)
        if member is None:
            raise NotFound("Membre introuvable", code="MEMBER_NOT_FOUND")

        alert, created = await ProductAgent(self.object, self.db, self.background).subscribe(member)
        self.success_status = 201 if created else 200
        return {"alert": self.serialize(alert), "created": created}
