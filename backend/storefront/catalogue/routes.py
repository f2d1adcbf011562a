from fastapi import APIRouter

from storefront.api.deps import AdminAuthDep
from storefront.catalogue.views import (
    CategoryCreateView,
    CategoryDetailView,
    CategoryListView,
    ProductCreateView,
    ProductDetailView,
    ProductListView,
    PublishView,
    RestockView,
    StockAlertCreateView,
)

"""
Catalogue Routes.

Table de routage de l’app : chemin -> vue “classe”.
Les routes d’administration (création, réassort, publication) exigent l’API key.
"""

router = APIRouter(prefix="/catalogue", tags=["catalogue"])

ProductListView.register(router, "/products", name="product_list")
ProductCreateView.register(router, "/products", name="product_create", dependencies=[AdminAuthDep])
ProductDetailView.register(router, "/products/{slug}", name="product_detail")
RestockView.register(router, "/products/{slug}/restock", name="product_restock", dependencies=[AdminAuthDep])
PublishView.register(router, "/products/{slug}/publish", name="product_publish", dependencies=[AdminAuthDep])
PublishView.register(
    router,
    "/products/{slug}/unpublish",
    name="product_unpublish",
    dependencies=[AdminAuthDep],
    publish=False,
)
StockAlertCreateView.register(router, "/products/{slug}/alerts", name="product_alert_create")

CategoryListView.register(router, "/categories", name="category_list")
CategoryCreateView.register(router, "/categories", name="category_create", dependencies=[AdminAuthDep])
CategoryDetailView.register(router, "/categories/{slug}", name="category_detail")
