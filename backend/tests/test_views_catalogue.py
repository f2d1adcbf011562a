def _create_category(client, name="Papeterie", **extra):
    resp = client.post("/catalogue/categories", json={"name": name, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_product_returns_serialized_product(client):
    category = _create_category(client, name="Café & Thé")
    assert category["slug"] == "cafe-the"

    resp = client.post(
        "/catalogue/products",
        json={"name": "Moulin à café", "price": "24.90", "stock": 3, "is_published": True, "category_slug": "cafe-the"},
    )
    assert resp.status_code == 201
    assert resp.headers["content-type"] == "application/json; charset=utf-8"

    data = resp.json()
    assert data["slug"] == "moulin-a-cafe"
    assert data["price"] == "24.90"
    assert data["price_cents"] == 2490
    assert data["display_price"] == "24.90 EUR"
    assert data["in_stock"] is True
    assert data["is_low_stock"] is True
    assert data["category"]["slug"] == "cafe-the"


def test_create_product_errors(client, create_product):
    resp = client.post("/catalogue/products", json={"name": "Stylo", "price": "1", "category_slug": "inconnue"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    create_product(name="Stylo")
    resp = client.post("/catalogue/products", json={"name": "Stylo", "price": "2"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_TAKEN"

    resp = client.post("/catalogue/products", json={"name": "Gomme", "price": "abc"})
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert [d["field"] for d in error["details"]] == ["price"]

    resp = client.post("/catalogue/products", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_JSON"


def test_duplicate_category_slug_conflicts(client):
    _create_category(client, name="Maison")
    resp = client.post("/catalogue/categories", json={"name": "maison"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SLUG_TAKEN"


def test_admin_routes_require_api_key_when_configured(client, monkeypatch):
    from storefront.core.settings import settings

    monkeypatch.setattr(settings, "API_KEY", "s3cret")

    resp = client.post("/catalogue/categories", json={"name": "Jardin"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    resp = client.post("/catalogue/categories", json={"name": "Jardin"}, headers={"Authorization": "Bearer s3cret"})
    assert resp.status_code == 201

    # les routes publiques restent ouvertes
    assert client.get("/catalogue/categories").status_code == 200


def test_product_list_filters_and_pagination(client, create_product):
    _create_category(client, name="Bureau")
    create_product(name="Stylo plume", price="24.50", stock=0, category_slug="bureau")
    create_product(name="Carnet", price="12.90", stock=8, category_slug="bureau")
    create_product(name="Théière", price="49.00", stock=2)
    create_product(name="Brouillon", price="1.00", is_published=False)

    body = client.get("/catalogue/products").json()
    assert [p["name"] for p in body["data"]] == ["Carnet", "Stylo plume", "Théière"]
    assert body["meta"]["total"] == 3

    def names(**params):
        return [p["name"] for p in client.get("/catalogue/products", params=params).json()["data"]]

    assert names(category="bureau") == ["Carnet", "Stylo plume"]
    assert names(in_stock="true", sort="price") == ["Carnet", "Théière"]
    assert names(min_price=2000, max_price=3000) == ["Stylo plume"]
    assert names(q="thé") == ["Théière"]
    assert names(sort="price") == ["Carnet", "Stylo plume", "Théière"]

    page = client.get("/catalogue/products", params={"page": 2, "page_size": 2}).json()
    assert [p["name"] for p in page["data"]] == ["Théière"]
    assert page["meta"] == {"page": 2, "page_size": 2, "total": 3, "pages": 2, "has_next": False, "has_prev": True}


def test_product_list_rejects_bad_query_params(client):
    for params in ({"min_price": "abc"}, {"max_price": "-1"}, {"in_stock": "maybe"}, {"page_size": "1000"}, {"page": "0"}):
        resp = client.get("/catalogue/products", params=params)
        assert resp.status_code == 422, params
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_product_detail_hides_unpublished(client, create_product):
    create_product(name="Carnet")
    create_product(name="Prototype", is_published=False)

    assert client.get("/catalogue/products/carnet").json()["name"] == "Carnet"

    resp = client.get("/catalogue/products/prototype", headers={"X-Request-Id": "req-42"})
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["request_id"] == "req-42"
    assert resp.headers["X-Request-Id"] == "req-42"


def test_html_rendering(client, create_product):
    _create_category(client, name="Cuisine")
    create_product(name="Tasse grès", price="14.50", stock=0, category_slug="cuisine")

    resp = client.get("/catalogue/products", params={"format": "html"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Tasse grès" in resp.text
    assert "14.50 EUR" in resp.text
    assert "1 produit" in resp.text

    resp = client.get("/catalogue/products/tasse-gres", headers={"Accept": "text/html"})
    assert "Rupture de stock" in resp.text
    assert 'name="email"' in resp.text

    resp = client.get("/catalogue/categories", params={"format": "html"})
    assert "Cuisine" in resp.text


def test_category_detail_lists_published_products(client, create_product):
    _create_category(client, name="Jardin")
    create_product(name="Sécateur", category_slug="jardin")
    create_product(name="Arrosoir", category_slug="jardin", is_published=False)
    create_product(name="Hors catégorie")

    body = client.get("/catalogue/categories/jardin").json()
    assert body["category"]["name"] == "Jardin"
    assert [p["name"] for p in body["data"]] == ["Sécateur"]
    assert body["meta"]["total"] == 1

    assert client.get("/catalogue/categories/inconnue").status_code == 404


def test_stock_alert_and_restock_flow(client, create_product, signup, outbox):
    signup(email="camille@example.com", first_name="camille")
    create_product(name="Théière fonte", stock=0)
    outbox.clear()

    resp = client.post("/catalogue/products/theiere-fonte/alerts", json={"email": "Camille@Example.com"})
    assert resp.status_code == 201
    assert resp.json()["created"] is True

    resp = client.post("/catalogue/products/theiere-fonte/alerts", json={"email": "camille@example.com"})
    assert resp.status_code == 200
    assert resp.json()["created"] is False

    resp = client.post("/catalogue/products/theiere-fonte/restock", json={"quantity": 6})
    assert resp.status_code == 200
    body = resp.json()
    assert body["notified"] == 1
    assert body["product"]["stock"] == 6

    assert [m.subject for m in outbox] == ["Théière fonte est de retour en stock"]
    assert outbox[0].to == ["camille@example.com"]

    resp = client.post("/catalogue/products/theiere-fonte/alerts", json={"email": "camille@example.com"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "ALREADY_IN_STOCK"


def test_stock_alert_and_restock_errors(client, create_product):
    create_product(name="Bougie", stock=0)

    resp = client.post("/catalogue/products/bougie/alerts", json={"email": "nobody@example.com"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "MEMBER_NOT_FOUND"

    resp = client.post("/catalogue/products/bougie/restock", json={"quantity": 0})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_QUANTITY"

    resp = client.post("/catalogue/products/absent/restock", json={"quantity": 1})
    assert resp.status_code == 404


def test_publish_and_unpublish(client, create_product):
    create_product(name="Plaid", is_published=False)
    assert client.get("/catalogue/products/plaid").status_code == 404

    resp = client.post("/catalogue/products/plaid/publish")
    assert resp.status_code == 200
    assert resp.json()["is_published"] is True
    assert client.get("/catalogue/products/plaid").status_code == 200

    resp = client.post("/catalogue/products/plaid/unpublish")
    assert resp.json()["is_published"] is False


def test_method_not_allowed_uses_error_format(client):
    resp = client.delete("/catalogue/products")
    assert resp.status_code == 405
    assert resp.json()["error"]["code"] == "METHOD_NOT_ALLOWED"
