import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi import BackgroundTasks
from pydantic import ValidationError
from sqlalchemy import event, inspect
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from starlette.requests import Request

from storefront.core.errors import AppHTTPException, DomainError, NotFound, error_payload
from storefront.core.forms import form_errors
from storefront.core.logging import JsonFormatter, RequestIdFilter
from storefront.core import rate_limit
from storefront.core.rate_limit import InMemoryRateLimiter
from storefront.core.request_id import ensure_request_id, get_request_id, set_request_id
from storefront.core.security import require_api_key
from storefront.core.settings import Settings, settings
from storefront.core.tasks import defer
from storefront.db.session import get_db, init_models
from storefront.main import app
from storefront.member.models import Member
from storefront.member.signals import normalize_email
from storefront.product.models import Category, Product
from storefront.product.signals import ensure_category_slug, ensure_product_fields
from storefront.member.forms import MemberSignupForm


def _request(method="POST", path="/account/signup", headers=None):
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("10.0.0.1", 5000),
    }
    return Request(scope)


# --- Erreurs ---

def test_error_payload_shape():
    payload = error_payload(code="NOT_FOUND", message="Produit introuvable", status=404, request_id="rid-1")
    error = payload["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["status"] == 404
    assert error["request_id"] == "rid-1"
    assert "timestamp" in error
    assert "details" not in error

    payload = error_payload(code="X", message="m", status=409, request_id="r", details={"slug": "a"})
    assert payload["error"]["details"] == {"slug": "a"}


def test_domain_errors_carry_their_status():
    assert DomainError("EMAIL_TAKEN", "pris").status_code == 409
    assert DomainError("INVALID_QUANTITY", "non", status=422).status_code == 422

    missing = NotFound()
    assert missing.status_code == 404
    assert missing.code == "NOT_FOUND"
    assert isinstance(missing, DomainError)


def test_form_errors_flattens_locations():
    with pytest.raises(ValidationError) as exc:
        MemberSignupForm.model_validate({"email": "bad"})
    fields = sorted(e["field"] for e in form_errors(exc.value))
    assert fields == ["email", "first_name"]


# --- Request id + logging ---

def test_ensure_request_id_reuses_or_generates():
    assert ensure_request_id("  abc ") == "abc"
    assert get_request_id() == "abc"

    generated = ensure_request_id(None)
    assert len(generated) == 36
    set_request_id(None)


def test_json_formatter_includes_request_id_and_extras():
    set_request_id("rid-9")
    record = logging.LogRecord("storefront.product", logging.INFO, __file__, 1, "product_restocked", None, None)
    record.event = "product_restocked"
    record.count = 3
    RequestIdFilter().filter(record)

    line = json.loads(JsonFormatter().format(record))
    set_request_id(None)

    assert line["request_id"] == "rid-9"
    assert line["msg"] == "product_restocked"
    assert line["event"] == "product_restocked"
    assert line["count"] == 3
    assert line["level"] == "INFO"


# --- Rate limit ---

def test_rate_limiter_scope_and_limit(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 1)
    monkeypatch.setattr(settings, "RATE_LIMIT_PATHS", "/account, /catalogue/products/")

    limiter = InMemoryRateLimiter()
    assert limiter.applies_to(_request())
    assert not limiter.applies_to(_request(method="OPTIONS"))
    assert not limiter.applies_to(_request(method="GET", path="/health"))

    limiter.check(_request())
    with pytest.raises(AppHTTPException) as exc:
        limiter.check(_request())
    assert exc.value.status_code == 429

    limiter.reset()
    limiter.check(_request())


def test_rate_limiter_evicts_expired_windows(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 5)
    clock = SimpleNamespace(now=1000.0)
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: clock.now))

    limiter = InMemoryRateLimiter()
    for member_id in ("a", "b", "c"):
        limiter.check(_request(path=f"/account/members/{member_id}/deactivate"))
    assert len(limiter._buckets) == 3

    clock.now += 61
    limiter.check(_request())
    assert list(limiter._buckets) == [("10.0.0.1", "POST /account/signup")]


# --- Sécurité ---

async def test_require_api_key(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "")
    monkeypatch.setattr(settings, "ENV", "prod")
    with pytest.raises(AppHTTPException) as exc:
        await require_api_key(_request())
    assert exc.value.status_code == 500

    monkeypatch.setattr(settings, "API_KEY", "k")
    with pytest.raises(AppHTTPException) as exc:
        await require_api_key(_request(headers={"X-API-Key": "wrong"}))
    assert exc.value.status_code == 401

    await require_api_key(_request(headers={"Authorization": "Bearer k"}))
    await require_api_key(_request(headers={"X-API-Key": "k"}))


# --- Tâches ---

async def test_defer_runs_now_or_later(monkeypatch):
    calls = []

    async def job(value):
        calls.append(value)

    assert await defer(None, job, 1) is False
    assert calls == [1]

    background = BackgroundTasks()
    assert await defer(background, job, 2) is True
    assert calls == [1]
    await background()
    assert calls == [1, 2]

    monkeypatch.setattr(settings, "MAIL_DEFERRED", False)
    assert await defer(BackgroundTasks(), calls.append, 3) is False
    assert calls == [1, 2, 3]


# --- Schéma ---

async def test_init_models_creates_every_table(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}", poolclass=NullPool)
    await init_models(engine)

    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    await engine.dispose()

    assert set(tables) == {"members", "categories", "products", "stock_alerts"}


def test_app_registers_orm_signals_without_schema_creation():
    assert settings.DB_AUTO_CREATE is False
    assert event.contains(Member, "before_insert", normalize_email)
    assert event.contains(Category, "before_insert", ensure_category_slug)
    assert event.contains(Product, "before_update", ensure_product_fields)

    # Process neuf : seul l’import de l’app doit suffire à brancher les signaux
    code = (
        "import sys, storefront.main\n"
        "print('storefront.member.signals' in sys.modules, 'storefront.product.signals' in sys.modules)"
    )
    backend = Path(__file__).resolve().parents[1]
    env = {**os.environ, "DB_AUTO_CREATE": "false", "PYTHONPATH": str(backend)}
    out = subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True, check=True)
    assert out.stdout.strip().splitlines()[-1].split() == ["True", "True"]


# --- API (health, request id) ---

def test_health(client):
    resp = client.get("/health", headers={"X-Request-Id": "hello"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "env": "test"}
    assert resp.headers["X-Request-Id"] == "hello"

    assert client.get("/health/db").json() == {"status": "ok", "db": {"ok": True}}


def test_unknown_route_uses_error_format(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_health_db_reports_degraded_database(client):
    class UnreachableSession:
        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

    async def unreachable_db():
        yield UnreachableSession()

    app.dependency_overrides[get_db] = unreachable_db

    resp = client.get("/health/db")
    assert resp.status_code == 200
    assert resp.json() == {"status": "degraded", "db": {"ok": False}}


def test_cors_defaults_to_local_dev_origins(client):
    assert Settings.model_fields["CORS_ORIGINS"].default == ""

    preflight = {"Access-Control-Request-Method": "GET"}
    resp = client.options("/health", headers={"Origin": "http://localhost:8000", **preflight})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:8000"

    resp = client.options("/health", headers={"Origin": "http://localhost:5173", **preflight})
    assert "access-control-allow-origin" not in resp.headers
