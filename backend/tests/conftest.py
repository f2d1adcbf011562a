# backend/tests/conftest.py
import os

# Configuration de test : doit précéder tout import de storefront (settings instancié à l'import)
os.environ["ENV"] = "test"
os.environ["API_KEY"] = ""
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["MAIL_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from storefront.core import mail
from storefront.core.rate_limit import rate_limiter
from storefront.core.settings import settings
from storefront.db.base import Base, utcnow
from storefront.db.session import get_db
from storefront.main import app
from storefront.models import Category, Member, Product, StockAlert


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Chaque test repart d'une outbox vide, sans rate-limit ni API key."""
    monkeypatch.setattr(settings, "MAIL_BACKEND", "memory")
    monkeypatch.setattr(settings, "MAIL_DEFERRED", True)
    monkeypatch.setattr(settings, "API_KEY", "")
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    mail.outbox.clear()
    rate_limiter.reset()
    yield
    mail.outbox.clear()


@pytest.fixture
def outbox():
    return mail.outbox


@pytest.fixture
def db_path(tmp_path):
    """Base SQLite neuve par test (schéma créé via un engine sync)."""
    path = tmp_path / "test.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path


@pytest.fixture
def session_factory(db_path):
    # NullPool : aucune connexion partagée entre la boucle pytest et celle du TestClient
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Fabriques (tests async : agents, QuerySet, signaux) ---

@pytest.fixture
def make_member(db):
    async def _make(email="alice@example.com", first_name="Alice", last_name="Martin", is_active=True, days_ago=0):
        member = Member(
            first_name=first_name,
            last_name=last_name,
            email=email,
            is_active=is_active,
            joined_at=utcnow() - timedelta(days=days_ago),
        )
        db.add(member)
        await db.commit()
        return member

    return _make


@pytest.fixture
def make_category(db):
    async def _make(name="Papeterie", slug=None):
        category = Category(name=name, slug=slug)
        db.add(category)
        await db.commit()
        return category

    return _make


@pytest.fixture
def make_product(db):
    async def _make(name="Carnet A5", price_cents=1290, stock=10, is_published=True, category=None, **extra):
        product = Product(
            name=name,
            price_cents=price_cents,
            stock=stock,
            is_published=is_published,
            category=category,
            **extra,
        )
        db.add(product)
        await db.commit()
        return product

    return _make


@pytest.fixture
def make_alert(db):
    async def _make(member, product):
        alert = StockAlert(member=member, product=product)
        db.add(alert)
        await db.commit()
        return alert

    return _make


# --- Helpers HTTP (tests des vues) ---

@pytest.fixture
def signup(client):
    def _signup(email="alice@example.com", first_name="alice", last_name="martin"):
        resp = client.post(
            "/account/signup",
            json={"first_name": first_name, "last_name": last_name, "email": email},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _signup


@pytest.fixture
def create_product(client):
    def _create(name="Carnet A5", price="12.90", stock=10, is_published=True, **extra):
        payload = {"name": name, "price": price, "stock": stock, "is_published": is_published, **extra}
        resp = client.post("/catalogue/products", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
