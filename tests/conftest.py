import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from api import models
from api.main import app, get_db
from pos.admin import CatalogAdmin
from pos.catalog import CatalogStore
from pos.client import ApiClient
from pos.lifecycle import OrderLifecycle
from pos.services import CatalogService, OrderService
from pos.session import SessionContext


@pytest.fixture
def db_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    models.Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def http(db_factory):
    def override_get_db():
        db = db_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def users(db_factory):
    db = db_factory()
    db.add_all([
        models.Usuario(
            username="admin", password_hash=generate_password_hash("admin123"), role="ADMIN", first_name="Ana"
        ),
        models.Usuario(
            username="mozo", password_hash=generate_password_hash("mozo123"), role="MOZO", first_name="Luis"
        ),
    ])
    db.commit()
    db.close()


@pytest.fixture
def catalog_data(db_factory):
    db = db_factory()
    bebidas = models.Categoria(name="Bebidas", ord=2)
    platos = models.Categoria(name="Platos", ord=1)
    inactiva = models.Categoria(name="Temporada", ord=0, is_active=False)
    db.add_all([bebidas, platos, inactiva])
    db.flush()

    soda = models.Producto(code="BE-001", name="Soda", price=Decimal("5.00"), type="BEBIDA", category_id=bebidas.id)
    lomo = models.Producto(code="PL-001", name="Lomo", price=Decimal("10.00"), type="COMIDA", category_id=platos.id)
    agotado = models.Producto(
        code="PL-099", name="Ceviche", price=Decimal("7.00"), category_id=platos.id, is_available=False
    )
    mesa1 = models.Espacio(code="M1", name="Mesa 1", type="MESA", capacity=4)
    mesa2 = models.Espacio(code="M2", name="Mesa 2", type="MESA", capacity=2, status="OCUPADA")
    db.add_all([soda, lomo, agotado, mesa1, mesa2])
    db.commit()

    data = SimpleNamespace(
        bebidas=bebidas.id, platos=platos.id, inactiva=inactiva.id,
        soda=soda.id, lomo=lomo.id, agotado=agotado.id,
        mesa1=mesa1.id, mesa2=mesa2.id,
    )
    db.close()
    return data


def auth_headers(http, username, password):
    r = http.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def api(http):
    return ApiClient(base_url="http://testserver", http=http)


@pytest.fixture
def session(api, users, tmp_path):
    ctx = SessionContext(api, path=str(tmp_path / "session.json"))
    ctx.login("admin", "admin123")
    return ctx


@pytest.fixture
def store(api, session, catalog_data):
    store = CatalogStore(CatalogService(api))
    assert store.reload().ok
    return store


@pytest.fixture
def lifecycle(api, store):
    lc = OrderLifecycle(OrderService(api), store)
    assert lc.reload().ok
    return lc


@pytest.fixture
def admin(store, session):
    return CatalogAdmin(store, session)
