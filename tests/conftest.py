"""Shared fixtures: in-memory database, seeded catalog, signed tokens."""

import os
import time
import uuid
from types import SimpleNamespace

# Settings are read at import time, so the environment comes first.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront.core.cache import catalog_cache
from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Brand, Category, Inventory, Product, ProductPrice
from storefront.models.user import User

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    catalog_cache.clear()
    yield
    catalog_cache.clear()


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    # No context manager: the lifespan (Postgres table check) stays off.
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user: User, expires_in: int = 3600, **claims) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        "user_metadata": {"user_type": user.user_type, "full_name": user.full_name},
    }
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user)}"}


def _user(session: Session, email: str, **fields) -> User:
    user = User(id=uuid.uuid4(), email=email, **fields)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def retail_user(session):
    return _user(session, "sara@example.com", full_name="سارا احمدی", user_type="b2c")


@pytest.fixture
def wholesale_user(session):
    return _user(
        session,
        "buyer@office.ir",
        full_name="علی رضایی",
        user_type="b2b",
        company_name="دفتر فنی رضایی",
    )


@pytest.fixture
def admin_user(session):
    return _user(session, "admin@mojtabatahrir.com", full_name="مدیر", role="admin")


@pytest.fixture
def catalog(session):
    """
    writing-tools (with sub-category pens): blue pen, pencil (out of stock)
    paper: notebook (retail price only)
    """
    writing = Category(name="نوشت افزار", slug="writing-tools")
    paper = Category(name="کاغذ و دفتر", slug="paper")
    session.add_all([writing, paper])
    session.commit()
    pens = Category(name="خودکار", slug="pens", parent_id=writing.id)
    pars = Brand(name="Pars", slug="pars")
    canco = Brand(name="Canco", slug="canco")
    session.add_all([pens, pars, canco])
    session.commit()

    pen = Product(
        name="خودکار آبی",
        slug="blue-pen",
        sku="PEN-001",
        description="Blue ballpoint pen",
        category_id=writing.id,
        brand_id=pars.id,
        images=["https://cdn.example.com/pen.jpg"],
        is_featured=True,
    )
    pencil = Product(
        name="مداد مشکی",
        slug="black-pencil",
        sku="PCL-001",
        description="HB pencil",
        category_id=writing.id,
        brand_id=pars.id,
    )
    notebook = Product(
        name="دفتر ۱۰۰ برگ",
        slug="notebook-100",
        sku="NB-100",
        description="Notebook",
        category_id=paper.id,
        brand_id=canco.id,
    )
    hidden = Product(
        name="خودکار قدیمی",
        slug="old-pen",
        sku="PEN-OLD",
        category_id=writing.id,
        is_active=False,
    )
    session.add_all([pen, pencil, notebook, hidden])
    session.commit()

    session.add_all(
        [
            ProductPrice(product_id=pen.id, price_type="retail", price=10000, compare_price=12000),
            ProductPrice(product_id=pen.id, price_type="wholesale", price=8000, min_quantity=10),
            ProductPrice(product_id=pencil.id, price_type="retail", price=5000),
            ProductPrice(product_id=pencil.id, price_type="wholesale", price=4000),
            ProductPrice(product_id=notebook.id, price_type="retail", price=30000),
            Inventory(product_id=pen.id, quantity=50),
            Inventory(product_id=pencil.id, quantity=0),
            Inventory(product_id=notebook.id, quantity=10),
        ]
    )
    session.commit()

    return SimpleNamespace(
        writing=writing,
        paper=paper,
        pens=pens,
        pars=pars,
        canco=canco,
        pen=pen,
        pencil=pencil,
        notebook=notebook,
        hidden=hidden,
    )
