"""Shared test fixtures.

Each test gets a brand-new in-memory SQLite schema, so service code is free
to commit and tests never see each other's rows.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.core.database import Base, get_db
from backend.app.core.security import create_access_token, get_password_hash
from backend.app.main import app
from backend.app.models.catalog import Product, RawMaterial
from backend.app.models.inventory import ProductInventory, RawMaterialInventory
from backend.app.models.user import RoleEnum, User


# ─── DB session on a throwaway schema ─────────────────────────────────────────


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite leaves foreign keys unchecked unless asked per connection
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Users per role ──────────────────────────────────────────────────────────


def _make_user(db: Session, username: str, role: RoleEnum) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=get_password_hash("pass"),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def admin_user(db: Session) -> User:
    return _make_user(db, "test_admin", RoleEnum.ADMIN)


@pytest.fixture()
def sales_user(db: Session) -> User:
    return _make_user(db, "test_sales", RoleEnum.SALES)


@pytest.fixture()
def procurement_user(db: Session) -> User:
    return _make_user(db, "test_procurement", RoleEnum.PROCUREMENT)


@pytest.fixture()
def management_user(db: Session) -> User:
    return _make_user(db, "test_management", RoleEnum.MANAGEMENT)


@pytest.fixture()
def admin_token(admin_user: User) -> str:
    return create_access_token(subject=str(admin_user.id))


@pytest.fixture()
def sales_token(sales_user: User) -> str:
    return create_access_token(subject=str(sales_user.id))


@pytest.fixture()
def procurement_token(procurement_user: User) -> str:
    return create_access_token(subject=str(procurement_user.id))


@pytest.fixture()
def management_token(management_user: User) -> str:
    return create_access_token(subject=str(management_user.id))


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


# ─── Catalog & inventory fixtures ────────────────────────────────────────────


@pytest.fixture()
def product_a(db: Session) -> Product:
    p = Product(product_code="PRD-A", product_name="Product A", price=Decimal("100.0000"))
    db.add(p)
    db.flush()
    db.add(
        ProductInventory(
            product_id=p.id,
            quantity=Decimal("50"),
            minimum_stock=Decimal("10"),
            maximum_stock=Decimal("1000"),
            reorder_point=Decimal("20"),
            unit="pcs",
        )
    )
    db.commit()
    return p


@pytest.fixture()
def product_low(db: Session) -> Product:
    """Product sitting below its reorder point."""
    p = Product(product_code="PRD-LOW", product_name="Low Product", price=Decimal("5.0000"))
    db.add(p)
    db.flush()
    db.add(
        ProductInventory(
            product_id=p.id,
            quantity=Decimal("15"),
            minimum_stock=Decimal("10"),
            maximum_stock=Decimal("1000"),
            reorder_point=Decimal("20"),
            unit="pcs",
        )
    )
    db.commit()
    return p


@pytest.fixture()
def product_empty(db: Session) -> Product:
    p = Product(product_code="PRD-OUT", product_name="Empty Product")
    db.add(p)
    db.flush()
    db.add(
        ProductInventory(
            product_id=p.id,
            quantity=Decimal("0"),
            minimum_stock=Decimal("10"),
            reorder_point=Decimal("20"),
            unit="pcs",
        )
    )
    db.commit()
    return p


@pytest.fixture()
def product_no_inventory(db: Session) -> Product:
    p = Product(product_code="PRD-NEW", product_name="New Product")
    db.add(p)
    db.commit()
    return p


@pytest.fixture()
def material_a(db: Session) -> RawMaterial:
    m = RawMaterial(
        material_code="RM-A", material_name="Material A", unit_price=Decimal("2.5000")
    )
    db.add(m)
    db.flush()
    db.add(
        RawMaterialInventory(
            raw_material_id=m.id,
            quantity=Decimal("500"),
            minimum_stock=Decimal("100"),
            maximum_stock=Decimal("10000"),
            reorder_point=Decimal("200"),
            unit="kg",
        )
    )
    db.commit()
    return m


@pytest.fixture()
def material_no_inventory(db: Session) -> RawMaterial:
    m = RawMaterial(material_code="RM-NEW", material_name="New Material")
    db.add(m)
    db.commit()
    return m
