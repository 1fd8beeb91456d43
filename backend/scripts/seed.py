"""Seed the database with one user per role and a small demo catalog.

Usage:
    python -m backend.scripts.seed

Products and raw materials get their inventory records through the same
sync routine the API exposes, then opening stock is booked as goods
received so the ledger starts consistent with the stored quantities.
"""

from __future__ import annotations

from decimal import Decimal

from backend.app.core.database import SessionLocal
from backend.app.core.security import get_password_hash
from backend.app.models.catalog import Product, RawMaterial
from backend.app.models.inventory import ItemKind
from backend.app.models.user import RoleEnum, User
from backend.app.services.inventory import receive_goods, sync_inventory_records

DEMO_PASSWORD = "ValorSales@2026!"

USERS: list[tuple[str, str, RoleEnum]] = [
    ("admin", "admin@example.com", RoleEnum.ADMIN),
    ("sales", "sales@example.com", RoleEnum.SALES),
    ("procurement", "procurement@example.com", RoleEnum.PROCUREMENT),
    ("management", "management@example.com", RoleEnum.MANAGEMENT),
]

PRODUCTS: list[tuple[str, str, Decimal, Decimal]] = [
    # code, name, price, opening stock
    ("PRD-001", "Laundry Detergent 1kg", Decimal("12.5000"), Decimal("150")),
    ("PRD-002", "Dishwashing Liquid 500ml", Decimal("6.7500"), Decimal("15")),
    ("PRD-003", "Floor Cleaner 2L", Decimal("18.0000"), Decimal("0")),
]

RAW_MATERIALS: list[tuple[str, str, Decimal, Decimal]] = [
    # code, name, unit price, opening stock
    ("RM-001", "Sodium Carbonate", Decimal("1.2000"), Decimal("2500")),
    ("RM-002", "Surfactant LAS", Decimal("3.4000"), Decimal("180")),
]


def seed() -> None:
    db = SessionLocal()
    try:
        # ── Users ──────────────────────────────────────────────────────
        admin_id = None
        for username, email, role in USERS:
            user = db.query(User).filter_by(username=username).first()
            if user is None:
                user = User(
                    username=username,
                    email=email,
                    hashed_password=get_password_hash(DEMO_PASSWORD),
                    role=role,
                )
                db.add(user)
                db.flush()
                print(f"Created {role.value} user: {username}")
            if role is RoleEnum.ADMIN:
                admin_id = user.id

        # ── Catalog ────────────────────────────────────────────────────
        opening: list[tuple[ItemKind, object, Decimal]] = []
        for code, name, price, stock in PRODUCTS:
            product = db.query(Product).filter_by(product_code=code).first()
            if product is None:
                product = Product(product_code=code, product_name=name, price=price)
                db.add(product)
                db.flush()
                print(f"Created product {code} - {name}")
                opening.append((ItemKind.PRODUCT, product.id, stock))
        for code, name, price, stock in RAW_MATERIALS:
            material = db.query(RawMaterial).filter_by(material_code=code).first()
            if material is None:
                material = RawMaterial(material_code=code, material_name=name, unit_price=price)
                db.add(material)
                db.flush()
                print(f"Created raw material {code} - {name}")
                opening.append((ItemKind.RAW_MATERIAL, material.id, stock))
        db.commit()

        # ── Inventory ──────────────────────────────────────────────────
        result = sync_inventory_records(db)
        print(
            f"Created {result.product_inventory_created} product and "
            f"{result.raw_material_inventory_created} raw material inventory records"
        )
        for kind, item_id, stock in opening:
            if stock > 0:
                receive_goods(
                    db,
                    item_kind=kind,
                    item_id=item_id,
                    quantity=stock,
                    user_id=admin_id,
                    notes="Opening stock",
                )

        print("Seed complete.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
