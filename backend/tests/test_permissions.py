"""Tests for the role permission table and the permission dependency."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app.core.permissions import (
    CONCRETE_ACTIONS,
    Action,
    Resource,
    can_create,
    can_delete,
    can_export,
    can_manage,
    can_read,
    can_update,
    get_allowed_actions,
    get_role_permissions,
    has_permission,
)
from backend.app.models.user import RoleEnum
from backend.tests.conftest import auth


# ═══════════════════════════════════════════════════════════════════════════════
#  Permission table
# ═══════════════════════════════════════════════════════════════════════════════


class TestPermissionTable:
    @pytest.mark.parametrize("resource", [r for r in Resource if r is not Resource.DASHBOARD])
    def test_admin_manages_everything(self, resource: Resource) -> None:
        assert can_manage(RoleEnum.ADMIN, resource)
        for action in CONCRETE_ACTIONS:
            assert has_permission(RoleEnum.ADMIN, resource, action)

    def test_admin_dashboard_is_read_only(self) -> None:
        assert can_read(RoleEnum.ADMIN, Resource.DASHBOARD)
        assert not can_update(RoleEnum.ADMIN, Resource.DASHBOARD)

    def test_sales_inventory_read_only(self) -> None:
        assert can_read(RoleEnum.SALES, Resource.INVENTORY)
        assert not can_create(RoleEnum.SALES, Resource.INVENTORY)
        assert not can_update(RoleEnum.SALES, Resource.INVENTORY)

    def test_sales_cannot_touch_suppliers(self) -> None:
        assert not can_read(RoleEnum.SALES, Resource.SUPPLIERS)

    def test_sales_never_deletes(self) -> None:
        for resource in Resource:
            assert not can_delete(RoleEnum.SALES, resource)

    def test_procurement_inventory_cru(self) -> None:
        assert can_create(RoleEnum.PROCUREMENT, Resource.INVENTORY)
        assert can_read(RoleEnum.PROCUREMENT, Resource.INVENTORY)
        assert can_update(RoleEnum.PROCUREMENT, Resource.INVENTORY)
        assert not can_delete(RoleEnum.PROCUREMENT, Resource.INVENTORY)

    def test_procurement_products_read_only(self) -> None:
        assert can_read(RoleEnum.PROCUREMENT, Resource.PRODUCTS)
        assert not can_update(RoleEnum.PROCUREMENT, Resource.PRODUCTS)

    def test_management_reads_and_exports_reports(self) -> None:
        assert can_read(RoleEnum.MANAGEMENT, Resource.REPORTS)
        assert can_export(RoleEnum.MANAGEMENT, Resource.REPORTS)
        assert not can_update(RoleEnum.MANAGEMENT, Resource.INVENTORY)

    def test_management_has_no_user_access(self) -> None:
        assert not can_read(RoleEnum.MANAGEMENT, Resource.USERS)

    def test_string_arguments_are_coerced(self) -> None:
        assert has_permission("procurement", "inventory", "update")
        assert has_permission("PROCUREMENT", "INVENTORY", "UPDATE")
        assert not has_permission("sales", "inventory", "update")

    def test_unknown_values_deny_without_raising(self) -> None:
        assert not has_permission("janitor", Resource.INVENTORY, Action.READ)
        assert not has_permission(RoleEnum.ADMIN, "spaceships", Action.READ)
        assert not has_permission(RoleEnum.ADMIN, Resource.INVENTORY, "fly")
        assert not has_permission(None, None, None)  # type: ignore[arg-type]

    def test_allowed_actions_expand_manage(self) -> None:
        assert get_allowed_actions(RoleEnum.ADMIN, Resource.INVENTORY) == list(
            CONCRETE_ACTIONS
        )

    def test_allowed_actions_in_canonical_order(self) -> None:
        assert get_allowed_actions(RoleEnum.PROCUREMENT, Resource.INVENTORY) == [
            Action.CREATE,
            Action.READ,
            Action.UPDATE,
        ]
        assert get_allowed_actions(RoleEnum.SALES, Resource.SUPPLIERS) == []

    def test_role_permissions_for_unknown_role_are_empty(self) -> None:
        assert dict(get_role_permissions("janitor")) == {}
        assert Resource.INVENTORY in get_role_permissions(RoleEnum.SALES)

    def test_table_is_read_only(self) -> None:
        grants = get_role_permissions(RoleEnum.SALES)
        with pytest.raises(TypeError):
            grants[Resource.USERS] = frozenset({Action.MANAGE})  # type: ignore[index]


# ═══════════════════════════════════════════════════════════════════════════════
#  Enforcement through the API
# ═══════════════════════════════════════════════════════════════════════════════


class TestPermissionEnforcement:
    def test_sales_can_view_inventory(
        self, client: TestClient, sales_token: str, product_a
    ) -> None:
        resp = client.get("/api/v1/inventory/products", headers=auth(sales_token))
        assert resp.status_code == 200

    def test_sales_cannot_adjust(
        self, client: TestClient, sales_token: str, product_a
    ) -> None:
        resp = client.post(
            "/api/v1/inventory/adjust",
            json={
                "item_kind": "product",
                "item_id": str(product_a.id),
                "quantity_change": "5",
            },
            headers=auth(sales_token),
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "You don't have permission to update inventory"

    def test_management_cannot_record_replacement(
        self, client: TestClient, management_token: str, product_a
    ) -> None:
        resp = client.post(
            "/api/v1/inventory/replacements",
            json={
                "sale_id": "S-1",
                "product_id": str(product_a.id),
                "quantity": "1",
                "reason": "damaged",
            },
            headers=auth(management_token),
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "You don't have permission to create inventory"

    def test_missing_token_is_401(self, client: TestClient) -> None:
        resp = client.get("/api/v1/inventory/products")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_garbage_token_is_401(self, client: TestClient) -> None:
        resp = client.get("/api/v1/inventory/products", headers=auth("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.json()["message"] == "Could not validate credentials"
