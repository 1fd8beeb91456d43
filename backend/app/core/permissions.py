"""Static role-based permission table.

Every role maps each resource it may touch to the set of actions allowed on
it. The table is built at import time and never changes while the process
runs. ``MANAGE`` on a resource grants every action on that resource.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import TypeVar

from backend.app.models.user import RoleEnum


class Resource(str, enum.Enum):
    CUSTOMERS = "customers"
    SUPPLIERS = "suppliers"
    PRODUCTS = "products"
    RAW_MATERIALS = "raw_materials"
    SALES = "sales"
    PURCHASES = "purchases"
    INVENTORY = "inventory"
    REPORTS = "reports"
    USERS = "users"
    DASHBOARD = "dashboard"


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    EXPORT = "export"
    MANAGE = "manage"


CONCRETE_ACTIONS: tuple[Action, ...] = (
    Action.CREATE,
    Action.READ,
    Action.UPDATE,
    Action.DELETE,
    Action.EXPORT,
)

_CRU = frozenset({Action.CREATE, Action.READ, Action.UPDATE})
_R = frozenset({Action.READ})
_RE = frozenset({Action.READ, Action.EXPORT})
_M = frozenset({Action.MANAGE})


def _freeze(
    table: dict[RoleEnum, dict[Resource, frozenset[Action]]],
) -> Mapping[RoleEnum, Mapping[Resource, frozenset[Action]]]:
    return MappingProxyType(
        {role: MappingProxyType(dict(grants)) for role, grants in table.items()}
    )


ROLE_PERMISSIONS = _freeze(
    {
        RoleEnum.ADMIN: {
            Resource.CUSTOMERS: _M,
            Resource.SUPPLIERS: _M,
            Resource.PRODUCTS: _M,
            Resource.RAW_MATERIALS: _M,
            Resource.SALES: _M,
            Resource.PURCHASES: _M,
            Resource.INVENTORY: _M,
            Resource.REPORTS: _M,
            Resource.USERS: _M,
            Resource.DASHBOARD: _R,
        },
        # Sales officer: sales and customers, read-only catalog and stock
        RoleEnum.SALES: {
            Resource.CUSTOMERS: _CRU,
            Resource.PRODUCTS: _R,
            Resource.SALES: _CRU,
            Resource.INVENTORY: _R,
            Resource.REPORTS: _RE,
            Resource.DASHBOARD: _R,
        },
        # Procurement officer: suppliers, raw materials, purchases and stock
        RoleEnum.PROCUREMENT: {
            Resource.SUPPLIERS: _CRU,
            Resource.RAW_MATERIALS: _CRU,
            Resource.PURCHASES: _CRU,
            Resource.INVENTORY: _CRU,
            Resource.PRODUCTS: _R,
            Resource.REPORTS: _RE,
            Resource.DASHBOARD: _R,
        },
        RoleEnum.MANAGEMENT: {
            Resource.CUSTOMERS: _R,
            Resource.SUPPLIERS: _R,
            Resource.PRODUCTS: _R,
            Resource.RAW_MATERIALS: _R,
            Resource.SALES: _R,
            Resource.PURCHASES: _R,
            Resource.INVENTORY: _R,
            Resource.REPORTS: _RE,
            Resource.DASHBOARD: _R,
        },
    }
)


_E = TypeVar("_E", bound=enum.Enum)


def _coerce(enum_cls: type[_E], value: object) -> _E | None:
    """Accept an enum member, its value (``"products"``) or its name (``"PRODUCTS"``)."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        pass
    try:
        return enum_cls[value.upper()]
    except KeyError:
        pass
    try:
        return enum_cls(value.lower())
    except ValueError:
        return None


def _grants(role: RoleEnum | str, resource: Resource | str) -> frozenset[Action]:
    role_ = _coerce(RoleEnum, role)
    resource_ = _coerce(Resource, resource)
    if role_ is None or resource_ is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role_, {}).get(resource_, frozenset())


def has_permission(
    role: RoleEnum | str,
    resource: Resource | str,
    action: Action | str,
) -> bool:
    """Return True when *role* may perform *action* on *resource*.

    Unknown roles, resources or actions yield False; this never raises.
    """
    action_ = _coerce(Action, action)
    if action_ is None:
        return False
    grants = _grants(role, resource)
    return action_ in grants or Action.MANAGE in grants


def can_create(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.CREATE)


def can_read(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.READ)


def can_update(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.UPDATE)


def can_delete(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.DELETE)


def can_export(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.EXPORT)


def can_manage(role: RoleEnum | str, resource: Resource | str) -> bool:
    return has_permission(role, resource, Action.MANAGE)


def get_role_permissions(role: RoleEnum | str) -> Mapping[Resource, frozenset[Action]]:
    """Return the raw grants for *role* (empty for an unknown role)."""
    role_ = _coerce(RoleEnum, role)
    if role_ is None:
        return MappingProxyType({})
    return ROLE_PERMISSIONS.get(role_, MappingProxyType({}))


def get_allowed_actions(
    role: RoleEnum | str, resource: Resource | str
) -> list[Action]:
    """Concrete actions *role* may perform on *resource*; MANAGE expands to all five."""
    grants = _grants(role, resource)
    if Action.MANAGE in grants:
        return list(CONCRETE_ACTIONS)
    return [a for a in CONCRETE_ACTIONS if a in grants]
