# Overview: Role matrix for CRUD actions.
# Each permission is defined as: (code, description, roles allowed)

from typing import Any, Dict, Optional

from ..data.models import UserRole
from ..schemas.action_models import Entity, Operation, PURCHASE_EDIT_KEYS


ADMIN_ONLY = frozenset({UserRole.admin})
ADMIN_AND_STAFF = frozenset({UserRole.admin, UserRole.staff})


PERMISSION_DEFINITIONS = [
    ("CREATE_PRODUCT", "create products", ADMIN_AND_STAFF),
    ("VIEW_PRODUCTS", "view products", ADMIN_AND_STAFF),
    ("UPDATE_PRODUCT", "update products and stock", ADMIN_AND_STAFF),
    ("DELETE_PRODUCT", "delete products", ADMIN_ONLY),
    ("CREATE_PURCHASE", "record purchases", ADMIN_ONLY),
    ("VIEW_PURCHASES", "view purchases", ADMIN_AND_STAFF),
    ("UPDATE_PURCHASE_STATUS", "change purchase status", ADMIN_AND_STAFF),
    ("EDIT_PURCHASE", "edit purchase quantity or buyer", ADMIN_ONLY),
    ("DELETE_PURCHASE", "delete purchases", ADMIN_ONLY),
]

ACTION_PERMISSIONS = {
    (Entity.product, Operation.create): "CREATE_PRODUCT",
    (Entity.product, Operation.read): "VIEW_PRODUCTS",
    (Entity.product, Operation.update): "UPDATE_PRODUCT",
    (Entity.product, Operation.delete): "DELETE_PRODUCT",
    (Entity.purchase, Operation.create): "CREATE_PURCHASE",
    (Entity.purchase, Operation.read): "VIEW_PURCHASES",
    (Entity.purchase, Operation.update): "UPDATE_PURCHASE_STATUS",
    (Entity.purchase, Operation.delete): "DELETE_PURCHASE",
}

NOT_LOGGED_IN = "CRUD actions cannot be run because you are not logged in."


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {"code": perm[0], "description": perm[1], "roles": perm[2]}
    return None


def required_permission(entity: Entity, operation: Operation, raw_params: Optional[Dict[str, Any]] = None) -> str:
    """Permission code needed for an action. Purchase edits are stricter than
    status changes, so the raw params are inspected before validation."""
    if entity == Entity.purchase and operation == Operation.update:
        params = raw_params or {}
        if any(params.get(k) not in (None, "") for k in PURCHASE_EDIT_KEYS):
            return "EDIT_PURCHASE"
    return ACTION_PERMISSIONS[(entity, operation)]


def has_permission(role: Optional[UserRole], code: str) -> bool:
    perm = get_permission_definition(code)
    return bool(perm) and role in perm["roles"]


def check_permission(user, entity: Entity, operation: Operation, raw_params=None) -> Optional[str]:
    """Return a user-facing denial message, or None when the action is allowed."""
    if user is None:
        return NOT_LOGGED_IN

    code = required_permission(entity, operation, raw_params)
    if has_permission(user.role, code):
        return None

    perm = get_permission_definition(code)
    if perm["roles"] == ADMIN_ONLY:
        return f"Only an admin may {perm['description']}."
    allowed = " or ".join(sorted(r.value for r in perm["roles"]))
    return f"Only {allowed} users may {perm['description']}."
