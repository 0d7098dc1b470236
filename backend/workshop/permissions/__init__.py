# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    VEHICLE_PERMISSIONS,
    CLIENT_PERMISSIONS,
    INTERVENTION_PERMISSIONS,
    USER_PERMISSIONS,
    SELF_PROTECTED_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    get_role_permissions,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "VEHICLE_PERMISSIONS",
    "CLIENT_PERMISSIONS",
    "INTERVENTION_PERMISSIONS",
    "USER_PERMISSIONS",
    "SELF_PROTECTED_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "get_role_permissions",
]
