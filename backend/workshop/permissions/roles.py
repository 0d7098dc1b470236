# Overview: Role -> permission table. The single source of truth for gating.

from ..models.auth import StaffRole


_READ = {
    "VIEW_VEHICLES",
    "VIEW_CLIENTS",
    "VIEW_INTERVENTIONS",
    "EDIT_OWN_PROFILE",
}

_SHOP_FLOOR = _READ | {
    "EDIT_VEHICLE",
    "EDIT_CLIENT",
    "CREATE_INTERVENTION",
    "UPDATE_INTERVENTION",
}

DEFAULT_ROLE_PERMISSIONS = {
    StaffRole.ADMIN: frozenset(_SHOP_FLOOR | {
        "REGISTER_VEHICLE",
        "TRANSFER_OWNERSHIP",
        "VIEW_USERS",
        "CREATE_USER",
        "CHANGE_ROLE",
        "DELETE_USER",
    }),
    StaffRole.MECHANIC: frozenset(_SHOP_FLOOR),
    # VIEWER is read-only across the board
    StaffRole.VIEWER: frozenset(_READ),
}
