# Overview: All gated actions organized by category.
# Each action is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- VEHICLES --

VEHICLE_PERMISSIONS = [
    (
        "VIEW_VEHICLES",
        "View Vehicles",
        "Search and list cars, view car details and current owner",
        PermissionCategory.VEHICLES,
    ),
    (
        "REGISTER_VEHICLE",
        "Register Vehicle",
        "Register a new car together with its (found or created) owner",
        PermissionCategory.VEHICLES,
    ),
    (
        "EDIT_VEHICLE",
        "Edit Vehicle",
        "Edit car attributes (plate, VIN, make, model...)",
        PermissionCategory.VEHICLES,
    ),
    (
        "TRANSFER_OWNERSHIP",
        "Transfer Ownership",
        "Close the current ownership of a car and assign it to another client",
        PermissionCategory.VEHICLES,
    ),
]


# -- CLIENTS --

CLIENT_PERMISSIONS = [
    (
        "VIEW_CLIENTS",
        "View Clients",
        "List clients and view their ownership history",
        PermissionCategory.CLIENTS,
    ),
    (
        "EDIT_CLIENT",
        "Edit Client",
        "Edit client contact data",
        PermissionCategory.CLIENTS,
    ),
]


# -- INTERVENTIONS --

INTERVENTION_PERMISSIONS = [
    (
        "VIEW_INTERVENTIONS",
        "View Work Orders",
        "List work orders, view details and receipts",
        PermissionCategory.INTERVENTIONS,
    ),
    (
        "CREATE_INTERVENTION",
        "Open Work Order",
        "Open a new work order on a car",
        PermissionCategory.INTERVENTIONS,
    ),
    (
        "UPDATE_INTERVENTION",
        "Update Work Order",
        "Change notes, cost or status of a work order",
        PermissionCategory.INTERVENTIONS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "List staff accounts and roles",
        PermissionCategory.USERS,
    ),
    (
        "CREATE_USER",
        "Create User",
        "Create new staff accounts",
        PermissionCategory.USERS,
    ),
    (
        "CHANGE_ROLE",
        "Change Role",
        "Change the role of another staff account",
        PermissionCategory.USERS,
    ),
    (
        "DELETE_USER",
        "Delete User",
        "Delete another staff account without work orders",
        PermissionCategory.USERS,
    ),
    (
        "EDIT_OWN_PROFILE",
        "Edit Own Profile",
        "Change own name, email and password",
        PermissionCategory.USERS,
    ),
]


# Combined list of all permissions
PERMISSION_DEFINITIONS = (
    VEHICLE_PERMISSIONS
    + CLIENT_PERMISSIONS
    + INTERVENTION_PERMISSIONS
    + USER_PERMISSIONS
)

# Actions an actor may never perform on their own account
SELF_PROTECTED_PERMISSIONS = frozenset({"CHANGE_ROLE", "DELETE_USER"})
