# Overview: Permission category constants for grouping related actions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    VEHICLES = "VEHICLES"
    CLIENTS = "CLIENTS"
    INTERVENTIONS = "INTERVENTIONS"
    USERS = "USERS"
