"""
Permission catalog.

WHY: Centralized permission definitions ensure consistency across routes,
the CLI seeding command and tests. Grants are stored per store
(StoreUserPermission); the creator of a store holds every permission in it.

DESIGN PRINCIPLES:
- Permissions are granular (one action per permission)
- Codes are "<module>.<action>" so a record kind maps to its module
- Modules group related permissions for UI display
"""


class PermissionModule:
    """Permission modules (one per record kind plus supporting areas)."""
    EXPENSES = "expenses"
    PURCHASES = "purchases"
    SALES = "sales"
    RECEIVABLES = "receivables"
    REPORTS = "reports"
    FINANCE_CATEGORIES = "finance_categories"
    VENDORS = "vendors"
    CLIENTS = "clients"
    STORES = "stores"


# Each permission is defined as: (code, name, module)
PERMISSION_DEFINITIONS = [
    # EXPENSES
    ("expenses.view", "View Expenses", PermissionModule.EXPENSES),
    ("expenses.create", "Create Expenses", PermissionModule.EXPENSES),
    ("expenses.edit", "Edit Expenses and Record Payments", PermissionModule.EXPENSES),

    # PURCHASES
    ("purchases.view", "View Purchases", PermissionModule.PURCHASES),
    ("purchases.create", "Create Purchases", PermissionModule.PURCHASES),
    ("purchases.edit", "Edit, Cancel and Refund Purchases", PermissionModule.PURCHASES),

    # SALES
    ("sales.view", "View Sales", PermissionModule.SALES),
    ("sales.create", "Create Sales", PermissionModule.SALES),
    ("sales.cancel", "Cancel and Refund Sales", PermissionModule.SALES),

    # RECEIVABLES
    ("receivables.view", "View Receivables", PermissionModule.RECEIVABLES),
    ("receivables.create", "Create Receivables", PermissionModule.RECEIVABLES),
    ("receivables.edit", "Edit Receivables and Record Payments", PermissionModule.RECEIVABLES),

    # SUPPORTING
    ("reports.view", "View Financial Reports", PermissionModule.REPORTS),
    ("finance_categories.manage", "Manage Income and Expense Categories", PermissionModule.FINANCE_CATEGORIES),
    ("vendors.manage", "Manage Vendors", PermissionModule.VENDORS),
    ("clients.manage", "Manage Clients", PermissionModule.CLIENTS),
    ("stores.manage_users", "Manage Store Members", PermissionModule.STORES),
]


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()
