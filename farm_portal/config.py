"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Roles ────────────────────────────────────────────────────────────
ROLE_ADMINISTRATOR = "administrator"
ROLE_FARM = "farm"
ROLE_CUSTOMER = "customer"

# Canonical order, used when naming roles in messages.
ROLES = (ROLE_ADMINISTRATOR, ROLE_FARM, ROLE_CUSTOMER)

STAFF_ROLES = frozenset({ROLE_ADMINISTRATOR, ROLE_FARM})
ADMIN_ONLY = frozenset({ROLE_ADMINISTRATOR})

# ── Derived view-state ───────────────────────────────────────────────
REMINDER_HORIZON_DAYS = 30
RECENT_ITEMS = 5

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = 24
MAX_RESULTS_RETURN = 1000


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
