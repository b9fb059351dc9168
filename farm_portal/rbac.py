"""
Role-Based Access Control – loading identities and the Access Gate.
"""

import uuid
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import insert, text
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from farm_portal.config import ROLES
from farm_portal.database import users
from farm_portal.models import AccessDecision, Identity

MODE_BLOCK = "block"
MODE_INLINE_NOTICE = "inline-notice"
MODE_HIDE = "hide"
MODES = (MODE_BLOCK, MODE_INLINE_NOTICE, MODE_HIDE)

REASON_UNAUTHENTICATED = "unauthenticated"
REASON_WRONG_ROLE = "wrong_role"

OUTCOME_CHILDREN = "render_children"
OUTCOME_FALLBACK = "render_fallback"
OUTCOME_NOTHING = "render_nothing"


# ── Identity loading ─────────────────────────────────────────────────

def _identity_from_row(row) -> Identity:
    role = str(row["role"]).strip().lower()
    if role not in ROLES:
        raise ValueError(f"Unsupported role '{row['role']}' in users table.")
    return Identity(
        id=str(row["id"]),
        email=str(row["email"]),
        full_name=row["full_name"],
        role=role,
    )


def load_identity(engine, email: str, password: str) -> Identity:
    """Check credentials against the users table and return the Identity."""
    sql = text("""
        SELECT id, email, full_name, role, password_hash
        FROM users
        WHERE lower(email) = :email AND is_active = :active
    """)
    with engine.connect() as conn:
        row = conn.execute(sql, {"email": email.strip().lower(), "active": True}).mappings().first()

    if not row or not row["password_hash"] or not check_password_hash(row["password_hash"], password):
        raise ValueError("Invalid email or password.")

    return _identity_from_row(row)


def provision_identity(engine, email: str, full_name: str, role: str, password: str) -> Identity:
    """Insert a new active user with a hashed password."""
    role = role.strip().lower()
    if role not in ROLES:
        raise ValueError(f"Unsupported role '{role}'. Choose one of: {', '.join(ROLES)}")
    if not email.strip() or not password:
        raise ValueError("email and password are required")

    user_id = uuid.uuid4().hex
    try:
        with engine.begin() as conn:
            conn.execute(insert(users).values(
                id=user_id,
                email=email.strip().lower(),
                full_name=full_name,
                role=role,
                password_hash=generate_password_hash(password),
                is_active=True,
                created_at=datetime.utcnow(),
            ))
    except IntegrityError as e:
        raise ValueError(f"A user with email {email.strip().lower()} already exists.") from e
    return Identity(id=user_id, email=email.strip().lower(), full_name=full_name, role=role)


def load_identity_by_id(engine, user_id: str) -> Optional[Identity]:
    """Re-read an identity; None if the user is gone or deactivated."""
    sql = text("""
        SELECT id, email, full_name, role
        FROM users
        WHERE id = :id AND is_active = :active
    """)
    with engine.connect() as conn:
        row = conn.execute(sql, {"id": user_id, "active": True}).mappings().first()
    if not row:
        return None
    return _identity_from_row(row)


# ── Access Gate ──────────────────────────────────────────────────────

def describe_roles(roles: Iterable[str]) -> str:
    """Name a role set in canonical order, e.g. 'administrator or farm'."""
    roles = set(roles)
    ordered = [r for r in ROLES if r in roles] + sorted(roles - set(ROLES))
    return " or ".join(ordered) if ordered else "restricted"


def evaluate_access(
    identity: Optional[Identity],
    required_roles: Iterable[str],
    mode: str = MODE_BLOCK,
) -> AccessDecision:
    """
    Decide whether role-protected content renders for *identity*.

    Access is plain set membership. No role implies another, so an
    administrator only passes a gate that lists "administrator".
    """
    if mode not in MODES:
        raise ValueError(f"Unknown access mode: {mode}")

    required = frozenset(required_roles)

    if identity is not None and identity.role in required:
        return AccessDecision(
            granted=True,
            outcome=OUTCOME_CHILDREN,
            mode=mode,
            required_roles=required,
        )

    reason = REASON_UNAUTHENTICATED if identity is None else REASON_WRONG_ROLE

    if mode == MODE_HIDE:
        return AccessDecision(False, OUTCOME_NOTHING, mode, required, reason)

    if mode == MODE_INLINE_NOTICE:
        notice = f"This content requires {describe_roles(required)} access."
        return AccessDecision(False, OUTCOME_FALLBACK, mode, required, reason, notice)

    if reason == REASON_UNAUTHENTICATED:
        message = "Authentication required. Please sign in to access this page."
    else:
        message = (
            "Access denied. You don't have permission to access this page. "
            f"Required role: {describe_roles(required)}."
        )
    return AccessDecision(False, OUTCOME_FALLBACK, mode, required, reason, message)
