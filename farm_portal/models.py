"""
Domain dataclasses used across the application.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional


@dataclass(frozen=True)
class Identity:
    """The signed-in user as projected from the users table."""
    id: str
    email: str
    full_name: Optional[str]
    role: str                  # "administrator", "farm", or "customer"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
        }


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of one Access Gate evaluation. Recomputed per request."""
    granted: bool
    outcome: str               # "render_children", "render_fallback", "render_nothing"
    mode: str
    required_roles: FrozenSet[str]
    reason: Optional[str] = None      # "unauthenticated" or "wrong_role" when denied
    fallback: Optional[str] = None


@dataclass(frozen=True)
class Dueness:
    """Classification of a record's next_due_date against a reference day."""
    status: str                # "overdue", "due_soon", "not_due"
    days: int                  # days past for overdue, days left otherwise


@dataclass
class Write:
    """A pending write against one collection."""
    op: str                    # "insert", "update", "delete"
    data: Dict[str, Any] = field(default_factory=dict)
    row_id: Optional[str] = None


@dataclass
class WriteResult:
    ok: bool
    row: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    not_found: bool = False
