"""
JWT authentication, the process-wide session holder, and HTTP rendering of
Access Gate decisions.
"""

import uuid
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Dict, Iterable, Optional

import jwt
from flask import jsonify, request

from farm_portal.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from farm_portal.models import AccessDecision, Identity
from farm_portal.rbac import (
    MODE_BLOCK,
    MODE_HIDE,
    MODE_INLINE_NOTICE,
    REASON_UNAUTHENTICATED,
    evaluate_access,
)


def generate_token(identity: Identity) -> str:
    """Generate a JWT token for an authenticated user."""
    payload = {
        "user_id": identity.id,
        "role": identity.role,
        "jti": uuid.uuid4().hex,
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


class SessionHolder:
    """
    In-memory session store keyed by token (use Redis in production).

    Lifecycle: ``open`` at login, ``resolve`` on each request, ``refresh``
    when the identity is re-read from the store, ``close`` at logout.
    """

    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def open(self, identity: Identity) -> str:
        token = generate_token(identity)
        now = datetime.utcnow()
        self._sessions[token] = {
            "identity": identity,
            "created_at": now,
            "last_activity": now,
        }
        return token

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        return self._sessions.get(token)

    def resolve(self, token: Optional[str]) -> Optional[Identity]:
        """Identity for a live token; None when absent, invalid or logged out."""
        if not token or not verify_token(token):
            return None
        data = self._sessions.get(token)
        if data is None:
            return None
        data["last_activity"] = datetime.utcnow()
        return data["identity"]

    def refresh(self, token: str, identity: Optional[Identity]) -> None:
        if identity is None:
            self.close(token)
        elif token in self._sessions:
            self._sessions[token]["identity"] = identity

    def close(self, token: str) -> None:
        self._sessions.pop(token, None)

    def clear(self) -> None:
        self._sessions.clear()

    def cleanup_expired(self) -> int:
        """Remove sessions that have been inactive beyond TOKEN_EXPIRY_HOURS."""
        now = datetime.utcnow()
        expired = [
            tok for tok, data in self._sessions.items()
            if (now - data["last_activity"]).total_seconds() > TOKEN_EXPIRY_HOURS * 3600
        ]
        for tok in expired:
            del self._sessions[tok]
        if expired:
            print(f"[cleanup] Removed {len(expired)} expired sessions")
        return len(expired)

    def items(self):
        return self._sessions.items()

    def __len__(self):
        return len(self._sessions)


sessions = SessionHolder()


# ── Request helpers ──────────────────────────────────────────────────

def bearer_token() -> Optional[str]:
    """Token from the Authorization header, falling back to ?token=."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header:
        parts = auth_header.split(" ")
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
        return None
    return request.args.get("token")


def current_identity() -> Optional[Identity]:
    return sessions.resolve(bearer_token())


def token_required(f):
    """Decorator that protects endpoints with JWT authentication."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if "Authorization" in request.headers and bearer_token() is None:
            return jsonify({"error": "Invalid authorization header format"}), 401

        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication token is missing"}), 401

        if not verify_token(token):
            return jsonify({"error": "Invalid or expired token"}), 401

        if sessions.get(token) is None:
            return jsonify({"error": "Session not found. Please login again."}), 401

        request.identity = sessions.resolve(token)
        request.session_data = sessions.get(token)
        request.token = token

        return f(*args, **kwargs)

    return decorated


# ── Access Gate rendering ────────────────────────────────────────────

def render_denied(decision: AccessDecision, identity: Optional[Identity] = None):
    """Turn a denied AccessDecision into a Flask response."""
    roles = sorted(decision.required_roles)

    if decision.mode == MODE_HIDE:
        return "", 404

    if decision.mode == MODE_INLINE_NOTICE:
        return jsonify({"notice": decision.fallback, "required_roles": roles}), 403

    if decision.reason == REASON_UNAUTHENTICATED:
        return jsonify({"error": decision.fallback, "reason": decision.reason}), 401

    return jsonify({
        "error": decision.fallback,
        "reason": decision.reason,
        "required_roles": roles,
        "your_role": identity.role if identity else None,
    }), 403


def gated(required_roles: Iterable[str], mode: str = MODE_BLOCK):
    """
    Decorator that runs the Access Gate before the view.

    The gate is evaluated on every request against the current session, so
    a logout or role refresh takes effect on the next call.
    """
    required_roles = frozenset(required_roles)

    def wrapper(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            identity = current_identity()
            decision = evaluate_access(identity, required_roles, mode)
            if not decision.granted:
                return render_denied(decision, identity)
            request.identity = identity
            return f(*args, **kwargs)
        return decorated

    return wrapper
