"""
Flask route handlers for the REST API.
"""

import os
import sys
import traceback
from datetime import date, datetime, timedelta

from flask import jsonify, request
from sqlalchemy import text

from farm_portal.config import REMINDER_HORIZON_DAYS, STAFF_ROLES, TOKEN_EXPIRY_HOURS
from farm_portal.metrics import (
    annotate_inventory,
    as_date,
    expected_birth_for,
    financial_summary,
    overdue_records,
    upcoming_reminders,
)
from farm_portal.models import Write
from farm_portal.rbac import MODE_BLOCK, MODES, evaluate_access, load_identity, load_identity_by_id
from farm_portal.sections import (
    accessible_sections,
    due_records,
    find_section,
    group_by_category,
    render_section,
    section_for_collection,
)
from farm_portal.store import CollectionView, RowStore, StoreError, get_table
from farm_portal.validation import ValidationError, coerce_filters, validate_row
from farm_portal.api.auth import (
    current_identity,
    gated,
    render_denied,
    sessions,
    token_required,
)


def _today():
    """Reference day for derived metrics; ?as_of=YYYY-MM-DD overrides it."""
    raw = request.args.get("as_of")
    if not raw:
        return date.today()
    parsed = as_date(raw)
    if parsed is None:
        raise ValidationError(["as_of must be a date (YYYY-MM-DD)"])
    return parsed


def _store_failure(e: StoreError):
    return jsonify({"success": False, "error": str(e), "retry": True}), 502


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""

    store = RowStore(engine)

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Farm Portal API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "sections": "/api/sections",
                "collections": "/api/collections/<collection>",
                "dashboard": "/api/dashboard",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check failed: {e}", file=sys.stderr)

        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "active_sessions": len(sessions),
        }), 200 if all_healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400

        data = request.json or {}
        email = str(data.get("email", "")).strip()
        password = str(data.get("password", ""))
        if not email or not password:
            return jsonify({"error": "email and password are required"}), 400

        try:
            identity = load_identity(engine, email, password)
        except ValueError as e:
            return jsonify({"error": f"Authentication failed: {str(e)}"}), 401
        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"error": "Internal server error during login"}), 500

        sessions.cleanup_expired()
        token = sessions.open(identity)
        print(f"[auth] {identity.email} signed in (role={identity.role})")

        return jsonify({
            "success": True,
            "token": token,
            "user": identity.to_dict(),
            "sections": group_by_category(accessible_sections(identity)),
            "expires_at": (datetime.utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS)).isoformat(),
        }), 200

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        sessions.close(request.token)
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    @app.route("/api/user/profile", methods=["GET"])
    @token_required
    def get_profile():
        session_data = request.session_data
        return jsonify({
            "success": True,
            "user": request.identity.to_dict(),
            "session": {
                "created_at": session_data["created_at"].isoformat(),
                "last_activity": session_data["last_activity"].isoformat(),
            },
        }), 200

    @app.route("/api/user/refresh", methods=["POST"])
    @token_required
    def refresh_profile():
        try:
            identity = load_identity_by_id(engine, request.identity.id)
        except ValueError as e:
            identity = None
            print(f"[WARN] Profile refresh rejected: {e}", file=sys.stderr)
        sessions.refresh(request.token, identity)
        if identity is None:
            return jsonify({"error": "Account is no longer active. Please sign in again."}), 401
        return jsonify({
            "success": True,
            "user": identity.to_dict(),
            "sections": group_by_category(accessible_sections(identity)),
        }), 200

    # ── Access Gate / sections ───────────────────────────────────────

    @app.route("/api/gate", methods=["GET"])
    def check_gate():
        roles = [r.strip() for r in request.args.get("roles", "").split(",") if r.strip()]
        mode = request.args.get("mode", MODE_BLOCK)
        if mode not in MODES:
            return jsonify({"error": f"mode must be one of: {', '.join(MODES)}"}), 400

        decision = evaluate_access(current_identity(), roles, mode)
        return jsonify({
            "granted": decision.granted,
            "outcome": decision.outcome,
            "mode": decision.mode,
            "reason": decision.reason,
            "fallback": decision.fallback,
            "required_roles": sorted(decision.required_roles),
        }), 200

    @app.route("/api/sections", methods=["GET"])
    def list_sections():
        identity = current_identity()
        return jsonify({
            "success": True,
            "authenticated": identity is not None,
            "categories": group_by_category(accessible_sections(identity)),
        }), 200

    @app.route("/api/sections/<key>", methods=["GET"])
    def open_section(key):
        section = find_section(key)
        if section is None:
            return jsonify({"error": f"Unknown section: {key}"}), 404

        mode = request.args.get("mode", MODE_BLOCK)
        if mode not in MODES:
            return jsonify({"error": f"mode must be one of: {', '.join(MODES)}"}), 400

        identity = current_identity()
        decision = evaluate_access(identity, section.required_roles, mode)
        if not decision.granted:
            return render_denied(decision, identity)

        try:
            return jsonify({"success": True, **render_section(section, store, _today())}), 200
        except StoreError as e:
            return _store_failure(e)

    # ── Collections (CRUD) ───────────────────────────────────────────

    def _collection_gate(collection):
        """(None, error_response) or (identity, None) for a collection."""
        section = section_for_collection(collection)
        if section is None:
            return None, (jsonify({"error": f"Unknown collection: {collection}"}), 404)
        identity = current_identity()
        decision = evaluate_access(identity, section.required_roles, MODE_BLOCK)
        if not decision.granted:
            return None, render_denied(decision, identity)
        return identity, None

    @app.route("/api/collections/<collection>", methods=["GET"])
    def list_rows(collection):
        _, denied = _collection_gate(collection)
        if denied:
            return denied

        params = request.args.to_dict()
        order_by = params.pop("order_by", None)
        params.pop("token", None)
        filters = coerce_filters(collection, params)
        if order_by and order_by.lstrip("-") not in get_table(collection).c:
            raise ValidationError([f"Cannot order by '{order_by}'"])

        view = CollectionView(store, collection, filters=filters, order_by=order_by)
        rows = view.reload()
        if view.error:
            return jsonify({"success": False, "error": view.error, "retry": True}), 502
        return jsonify({"success": True, "collection": collection, "count": len(rows), "rows": rows}), 200

    @app.route("/api/collections/<collection>", methods=["POST"])
    def create_row(collection):
        _, denied = _collection_gate(collection)
        if denied:
            return denied
        data = validate_row(collection, request.get_json(silent=True))
        return _apply_write(collection, Write("insert", data=data), 201)

    @app.route("/api/collections/<collection>/<row_id>", methods=["PUT", "PATCH"])
    def update_row(collection, row_id):
        _, denied = _collection_gate(collection)
        if denied:
            return denied
        data = validate_row(collection, request.get_json(silent=True), partial=True)
        return _apply_write(collection, Write("update", data=data, row_id=row_id), 200)

    @app.route("/api/collections/<collection>/<row_id>", methods=["DELETE"])
    def delete_row(collection, row_id):
        _, denied = _collection_gate(collection)
        if denied:
            return denied
        return _apply_write(collection, Write("delete", row_id=row_id), 200)

    def _apply_write(collection, write, success_status):
        view = CollectionView(store, collection)
        result = view.submit(write)
        if result.not_found:
            return jsonify({"success": False, "error": result.error}), 404
        if not result.ok:
            return jsonify({"success": False, "error": result.error, "retry": True}), 502

        rows = view.reload()
        return jsonify({
            "success": True,
            "row": result.row,
            "rows": rows,
            "reload_error": view.error,
        }), success_status

    # ── Derived view-state ───────────────────────────────────────────

    @app.route("/api/dashboard", methods=["GET"])
    @gated(STAFF_ROLES)
    def dashboard():
        try:
            return jsonify({"success": True, **render_section(find_section("dashboard"), store, _today())}), 200
        except StoreError as e:
            return _store_failure(e)

    @app.route("/api/inventory/status", methods=["GET"])
    @gated(STAFF_ROLES)
    def inventory_status():
        try:
            items = annotate_inventory(store.select("inventory_items", order_by="name"))
        except StoreError as e:
            return _store_failure(e)
        low = [i for i in items if i["stock_status"] == "low"]
        return jsonify({"success": True, "items": items, "low_stock": low, "low_stock_count": len(low)}), 200

    @app.route("/api/health/reminders", methods=["GET"])
    @gated(STAFF_ROLES)
    def health_reminders():
        try:
            horizon = int(request.args.get("horizon", REMINDER_HORIZON_DAYS))
        except ValueError:
            return jsonify({"error": "horizon must be a whole number of days"}), 400
        if horizon < 0:
            return jsonify({"error": "horizon cannot be negative"}), 400

        today = _today()
        try:
            records = due_records(store)
        except StoreError as e:
            return _store_failure(e)
        return jsonify({
            "success": True,
            "as_of": today,
            "horizon_days": horizon,
            "reminders": upcoming_reminders(records, today, horizon),
            "overdue": overdue_records(records, today, horizon),
        }), 200

    @app.route("/api/breeding/expected-date", methods=["POST"])
    @gated(STAFF_ROLES)
    def breeding_expected_date():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError(["Request body must be a JSON object"])
        expected = expected_birth_for(data.get("breeding_date"), data.get("animal_type"))
        return jsonify({"expected_birth": expected.isoformat() if expected else ""}), 200

    @app.route("/api/financial/summary", methods=["GET"])
    @gated(STAFF_ROLES)
    def financial_totals():
        try:
            transactions = store.select("financial_transactions")
        except StoreError as e:
            return _store_failure(e)
        return jsonify({"success": True, "totals": financial_summary(transactions)}), 200

    # ── Development ──────────────────────────────────────────────────

    @app.route("/api/sessions", methods=["GET"])
    def get_sessions_info():
        if os.getenv("FLASK_ENV") != "development":
            return jsonify({"error": "Not available in production"}), 403

        sessions_info = []
        for _token, data in sessions.items():
            identity = data["identity"]
            sessions_info.append({
                "user_id": identity.id,
                "email": identity.email,
                "role": identity.role,
                "created_at": data["created_at"].isoformat(),
                "last_activity": data["last_activity"].isoformat(),
            })
        return jsonify({
            "active_sessions": len(sessions),
            "sessions": sessions_info,
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(ValidationError)
    def validation_failed(e):
        return jsonify({"success": False, "error": "Validation failed", "details": e.errors}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
