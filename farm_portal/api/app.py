"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback
from datetime import date, datetime

from flask import Flask
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS

from farm_portal.config import TOKEN_EXPIRY_HOURS
from farm_portal.database import create_schema, init_engine
from farm_portal.api.routes import register_routes


class FarmJSONProvider(DefaultJSONProvider):
    """Serialise dates as ISO strings instead of HTTP dates."""

    @staticmethod
    def default(o):
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(engine=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    app.json = FarmJSONProvider(app)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if engine is None:
            print("[init] Initializing database connection...")
            engine = init_engine()
        create_schema(engine)
        print("[init] ✓ API server ready")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, engine)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Farm Portal – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] CORS enabled: True")
    print(f"[server] Session expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - GET  http://{host}:{port}/api/sections")
    print(f"  - GET  http://{host}:{port}/api/sections/<key>")
    print(f"  - GET  http://{host}:{port}/api/collections/<collection>")
    print(f"  - GET  http://{host}:{port}/api/dashboard")
    print(f"  - GET  http://{host}:{port}/api/health/reminders")
    print(f"  - GET  http://{host}:{port}/api/financial/summary")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
