"""
Farm Portal - REST API Server
Run with: python api_server.py  (reads DB_URI, JWT_SECRET_KEY, API_HOST, API_PORT from .env)
"""

from farm_portal.api.app import main

if __name__ == "__main__":
    main()
