"""
Web Routes Package.

- api: REST API endpoints (/api/*)
"""

from trackkeys.web.routes.api import register_api_routes

__all__ = [
    "register_api_routes",
]
