"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- auth.py: /api/v1/auth/* endpoints (registration, login, tokens)
- api_keys.py: /api/v1/api-keys/* endpoints (issue, list, revoke)
- users.py: /api/v1/users/me/* endpoints (profile, usage)
- admin.py: /api/v1/admin/* endpoints (stats, all keys, users, logs)
- tools.py: /api/v1/tools/* metered endpoints and the /s/{code} redirect

Each router is imported and registered in main.py.
"""

from app.routers.admin import router as admin_router
from app.routers.api_keys import router as api_keys_router
from app.routers.auth import router as auth_router
from app.routers.tools import redirect_router
from app.routers.tools import router as tools_router
from app.routers.users import router as users_router

__all__ = [
    "admin_router",
    "api_keys_router",
    "auth_router",
    "redirect_router",
    "tools_router",
    "users_router",
]
