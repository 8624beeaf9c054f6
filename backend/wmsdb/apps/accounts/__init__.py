# backend/wmsdb/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- User accounts and roles
- Public auth endpoints (login, logout, current user)
- Admin endpoints (manage users)

Services and routers are imported explicitly by callers; `wmsdb.security`
depends on the models alone.
"""

from . import models  # noqa: F401

__all__ = ["models"]
