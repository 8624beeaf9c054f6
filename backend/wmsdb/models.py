# backend/wmsdb/models.py
"""
Import ORM models from each app so that Base.metadata.create_all() sees
every table and string-based relationships resolve.

The actual model classes are kept in wmsdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models      # users / auth
from .apps.catalog import models as catalog_models        # products + barcodes
from .apps.inventory import models as inventory_models    # warehouses + stock
from .apps.audit import models as audit_models            # audit trail

__all__ = [
    "accounts_models",
    "catalog_models",
    "inventory_models",
    "audit_models",
]
