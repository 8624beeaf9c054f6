"""
Catalog module.

Product master data and barcode resolution.
"""

from . import models  # noqa: F401
