"""
Inventory module.

Warehouses, on-hand quantities, stock movements and barcode-driven stock entry.
"""

from . import models  # noqa: F401
