"""
Client side of barcode intake: scanner adapter, flow controller and the
HTTP calls it makes against the WMS API. Importing this package does not
touch the database layer.
"""

from .client import ApiClient, ApiError
from .flow import BarcodeFlow
from .lookup import CatalogClient, LookupFailed, ProductLookup
from .scanner import CameraUnavailable, DecodeMiss, ScannerAdapter, manual_entry, scan_into
from .schemas import Product, SessionUser, StockEntry
from .session import SessionStore
from .states import FlowEvent, FlowState, InvalidTransition

__all__ = [
    "ApiClient",
    "ApiError",
    "BarcodeFlow",
    "CameraUnavailable",
    "CatalogClient",
    "DecodeMiss",
    "FlowEvent",
    "FlowState",
    "InvalidTransition",
    "LookupFailed",
    "Product",
    "ProductLookup",
    "ScannerAdapter",
    "SessionStore",
    "SessionUser",
    "StockEntry",
    "manual_entry",
    "scan_into",
]
