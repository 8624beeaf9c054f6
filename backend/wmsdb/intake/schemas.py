"""Client-side views of the records the intake flow reads from the API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    sku: str
    barcode: Optional[str] = None
    description: Optional[str] = None
    min_stock: int = 0
    price: Optional[Decimal] = None
    requires_serial: bool = False
    is_active: bool = True


class SessionUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str
    full_name: Optional[str] = None
    role: str
    is_active: bool = True
    last_login_at: Optional[datetime] = None


class StockEntry(BaseModel):
    product_id: int
    cost_center: str
    quantity: int
    unit_price: Optional[Decimal] = None
    serial_numbers: List[str] = []
    reason: Optional[str] = None
