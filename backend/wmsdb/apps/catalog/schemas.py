from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=50)
    barcode: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    min_stock: int = Field(default=0, ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    requires_serial: bool = False


class ProductCreate(ProductBase):
    pass


class ProductRead(ProductBase):
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BarcodeAssociation(BaseModel):
    barcode: str = Field(..., min_length=1, max_length=64)
