from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from wmsdb.apps.catalog.schemas import ProductRead
from . import models


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = None
    cost_center: str = Field(..., min_length=1, max_length=100)
    warehouse_type: models.WarehouseTypeEnum = models.WarehouseTypeEnum.SUB
    parent_warehouse_id: Optional[int] = None


class WarehouseRead(WarehouseCreate):
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryLevelRead(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    quantity: int
    updated_at: datetime
    product: ProductRead
    warehouse: WarehouseRead

    class Config:
        from_attributes = True


class InventoryMovementCreate(BaseModel):
    product_id: int
    warehouse_id: int
    movement_type: models.MovementTypeEnum
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class StockEntryRequest(BaseModel):
    """Initial receipt of stock; always lands in the cost center's MAIN warehouse."""

    product_id: int
    cost_center: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    serial_numbers: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class InventorySerialRead(BaseModel):
    serial_number: str

    class Config:
        from_attributes = True


class InventoryMovementRead(BaseModel):
    id: int
    product_id: int
    warehouse_id: int
    movement_type: models.MovementTypeEnum
    quantity: int
    unit_price: Optional[Decimal] = None
    reason: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime
    serials: List[InventorySerialRead] = Field(default_factory=list)

    class Config:
        from_attributes = True
