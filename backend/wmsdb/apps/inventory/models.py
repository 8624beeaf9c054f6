from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wmsdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WarehouseTypeEnum(str, enum.Enum):
    MAIN = "MAIN"
    SUB = "SUB"


class MovementTypeEnum(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


class Warehouse(Base):
    __tablename__ = "warehouses"
    __table_args__ = (
        Index("ix_warehouses_cost_center_type", "cost_center", "warehouse_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    location = Column(Text, nullable=True)
    cost_center = Column(String(100), nullable=False, index=True)
    warehouse_type = Column(
        SAEnum(WarehouseTypeEnum, name="warehouse_type_enum", native_enum=False),
        nullable=False,
        default=WarehouseTypeEnum.SUB,
    )
    parent_warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    parent = relationship("Warehouse", remote_side=[id], lazy="joined")


class InventoryLevel(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_inventory_product_warehouse"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    product = relationship("Product", lazy="joined")
    warehouse = relationship("Warehouse", lazy="joined")


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"
    __table_args__ = (
        Index("ix_inventory_movements_product_time", "product_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True)
    movement_type = Column(
        SAEnum(MovementTypeEnum, name="movement_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False)
    # Price in force when the movement was recorded
    unit_price = Column(Numeric(10, 2), nullable=True)
    reason = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    product = relationship("Product", lazy="joined")
    warehouse = relationship("Warehouse", lazy="joined")
    serials = relationship("InventorySerial", back_populates="movement", lazy="selectin")


class InventorySerial(Base):
    __tablename__ = "inventory_serials"
    __table_args__ = (
        UniqueConstraint("product_id", "serial_number", name="uq_inventory_serial"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(String(64), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="SET NULL"), nullable=True)
    movement_id = Column(Integer, ForeignKey("inventory_movements.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    movement = relationship("InventoryMovement", back_populates="serials")
