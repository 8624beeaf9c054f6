from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from wmsdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_active_name", "is_active", "name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(50), nullable=False, unique=True, index=True)
    # EAN/UPC/Code128 value printed on the item; unset until associated
    barcode = Column(String(64), nullable=True, unique=True, index=True)
    description = Column(Text, nullable=True)
    min_stock = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=True)
    requires_serial = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku} barcode={self.barcode}>"
