from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from wmsdb.apps.audit import services as audit_services
from wmsdb.apps.catalog import models as catalog_models
from . import models, schemas

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Warehouses
# ---------------------------------------------------------------------------


def list_warehouses(db: Session) -> List[models.Warehouse]:
    return (
        db.query(models.Warehouse)
        .filter(models.Warehouse.is_active.is_(True))
        .order_by(models.Warehouse.name.asc())
        .all()
    )


def get_main_warehouse(db: Session, *, cost_center: str) -> Optional[models.Warehouse]:
    return (
        db.query(models.Warehouse)
        .filter(
            models.Warehouse.cost_center == cost_center.strip(),
            models.Warehouse.warehouse_type == models.WarehouseTypeEnum.MAIN,
            models.Warehouse.is_active.is_(True),
        )
        .first()
    )


def create_warehouse(db: Session, *, payload: schemas.WarehouseCreate) -> models.Warehouse:
    cost_center = payload.cost_center.strip()
    if payload.warehouse_type == models.WarehouseTypeEnum.MAIN:
        if payload.parent_warehouse_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A MAIN warehouse cannot have a parent.",
            )
        if get_main_warehouse(db, cost_center=cost_center):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cost center {cost_center} already has a MAIN warehouse.",
            )
    elif payload.parent_warehouse_id is not None:
        parent = _get_warehouse(db, payload.parent_warehouse_id)
        if parent.cost_center != cost_center:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A sub-warehouse must share its parent's cost center.",
            )

    warehouse = models.Warehouse(
        name=payload.name.strip(),
        location=payload.location,
        cost_center=cost_center,
        warehouse_type=payload.warehouse_type,
        parent_warehouse_id=payload.parent_warehouse_id,
        is_active=True,
    )
    db.add(warehouse)
    db.flush()
    return warehouse


def _get_warehouse(db: Session, warehouse_id: int) -> models.Warehouse:
    warehouse = db.query(models.Warehouse).filter(models.Warehouse.id == warehouse_id).first()
    if not warehouse or not warehouse.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Warehouse not found.")
    return warehouse


def _get_product(db: Session, product_id: int) -> catalog_models.Product:
    product = db.query(catalog_models.Product).filter(catalog_models.Product.id == product_id).first()
    if not product or not product.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found.")
    return product


# ---------------------------------------------------------------------------
# On-hand quantities
# ---------------------------------------------------------------------------


def _get_level(db: Session, *, product_id: int, warehouse_id: int) -> Optional[models.InventoryLevel]:
    return (
        db.query(models.InventoryLevel)
        .filter(
            models.InventoryLevel.product_id == product_id,
            models.InventoryLevel.warehouse_id == warehouse_id,
        )
        .first()
    )


def get_on_hand(db: Session, *, product_id: int, warehouse_id: int) -> int:
    level = _get_level(db, product_id=product_id, warehouse_id=warehouse_id)
    return level.quantity if level else 0


def _apply_to_level(
    db: Session,
    *,
    product_id: int,
    warehouse_id: int,
    delta: int,
) -> models.InventoryLevel:
    level = _get_level(db, product_id=product_id, warehouse_id=warehouse_id)
    if level is None:
        level = models.InventoryLevel(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
        db.add(level)
    new_quantity = (level.quantity or 0) + delta
    if new_quantity < 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Insufficient on-hand quantity.",
        )
    level.quantity = new_quantity
    level.updated_at = datetime.now(timezone.utc)
    db.flush()
    return level


def list_inventory(
    db: Session,
    *,
    warehouse_id: Optional[int] = None,
    product_id: Optional[int] = None,
) -> List[models.InventoryLevel]:
    query = db.query(models.InventoryLevel)
    if warehouse_id is not None:
        query = query.filter(models.InventoryLevel.warehouse_id == warehouse_id)
    if product_id is not None:
        query = query.filter(models.InventoryLevel.product_id == product_id)
    return query.order_by(models.InventoryLevel.updated_at.desc()).all()


def list_low_stock(db: Session) -> List[models.InventoryLevel]:
    return (
        db.query(models.InventoryLevel)
        .join(catalog_models.Product, catalog_models.Product.id == models.InventoryLevel.product_id)
        .filter(
            catalog_models.Product.is_active.is_(True),
            models.InventoryLevel.quantity <= catalog_models.Product.min_stock,
        )
        .order_by(models.InventoryLevel.quantity.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Movements
# ---------------------------------------------------------------------------


def _record_movement(
    db: Session,
    *,
    product: catalog_models.Product,
    warehouse: models.Warehouse,
    movement_type: models.MovementTypeEnum,
    quantity: int,
    reason: Optional[str],
    unit_price,
    actor_user_id: Optional[int],
) -> models.InventoryMovement:
    delta = quantity if movement_type == models.MovementTypeEnum.IN else -quantity
    _apply_to_level(db, product_id=product.id, warehouse_id=warehouse.id, delta=delta)

    movement = models.InventoryMovement(
        product_id=product.id,
        warehouse_id=warehouse.id,
        movement_type=movement_type,
        quantity=quantity,
        unit_price=unit_price,
        reason=reason,
        user_id=actor_user_id,
    )
    db.add(movement)
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="InventoryMovement",
        entity_id=str(movement.id),
        action=movement_type.value.lower(),
        after={
            "sku": product.sku,
            "warehouse_id": warehouse.id,
            "quantity": quantity,
        },
        critical=True,
    )
    return movement


def create_movement(
    db: Session,
    *,
    payload: schemas.InventoryMovementCreate,
    actor_user_id: Optional[int],
) -> models.InventoryMovement:
    product = _get_product(db, payload.product_id)
    warehouse = _get_warehouse(db, payload.warehouse_id)
    if product.requires_serial:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Serialized products must be received through stock entry.",
        )
    return _record_movement(
        db,
        product=product,
        warehouse=warehouse,
        movement_type=payload.movement_type,
        quantity=payload.quantity,
        reason=payload.reason,
        unit_price=product.price,
        actor_user_id=actor_user_id,
    )


def _validate_serials(
    db: Session,
    *,
    product: catalog_models.Product,
    quantity: int,
    serial_numbers: List[str],
) -> List[str]:
    serials = [s.strip() for s in serial_numbers if s and s.strip()]
    if not product.requires_serial:
        if serials:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="serial_numbers are only allowed for serialized products.",
            )
        return []
    if len(serials) != quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Serialized products need exactly one serial number per unit.",
        )
    if len(set(serials)) != len(serials):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Serial numbers must be unique.",
        )
    taken = (
        db.query(models.InventorySerial.serial_number)
        .filter(
            models.InventorySerial.product_id == product.id,
            models.InventorySerial.serial_number.in_(serials),
        )
        .all()
    )
    if taken:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Serial numbers already registered: {', '.join(sorted(row[0] for row in taken))}.",
        )
    return serials


def stock_entry(
    db: Session,
    *,
    payload: schemas.StockEntryRequest,
    actor_user_id: Optional[int],
) -> models.InventoryMovement:
    """
    Receive stock into the MAIN warehouse of a cost center.

    Stock never enters a sub-warehouse directly; those are filled by
    transfers out of the main warehouse. The unit price defaults to the
    product's current list price.
    """
    product = _get_product(db, payload.product_id)
    warehouse = get_main_warehouse(db, cost_center=payload.cost_center)
    if not warehouse:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No MAIN warehouse for cost center {payload.cost_center}.",
        )
    serials = _validate_serials(
        db,
        product=product,
        quantity=payload.quantity,
        serial_numbers=payload.serial_numbers,
    )

    movement = _record_movement(
        db,
        product=product,
        warehouse=warehouse,
        movement_type=models.MovementTypeEnum.IN,
        quantity=payload.quantity,
        reason=payload.reason or "Stock entry",
        unit_price=payload.unit_price if payload.unit_price is not None else product.price,
        actor_user_id=actor_user_id,
    )
    for serial_number in serials:
        db.add(
            models.InventorySerial(
                product_id=product.id,
                serial_number=serial_number,
                warehouse_id=warehouse.id,
                movement_id=movement.id,
            )
        )
    db.flush()
    logger.info(
        "Stock entry recorded",
        extra={"product_id": product.id, "warehouse_id": warehouse.id, "quantity": payload.quantity},
    )
    return movement


def list_movements(
    db: Session,
    *,
    product_id: Optional[int] = None,
    limit: int = 50,
) -> List[models.InventoryMovement]:
    query = db.query(models.InventoryMovement)
    if product_id is not None:
        query = query.filter(models.InventoryMovement.product_id == product_id)
    return (
        query.order_by(models.InventoryMovement.created_at.desc(), models.InventoryMovement.id.desc())
        .limit(limit)
        .all()
    )
