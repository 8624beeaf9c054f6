from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from wmsdb.database import get_db
from wmsdb.security import get_current_active_user, require_admin, require_roles
from wmsdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/api", tags=["inventory"])

INVENTORY_WRITE_ROLES = [
    account_models.AccountRole.PROJECT_MANAGER,
    account_models.AccountRole.WAREHOUSE_OPERATOR,
]


@router.get("/warehouses", response_model=List[schemas.WarehouseRead])
def list_warehouses(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_warehouses(db)


@router.post(
    "/warehouses",
    response_model=schemas.WarehouseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_warehouse(
    payload: schemas.WarehouseCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_admin),
):
    warehouse = services.create_warehouse(db, payload=payload)
    db.commit()
    db.refresh(warehouse)
    return warehouse


@router.get("/inventory", response_model=List[schemas.InventoryLevelRead])
def list_inventory(
    warehouse_id: Optional[int] = None,
    product_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_inventory(db, warehouse_id=warehouse_id, product_id=product_id)


@router.get("/inventory/low-stock", response_model=List[schemas.InventoryLevelRead])
def list_low_stock(
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_low_stock(db)


@router.get("/inventory-movements", response_model=List[schemas.InventoryMovementRead])
def list_movements(
    product_id: Optional[int] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    return services.list_movements(db, product_id=product_id, limit=limit)


@router.post(
    "/inventory-movements",
    response_model=schemas.InventoryMovementRead,
    status_code=status.HTTP_201_CREATED,
)
def create_movement(
    payload: schemas.InventoryMovementCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    movement = services.create_movement(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(movement)
    return movement


@router.post(
    "/stock-entry",
    response_model=schemas.InventoryMovementRead,
    status_code=status.HTTP_201_CREATED,
)
def stock_entry(
    payload: schemas.StockEntryRequest,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*INVENTORY_WRITE_ROLES)),
):
    movement = services.stock_entry(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(movement)
    return movement
