from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from wmsdb.database import get_db
from wmsdb.security import get_current_active_user, require_roles
from wmsdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/api/products", tags=["catalog"])

CATALOG_WRITE_ROLES = [
    account_models.AccountRole.PROJECT_MANAGER,
    account_models.AccountRole.WAREHOUSE_OPERATOR,
]


@router.get(
    "",
    response_model=Union[schemas.ProductRead, List[schemas.ProductRead]],
    responses={404: {"description": "No product carries the given barcode"}},
)
def list_or_lookup_products(
    barcode: Optional[str] = None,
    unbarcoded: bool = False,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    """
    With `barcode`, resolve a scanned code to a single product (404 when no
    active product carries it). Without it, list active products.
    """
    if barcode is not None:
        product = services.get_product_by_barcode(db, barcode)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return schemas.ProductRead.model_validate(product)
    return [
        schemas.ProductRead.model_validate(product)
        for product in services.list_products(db, unbarcoded=unbarcoded, search=search)
    ]


@router.get("/{product_id}", response_model=schemas.ProductRead)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(get_current_active_user),
):
    product = services.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.post(
    "",
    response_model=schemas.ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*CATALOG_WRITE_ROLES)),
):
    product = services.create_product(db, payload=payload, actor_user_id=current_user.id)
    db.commit()
    db.refresh(product)
    return product


@router.put("/{product_id}/barcode", response_model=schemas.ProductRead)
def associate_barcode(
    product_id: int,
    payload: schemas.BarcodeAssociation,
    db: Session = Depends(get_db),
    current_user: account_models.User = Depends(require_roles(*CATALOG_WRITE_ROLES)),
):
    product = services.associate_barcode(
        db,
        product_id=product_id,
        barcode=payload.barcode,
        actor_user_id=current_user.id,
    )
    db.commit()
    db.refresh(product)
    return product
