from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from wmsdb.apps.audit import services as audit_services
from . import models, schemas

logger = logging.getLogger(__name__)


def normalize_barcode(barcode: Optional[str]) -> Optional[str]:
    value = (barcode or "").strip()
    return value or None


def _normalize_sku(sku: str) -> str:
    return (sku or "").strip().upper()


def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    return db.query(models.Product).filter(models.Product.id == product_id).first()


def get_product_by_barcode(db: Session, barcode: str) -> Optional[models.Product]:
    code = normalize_barcode(barcode)
    if not code:
        return None
    return (
        db.query(models.Product)
        .filter(
            models.Product.barcode == code,
            models.Product.is_active.is_(True),
        )
        .first()
    )


def list_products(db: Session, *, unbarcoded: bool = False, search: Optional[str] = None) -> List[models.Product]:
    query = db.query(models.Product).filter(models.Product.is_active.is_(True))
    if unbarcoded:
        query = query.filter(models.Product.barcode.is_(None))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            models.Product.name.ilike(pattern) | models.Product.sku.ilike(pattern)
        )
    return query.order_by(models.Product.name.asc()).all()


def _claim_barcode(
    db: Session,
    *,
    barcode: str,
    actor_user_id: Optional[int],
    product_id: Optional[int] = None,
) -> None:
    """
    Make `barcode` available to `product_id` (or to a product about to be created).

    An inactive product no longer answers lookups, so it gives its barcode up
    instead of blocking the code forever. An active owner is a conflict.
    """
    owner = db.query(models.Product).filter(models.Product.barcode == barcode).first()
    if not owner or owner.id == product_id:
        return
    if owner.is_active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Barcode {barcode} is already assigned to product {owner.sku}.",
        )

    owner.barcode = None
    db.add(owner)
    db.flush()
    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="Product",
        entity_id=str(owner.id),
        action="release_barcode",
        before={"barcode": barcode},
        after={"barcode": None},
    )
    logger.info("Barcode released from inactive product", extra={"product_id": owner.id, "barcode": barcode})


def create_product(
    db: Session,
    *,
    payload: schemas.ProductCreate,
    actor_user_id: Optional[int],
) -> models.Product:
    sku = _normalize_sku(payload.sku)
    if db.query(models.Product).filter(models.Product.sku == sku).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A product with SKU {sku} already exists.",
        )
    barcode = normalize_barcode(payload.barcode)
    if barcode:
        _claim_barcode(db, barcode=barcode, actor_user_id=actor_user_id)

    product = models.Product(
        name=payload.name.strip(),
        sku=sku,
        barcode=barcode,
        description=payload.description,
        min_stock=payload.min_stock,
        price=payload.price,
        requires_serial=payload.requires_serial,
        is_active=True,
    )
    db.add(product)
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="Product",
        entity_id=str(product.id),
        action="create",
        after={"sku": product.sku, "barcode": product.barcode},
    )
    return product


def associate_barcode(
    db: Session,
    *,
    product_id: int,
    barcode: str,
    actor_user_id: Optional[int],
) -> models.Product:
    """
    Link a scanned barcode to an existing product.

    Re-associating the same code is a no-op. A product keeps its first
    barcode: replacing it would orphan labels already printed.
    """
    code = normalize_barcode(barcode)
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="barcode is required.")

    product = get_product(db, product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if product.barcode == code:
        return product
    if product.barcode:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Product {product.sku} already has barcode {product.barcode}.",
        )
    _claim_barcode(db, barcode=code, actor_user_id=actor_user_id, product_id=product.id)

    product.barcode = code
    db.add(product)
    db.flush()

    audit_services.log_event(
        db,
        actor_user_id=actor_user_id,
        entity_type="Product",
        entity_id=str(product.id),
        action="associate_barcode",
        before={"barcode": None},
        after={"barcode": code},
    )
    logger.info("Barcode associated", extra={"product_id": product.id, "barcode": code})
    return product
