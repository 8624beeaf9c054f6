from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException

from wmsdb.apps.audit import models as audit_models
from wmsdb.apps.catalog import models as catalog_models
from wmsdb.apps.inventory import models as inventory_models
from wmsdb.apps.inventory import schemas, services


def _product(db_session, *, sku="TOOL-1", requires_serial=False, min_stock=0):
    product = catalog_models.Product(
        name=f"Product {sku}",
        sku=sku,
        barcode=None,
        min_stock=min_stock,
        price=Decimal("12.50"),
        requires_serial=requires_serial,
        is_active=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


def _main_warehouse(db_session, cost_center="CC-100"):
    warehouse = services.create_warehouse(
        db_session,
        payload=schemas.WarehouseCreate(
            name="Central",
            cost_center=cost_center,
            warehouse_type=inventory_models.WarehouseTypeEnum.MAIN,
        ),
    )
    db_session.commit()
    return warehouse


def test_only_one_main_warehouse_per_cost_center(db_session):
    main = _main_warehouse(db_session)

    with pytest.raises(HTTPException) as exc:
        _main_warehouse(db_session)
    assert exc.value.status_code == 409

    sub = services.create_warehouse(
        db_session,
        payload=schemas.WarehouseCreate(
            name="Site A",
            cost_center="CC-100",
            parent_warehouse_id=main.id,
        ),
    )
    assert sub.warehouse_type == inventory_models.WarehouseTypeEnum.SUB

    with pytest.raises(HTTPException) as exc:
        services.create_warehouse(
            db_session,
            payload=schemas.WarehouseCreate(
                name="Site B",
                cost_center="CC-200",
                parent_warehouse_id=main.id,
            ),
        )
    assert exc.value.status_code == 400


def test_stock_entry_lands_in_main_warehouse(db_session):
    product = _product(db_session)
    main = _main_warehouse(db_session)

    movement = services.stock_entry(
        db_session,
        payload=schemas.StockEntryRequest(product_id=product.id, cost_center=" CC-100 ", quantity=5),
        actor_user_id=None,
    )
    db_session.commit()

    assert movement.warehouse_id == main.id
    assert movement.movement_type == inventory_models.MovementTypeEnum.IN
    assert movement.unit_price == Decimal("12.50")
    assert services.get_on_hand(db_session, product_id=product.id, warehouse_id=main.id) == 5
    assert db_session.query(audit_models.AuditEvent).filter_by(entity_type="InventoryMovement").count() == 1


def test_stock_entry_without_main_warehouse_is_404(db_session):
    product = _product(db_session)

    with pytest.raises(HTTPException) as exc:
        services.stock_entry(
            db_session,
            payload=schemas.StockEntryRequest(product_id=product.id, cost_center="CC-404", quantity=1),
            actor_user_id=None,
        )
    assert exc.value.status_code == 404


def test_serialized_product_needs_one_unique_serial_per_unit(db_session):
    product = _product(db_session, requires_serial=True)
    _main_warehouse(db_session)

    def _entry(serials, quantity=2):
        return services.stock_entry(
            db_session,
            payload=schemas.StockEntryRequest(
                product_id=product.id,
                cost_center="CC-100",
                quantity=quantity,
                serial_numbers=serials,
            ),
            actor_user_id=None,
        )

    for serials in (["SN-1"], ["SN-1", "SN-1"]):
        with pytest.raises(HTTPException) as exc:
            _entry(serials)
        assert exc.value.status_code == 400

    movement = _entry(["SN-1", "SN-2"])
    db_session.commit()
    assert sorted(s.serial_number for s in movement.serials) == ["SN-1", "SN-2"]

    with pytest.raises(HTTPException) as exc:
        _entry(["SN-2"], quantity=1)
    assert exc.value.status_code == 409


def test_serials_rejected_for_plain_products(db_session):
    product = _product(db_session)
    _main_warehouse(db_session)

    with pytest.raises(HTTPException) as exc:
        services.stock_entry(
            db_session,
            payload=schemas.StockEntryRequest(
                product_id=product.id,
                cost_center="CC-100",
                quantity=1,
                serial_numbers=["SN-9"],
            ),
            actor_user_id=None,
        )
    assert exc.value.status_code == 400


def test_outbound_movement_cannot_go_negative(db_session):
    product = _product(db_session, min_stock=3)
    main = _main_warehouse(db_session)
    services.stock_entry(
        db_session,
        payload=schemas.StockEntryRequest(product_id=product.id, cost_center="CC-100", quantity=4),
        actor_user_id=None,
    )
    db_session.commit()

    services.create_movement(
        db_session,
        payload=schemas.InventoryMovementCreate(
            product_id=product.id,
            warehouse_id=main.id,
            movement_type=inventory_models.MovementTypeEnum.OUT,
            quantity=2,
        ),
        actor_user_id=None,
    )
    db_session.commit()
    assert services.get_on_hand(db_session, product_id=product.id, warehouse_id=main.id) == 2
    assert [level.product_id for level in services.list_low_stock(db_session)] == [product.id]

    with pytest.raises(HTTPException) as exc:
        services.create_movement(
            db_session,
            payload=schemas.InventoryMovementCreate(
                product_id=product.id,
                warehouse_id=main.id,
                movement_type=inventory_models.MovementTypeEnum.OUT,
                quantity=3,
            ),
            actor_user_id=None,
        )
    assert exc.value.status_code == 409


def test_list_movements_newest_first(db_session):
    product = _product(db_session)
    _main_warehouse(db_session)
    for quantity in (1, 2):
        services.stock_entry(
            db_session,
            payload=schemas.StockEntryRequest(product_id=product.id, cost_center="CC-100", quantity=quantity),
            actor_user_id=None,
        )
    db_session.commit()

    movements = services.list_movements(db_session, product_id=product.id)
    assert [m.quantity for m in movements] == [2, 1]
