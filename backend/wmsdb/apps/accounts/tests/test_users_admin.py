from __future__ import annotations

import pytest
from fastapi import HTTPException

from create_initial_admin import create_initial_admin
from wmsdb.apps.accounts import models as account_models
from wmsdb.apps.accounts import router_admin, schemas


def test_create_initial_admin_is_idempotent(db_session):
    admin = create_initial_admin(db_session, username=" Admin ", password="change-me-now")
    again = create_initial_admin(db_session, username="admin", password="other-password")

    assert admin.id == again.id
    assert admin.role == account_models.AccountRole.ADMIN
    assert db_session.query(account_models.User).count() == 1


def test_admin_creates_and_updates_users(db_session):
    admin = create_initial_admin(db_session, username="admin", password="change-me-now")

    created = router_admin.create_user(
        payload=schemas.UserCreate(
            username="pm",
            full_name="Project Manager",
            role=account_models.AccountRole.PROJECT_MANAGER,
            password="plan-it-123",
        ),
        db=db_session,
        current_user=admin,
    )
    assert created.role == account_models.AccountRole.PROJECT_MANAGER

    with pytest.raises(HTTPException) as exc:
        router_admin.create_user(
            payload=schemas.UserCreate(username="PM", password="plan-it-123"),
            db=db_session,
            current_user=admin,
        )
    assert exc.value.status_code == 409

    with pytest.raises(HTTPException) as exc:
        router_admin.create_user(
            payload=schemas.UserCreate(username="short", password="123"),
            db=db_session,
            current_user=admin,
        )
    assert exc.value.status_code == 400

    updated = router_admin.update_user(
        user_id=created.id,
        payload=schemas.UserUpdate(is_active=False),
        db=db_session,
        current_user=admin,
    )
    assert updated.is_active is False
    assert [u.username for u in router_admin.list_users(db=db_session, current_user=admin)] == ["admin", "pm"]


def test_admin_cannot_deactivate_self(db_session):
    admin = create_initial_admin(db_session, username="admin", password="change-me-now")

    with pytest.raises(HTTPException) as exc:
        router_admin.update_user(
            user_id=admin.id,
            payload=schemas.UserUpdate(is_active=False),
            db=db_session,
            current_user=admin,
        )
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        router_admin.get_user(user_id=999, db=db_session, current_user=admin)
    assert exc.value.status_code == 404
