# backend/wmsdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
)

from wmsdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AccountRole(str, enum.Enum):
    """Roles used across the warehouse portal.

    ADMIN manages users and the catalog. PROJECT_MANAGER owns a cost
    center's warehouses. WAREHOUSE_OPERATOR records stock movements.
    USER is read-only.
    """

    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    WAREHOUSE_OPERATOR = "WAREHOUSE_OPERATOR"
    USER = "USER"


class User(Base):
    """
    Login account for the warehouse portal.

    Passwords are stored as Argon2id hashes. Accounts imported from the
    legacy system may still carry bcrypt or unsalted SHA-256 hashes; those
    are upgraded on the next successful login.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)

    username = Column(String(50), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)

    role = Column(
        Enum(AccountRole, name="account_role_enum", native_enum=False),
        nullable=False,
        default=AccountRole.USER,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"
