# backend/create_initial_admin.py

import os

from sqlalchemy.orm import Session

from wmsdb.database import SessionLocal
from wmsdb import models  # noqa: F401
from wmsdb.apps.accounts.models import AccountRole, User
from wmsdb.security import get_password_hash


def create_initial_admin(db: Session, *, username: str, password: str) -> User:
    """Create the ADMIN account if no user has `username` yet; return the user either way."""
    username = username.strip().lower()
    existing = db.query(User).filter(User.username == username).first()
    if existing:
        print(f"[INFO] User already exists: id={existing.id}, username={existing.username}")
        return existing

    user = User(
        username=username,
        full_name="WMS Administrator",
        role=AccountRole.ADMIN,
        is_active=True,
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    print("[OK] Created admin user:")
    print(f"  id:       {user.id}")
    print(f"  username: {user.username}")
    print(f"  role:     {user.role.value}")
    return user


def main() -> None:
    password = os.getenv("WMS_ADMIN_PASSWORD")
    if not password:
        raise SystemExit("Set WMS_ADMIN_PASSWORD to the initial admin password.")

    db = SessionLocal()
    try:
        create_initial_admin(
            db,
            username=os.getenv("WMS_ADMIN_USERNAME", "admin"),
            password=password,
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
