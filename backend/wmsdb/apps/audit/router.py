from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wmsdb.database import get_read_db
from wmsdb.security import require_admin
from wmsdb.apps.accounts import models as account_models

from . import schemas, services

router = APIRouter(prefix="/api/audit-events", tags=["audit"])


@router.get("", response_model=List[schemas.AuditEventRead])
def list_audit_events(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_admin),
):
    return services.list_audit_events(db, entity_type=entity_type, entity_id=entity_id, limit=limit)
