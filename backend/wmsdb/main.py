# backend/wmsdb/main.py
import logging
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import Base, engine
from . import models  # noqa: F401

from .apps.accounts.router_public import router as auth_router
from .apps.accounts.router_admin import router as users_router
from .apps.catalog.router import router as catalog_router
from .apps.inventory.router import router as inventory_router
from .apps.audit.router import router as audit_router

logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:5000",
    ]


def _auto_create_tables() -> bool:
    return os.getenv("WMS_AUTO_CREATE_TABLES", "false").lower() in {"1", "true", "yes", "on"}


app = FastAPI(title="WMS API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _create_schema() -> None:
    if _auto_create_tables():
        logger.info("Creating database tables")
        Base.metadata.create_all(bind=engine)


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "WMS backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(catalog_router)
app.include_router(inventory_router)
app.include_router(audit_router)
