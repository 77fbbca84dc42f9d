"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...config import settings
from ...persistence.store import MemoryRecordStore, RecordStore, StoreError
from ..dependencies import get_store

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database(store: RecordStore = Depends(get_store)) -> dict:
    """Check the record store and count consolidated orders."""
    if isinstance(store, MemoryRecordStore):
        return {
            "configured": False,
            "message": "Supabase not configured. Set OT_SUPABASE_URL and OT_SUPABASE_KEY environment variables.",
            "orders_count": len(store.tables.get("consolidated_orders", [])),
        }

    try:
        rows = store.select_all("consolidated_orders", columns="internal_id")
    except StoreError as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {
        "configured": True,
        "connected": True,
        "orders_count": len(rows),
        "message": f"Database connected. Found {len(rows)} consolidated orders.",
        "timezone": settings.timezone,
    }
