"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and farmer delivery storage status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set PLANNER_SUPABASE_URL and PLANNER_SUPABASE_KEY environment variables.",
            "deliveries_count": 0,
        }

    try:
        response = supabase.table("farmer_deliveries").select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "deliveries_count": response.count or 0,
            "message": f"Database connected. Found {response.count or 0} farmer deliveries.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
