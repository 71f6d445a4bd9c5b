"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_google_maps_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.google_maps_client import check_health
    return check_health


@router.get("/health/google-maps", status_code=status.HTTP_200_OK)
def health_google_maps() -> dict:
    """Check Google Maps reachability; routing falls back to estimates when unhealthy."""
    from ...config import settings

    if not settings.google_maps_api_key:
        return {
            "service": "google_maps",
            "configured": False,
            "healthy": False,
            "message": "API key not configured; great-circle estimates will be used.",
        }
    try:
        healthy = _get_google_maps_health_check()()
        return {"service": "google_maps", "configured": True, "healthy": healthy}
    except Exception as e:
        return {"service": "google_maps", "configured": True, "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and route storage status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set TRUCKMATES_SUPABASE_URL and TRUCKMATES_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table("routes").select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
