"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...db.supabase import supabase_configured
from ...services.routing.service import RouteResolver
from ..dependencies import get_route_resolver

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/routing", status_code=status.HTTP_200_OK)
def health_routing(resolver: RouteResolver = Depends(get_route_resolver)) -> dict:
    """Report which routing provider is in use and whether it has credentials."""
    provider = resolver.provider
    return {
        "service": provider.name,
        "configured": provider.configured,
        "fallback_only": not provider.configured,
    }


@router.get("/health/database", status_code=status.HTTP_200_OK)
def health_database() -> dict:
    return {"service": "supabase", "configured": supabase_configured()}
