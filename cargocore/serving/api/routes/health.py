"""
Health Check Endpoints

Liveness and a configuration-level health check. Upstream endpoints are not
probed; a dashboard request is the real end-to-end check.
"""

from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from cargocore.config import Settings
from cargocore.serving.api.deps import get_app_settings, get_now

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, str]


def _configured(base_url, token) -> str:
    return "configured" if base_url and token else "missing"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    now: datetime = Depends(get_now),
) -> HealthResponse:
    """
    Report service status.

    Checks:
    - Products source configuration
    - Shipments source configuration
    - LLM key (optional; insights fall back to templates without it)
    """
    checks = {
        "products_source": _configured(settings.analytics.base_url, settings.analytics.token),
        "shipments_source": _configured(settings.warehouse.base_url, settings.warehouse.token),
        "llm": "configured" if settings.llm.enabled else "disabled",
    }
    sources_ready = checks["products_source"] == checks["shipments_source"] == "configured"

    return HealthResponse(
        status="healthy" if sources_ready else "degraded",
        version=settings.version,
        environment=settings.app_env,
        timestamp=now,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}
