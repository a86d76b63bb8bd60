"""
AI API Endpoints

LLM-backed recommendations, page insights, cost variance recommendations and
the chat assistant. All of them answer 200 with deterministic fallbacks when
the LLM is unconfigured or failing.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import Field
import httpx
import structlog

from cargocore.config import Settings
from cargocore.errors import DashboardError
from cargocore.ingestion import ProductsClient, ShipmentsClient, fetch_snapshot
from cargocore.insights import QUICK_ACTIONS, ChatMessage, InsightGenerator
from cargocore.insights.prompts import LIMITED_CONTEXT_NOTE, operational_context
from cargocore.models import CamelModel
from cargocore.serving.api.deps import (
    get_app_settings,
    get_insight_generator,
    get_now,
    get_upstream_transport,
)
from cargocore.serving.api.responses import success_response

router = APIRouter()
logger = structlog.get_logger(__name__)

DEFAULT_CHAT_TOKENS = 500
MAX_CHAT_TOKENS = 2000


class RecommendationRequest(CamelModel):
    type: str
    data: Dict[str, Any]
    context_data: Optional[Dict[str, Any]] = None


class InsightRequest(CamelModel):
    type: str
    data: Dict[str, Any]
    context_data: Optional[Dict[str, Any]] = None


class CostVarianceRequest(CamelModel):
    anomaly: Dict[str, Any]
    context_data: Dict[str, Any]


class ChatRequest(CamelModel):
    message: str = Field(min_length=1)
    conversation: List[ChatMessage] = Field(default_factory=list)
    include_context: bool = True


@router.post("/ai-recommendations")
async def post_recommendations(
    request: RecommendationRequest,
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    recommendations = await generator.recommendations(request.type, request.data, request.context_data)
    return JSONResponse(content={
        "success": True,
        "recommendations": recommendations,
        "timestamp": now.isoformat(),
    })


@router.post("/ai-insights")
async def post_insights(
    request: InsightRequest,
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    insights = await generator.insights(request.type, request.data, now, request.context_data)
    return JSONResponse(content=jsonable_encoder({
        "success": True,
        "insights": insights,
        "timestamp": now,
    }))


@router.post("/cost-variance-recommendations")
async def post_cost_variance_recommendations(
    request: CostVarianceRequest,
    generator: InsightGenerator = Depends(get_insight_generator),
    now: datetime = Depends(get_now),
) -> JSONResponse:
    anomaly = request.anomaly
    recommendations = await generator.cost_variance_recommendations(anomaly, request.context_data)
    logger.info(
        "Cost variance recommendations generated",
        anomaly_type=anomaly.get("type"),
        count=len(recommendations),
    )
    data = {
        "recommendations": recommendations,
        "anomaly": anomaly.get("title"),
        "generatedAt": now,
        "context": {
            "type": anomaly.get("type"),
            "severity": anomaly.get("severity"),
            "financialImpact": anomaly.get("financialImpact"),
        },
    }
    return success_response(data, "Cost variance recommendations generated successfully", now)


async def _chat_context(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
    now: datetime,
) -> Dict[str, Any]:
    """Operational context for the chat prompt; degrades to a note when data is unreachable"""
    try:
        snapshot = await fetch_snapshot(
            ProductsClient.from_settings(settings.analytics, settings.upstream_timeout_seconds, transport),
            ShipmentsClient.from_settings(settings.warehouse, settings.upstream_timeout_seconds, transport),
        )
    except DashboardError as e:
        logger.warning("Chat context unavailable", error=e.message)
        return {"text": LIMITED_CONTEXT_NOTE, "sources": ["Limited Context"]}

    return {
        "text": operational_context(snapshot.products, snapshot.shipments, now),
        "sources": ["Products Data", "Shipments Data", "Real-time Metrics"],
    }


@router.post("/ai-chat")
async def post_chat(
    request: ChatRequest,
    generator: InsightGenerator = Depends(get_insight_generator),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
    now: datetime = Depends(get_now),
    x_ai_model: Optional[str] = Header(default=None),
    x_max_tokens: Optional[int] = Header(default=None, ge=1, le=MAX_CHAT_TOKENS),
) -> JSONResponse:
    context: Dict[str, Any] = {"text": "", "sources": []}
    if request.include_context:
        context = await _chat_context(settings, transport, now)

    reply = await generator.chat(
        request.message,
        request.conversation,
        context["text"],
        context["sources"],
        now,
        model=x_ai_model,
        max_tokens=x_max_tokens or DEFAULT_CHAT_TOKENS,
    )
    return success_response(reply, "AI response generated successfully", now)


@router.get("/ai-chat/quick-actions")
async def get_quick_actions(now: datetime = Depends(get_now)) -> JSONResponse:
    return success_response(QUICK_ACTIONS, "Quick actions retrieved successfully", now)
