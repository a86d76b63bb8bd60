"""
Insight and Recommendation Generator

Turns computed metrics into short recommendation strings and Insight
records. LLM output is optional: without an API key, or when the call or the
parse fails, deterministic rule-based templates are returned instead. No
LLM problem ever reaches the caller as an exception.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import structlog
from pydantic import Field

from cargocore.analytics.kpis import calculate_financial_impacts, fulfillment_efficiency
from cargocore.insights import prompts
from cargocore.insights.llm import LLMClient, LLMFailure, LLMResult, LLMSuccess
from cargocore.models import CamelModel, Insight, InsightSeverity, Product, Shipment

logger = structlog.get_logger(__name__)

RECOMMENDATION_TYPES = tuple(prompts.RECOMMENDATION_SYSTEM_PROMPTS)
INSIGHT_TYPES = tuple(prompts.INSIGHT_SYSTEM_PROMPTS)

MAX_RECOMMENDATIONS = 4
MAX_ACTIONS = 4
MAX_PARSED_INSIGHTS = 4
FULFILLMENT_TARGET = 80.0
DISCREPANCY_CRITICAL_IMPACT = 10000
CANCELLED_CRITICAL_IMPACT = 5000
CHAT_HISTORY_TURNS = 6

DASHBOARD_SOURCE = "dashboard_agent"
COST_SOURCE = "cost_agent"

RECOMMENDATION_FALLBACKS: Dict[str, List[str]] = {
    "cost-variance": [
        "Implement immediate cost containment measures and budget controls",
        "Negotiate supplier contracts for better pricing terms",
        "Optimize resource allocation to reduce operational waste",
        "Deploy cost monitoring systems for early variance detection",
    ],
    "margin-risk": [
        "Implement margin protection strategies and risk monitoring",
        "Optimize pricing models for improved profitability",
        "Diversify supplier base to reduce margin pressure",
        "Deploy dynamic pricing tools for competitive advantage",
    ],
    "brand-optimization": [
        "Focus investment on high-performing brand categories",
        "Optimize portfolio mix for maximum return on investment",
        "Implement brand performance tracking and analytics",
        "Develop strategic partnerships for brand growth",
    ],
    "warehouse-optimization": [
        "Implement workflow optimization for increased throughput",
        "Deploy automation solutions for operational efficiency",
        "Optimize layout design for improved material flow",
        "Establish performance monitoring and KPI tracking",
    ],
    "dashboard-insights": [
        "Implement performance monitoring and alert systems",
        "Optimize operational workflows for efficiency gains",
        "Deploy data analytics for decision support",
        "Establish continuous improvement processes",
    ],
    "inventory-management": [
        "Optimize stock levels for improved inventory turnover",
        "Implement demand forecasting for better planning",
        "Deploy inventory optimization algorithms",
        "Establish reorder point optimization strategies",
    ],
}

GENERIC_RECOMMENDATIONS = [
    "Implement data-driven optimization strategies for operational excellence",
    "Establish performance monitoring systems for continuous improvement",
    "Deploy advanced analytics for strategic decision making",
    "Create standardized processes for scalable operations",
]

COST_VARIANCE_NO_KEY = [
    "Review supplier contracts and negotiate volume discounts",
    "Implement cost monitoring alerts for future variances",
    "Establish approval workflows for non-standard pricing",
    "Conduct supplier performance audit and optimization review",
]

COST_VARIANCE_EMPTY_PARSE = [
    "Negotiate emergency pricing review with supplier within 48 hours",
    "Implement cost variance alert system at 20% threshold",
    "Establish backup supplier relationships for critical SKUs",
    "Review and update standard cost baselines monthly",
]

COST_VARIANCE_FALLBACKS: Dict[str, List[str]] = {
    "Cost Spike": [
        "Contact supplier immediately to understand pricing justification",
        "Negotiate temporary price freeze while investigating cost drivers",
        "Identify alternative suppliers for price comparison analysis",
        "Implement expedited approval process for high-variance orders",
    ],
    "Quantity Discrepancy": [
        "Implement double-verification process for receiving operations",
        "Install automated counting technology for high-value shipments",
        "Create daily discrepancy reporting dashboard for managers",
        "Establish supplier charge-back process for quantity variances",
    ],
    "Supplier Variance": [
        "Schedule quarterly business review with supplier executives",
        "Benchmark supplier pricing against market alternatives",
        "Implement performance-based pricing incentive structure",
        "Develop supplier diversification strategy for cost leverage",
    ],
}

INSIGHT_FALLBACKS: Dict[str, Dict[str, Any]] = {
    "orders": {
        "title": "Order Processing Optimization Needed",
        "description": (
            "Current order processing workflows show opportunities for efficiency "
            "improvements and risk reduction."
        ),
        "severity": InsightSeverity.WARNING,
    },
    "analytics": {
        "title": "Performance Analytics Review Required",
        "description": (
            "Performance metrics indicate areas for operational enhancement and efficiency gains."
        ),
        "severity": InsightSeverity.INFO,
    },
    "cost-management": {
        "title": "Cost Optimization Opportunities Identified",
        "description": (
            "Cost structure analysis reveals potential for strategic cost reduction and "
            "efficiency improvements."
        ),
        "severity": InsightSeverity.WARNING,
    },
    "inventory": {
        "title": "Inventory Optimization Strategy Needed",
        "description": (
            "Inventory analysis shows opportunities for improved turnover rates and "
            "investment efficiency."
        ),
        "severity": InsightSeverity.WARNING,
    },
    "warehouses": {
        "title": "Warehouse Performance Enhancement Available",
        "description": (
            "Warehouse operations show potential for throughput optimization and "
            "efficiency improvements."
        ),
        "severity": InsightSeverity.INFO,
    },
}

FALLBACK_ACTIONS = [
    "Review operational data for optimization opportunities",
    "Implement performance monitoring systems",
    "Establish continuous improvement processes",
]

EXTRACTED_ACTION_DEFAULTS = [
    "Review current operational metrics for optimization opportunities",
    "Implement performance monitoring for continuous improvement",
    "Establish data-driven decision making processes",
]

ACTION_KEYWORDS = (
    "implement", "optimize", "improve", "reduce", "increase",
    "deploy", "establish", "monitor", "review", "enhance",
)

_NUMBERING = re.compile(r"^\d+[.)]\s*")
_BULLET = re.compile(r"^[•\-–*+]\s*")
_HEADER = re.compile(r"^#+\s*")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


# =============================================================================
# Text cleaning and parsing
# =============================================================================

def clean_markdown(text: Any) -> str:
    """Strip emphasis, code ticks, headers, list markers and links"""
    if not isinstance(text, str):
        return ""
    text = _LINK.sub(r"\1", text)
    text = text.replace("**", "").replace("*", "").replace("`", "")
    lines = []
    for line in text.split("\n"):
        line = _HEADER.sub("", line.strip())
        line = _NUMBERING.sub("", line)
        line = _BULLET.sub("", line)
        lines.append(line)
    return "\n".join(lines).strip()


def clean_recommendation_lines(
    text: str,
    limit: int = MAX_RECOMMENDATIONS,
    min_length: int = 10,
    max_length: int = 150,
) -> List[str]:
    """
    Split free text into at most `limit` recommendation strings.

    Numbering, bullet markers and markdown emphasis are removed; lines
    outside (min_length, max_length) characters are dropped.
    """
    results = []
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            continue
        line = _NUMBERING.sub("", line)
        line = _BULLET.sub("", line)
        line = line.replace("**", "").strip("*").strip()
        line = _BULLET.sub("", line).strip()
        if min_length < len(line) < max_length:
            results.append(line)
        if len(results) == limit:
            break
    return results


@dataclass(frozen=True)
class ParsedInsights:
    """Insight-shaped items that survived validation"""
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ParseError:
    reason: str


ParseResult = Union[ParsedInsights, ParseError]


def _coerce_severity(value: Any) -> InsightSeverity:
    try:
        return InsightSeverity(str(value).strip().lower())
    except ValueError:
        return InsightSeverity.INFO


def _coerce_impact(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, value)


def parse_insights_json(content: str, limit: int = MAX_PARSED_INSIGHTS) -> ParseResult:
    """
    Parse an LLM reply expected to hold a JSON array of insight objects.

    Items without a usable title are dropped; severity, impact and actions
    are normalized. An empty survivor list is a ParseError.
    """
    text = _CODE_FENCE.sub("", content.strip()).strip()
    try:
        payload = json.loads(text)
    except ValueError as e:
        return ParseError(f"invalid JSON: {e}")

    if not isinstance(payload, list):
        return ParseError("expected a JSON array")

    items = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        title = clean_markdown(entry.get("title"))
        if not title:
            continue
        actions = entry.get("suggestedActions")
        cleaned_actions = [
            clean_markdown(a) for a in actions if isinstance(a, str) and clean_markdown(a)
        ] if isinstance(actions, list) else []
        items.append({
            "title": title[:100],
            "description": clean_markdown(entry.get("description"))[:500] or title,
            "severity": _coerce_severity(entry.get("severity")),
            "dollar_impact": _coerce_impact(entry.get("dollarImpact")),
            "suggested_actions": cleaned_actions[:MAX_ACTIONS],
        })
        if len(items) == limit:
            break

    if not items:
        return ParseError("no valid insight objects")
    return ParsedInsights(items)


def extract_actions(text: str, limit: int = 3) -> List[str]:
    """Sentences that read like actions; defaults when none are found"""
    sentences = [s.strip() for s in re.split(r"[.!?]", text) if len(s.strip()) > 10]
    actions = [
        _NUMBERING.sub("", s).strip()
        for s in sentences
        if any(keyword in s.lower() for keyword in ACTION_KEYWORDS)
    ]
    return actions[:limit] or list(EXTRACTED_ACTION_DEFAULTS)


def parse_insight_sections(content: str, limit: int = 3) -> ParseResult:
    """
    Parse free-text paragraphs into insight items.

    Each blank-line separated section becomes one item: first line is the
    title, the rest the description. Severity follows position.
    """
    sections = [s.strip() for s in clean_markdown(content).split("\n\n") if s.strip()]
    severities = (InsightSeverity.CRITICAL, InsightSeverity.WARNING, InsightSeverity.INFO)

    items = []
    for index, section in enumerate(sections[:limit]):
        lines = [line.strip() for line in section.split("\n") if line.strip()]
        title = lines[0]
        description = " ".join(lines[1:]) or title
        items.append({
            "title": title[:100],
            "description": description[:300],
            "severity": severities[min(index, len(severities) - 1)],
            "dollar_impact": 0,
            "suggested_actions": extract_actions(section),
        })

    if not items:
        return ParseError("no insight sections")
    return ParsedInsights(items)


# =============================================================================
# Rule-based templates
# =============================================================================

def fallback_insights(insight_type: str, now: datetime) -> List[Insight]:
    template = INSIGHT_FALLBACKS.get(insight_type, INSIGHT_FALLBACKS["orders"])
    return [Insight(
        id=f"fallback-{insight_type}-0",
        title=template["title"],
        description=template["description"],
        severity=template["severity"],
        suggested_actions=list(FALLBACK_ACTIONS),
        source=f"{insight_type}_agent",
        created_at=now,
    )]


def missing_key_insight(insight_type: str, now: datetime) -> Insight:
    return Insight(
        id=f"fallback-{insight_type}-connection",
        title="Check OpenAI Connection",
        description="AI insights are unavailable. Verify OpenAI API key configuration.",
        severity=InsightSeverity.WARNING,
        suggested_actions=[
            "Verify OpenAI API key configuration",
            "Check network connectivity",
            "Review system settings",
        ],
        source=f"{insight_type}_agent",
        created_at=now,
    )


def no_data_insight(now: datetime) -> Insight:
    return Insight(
        id="insight-no-data",
        title="No Data Available",
        description="No product or shipment data was returned by the data sources.",
        severity=InsightSeverity.INFO,
        suggested_actions=["Check data source connection"],
        source=DASHBOARD_SOURCE,
        created_at=now,
    )


def cost_data_unavailable_insight(now: datetime) -> Insight:
    return Insight(
        id="cost-insight-1",
        title="Information Not Available",
        description="Cost management data is not available. Data source connection required.",
        severity=InsightSeverity.INFO,
        suggested_actions=["Check data source connection"],
        source=COST_SOURCE,
        created_at=now,
    )


def _review_actions(title: str) -> List[str]:
    return [f"Review {title.lower()}", "Take corrective action"]


def rule_based_dashboard_insights(
    products: Sequence[Product],
    shipments: Sequence[Shipment],
    now: datetime,
) -> List[Insight]:
    """Threshold insights over the financial impacts of one snapshot"""
    if not products and not shipments:
        return [no_data_insight(now)]

    impacts = calculate_financial_impacts(products, shipments)
    drafts = []

    at_risk = sum(1 for s in shipments if s.is_at_risk)
    if at_risk and impacts.quantity_discrepancy_impact > 0:
        share = at_risk / len(shipments) * 100
        drafts.append(dict(
            title="Quantity Discrepancy Impact",
            description=(
                f"{at_risk} shipments ({share:.1f}%) have quantity discrepancies with financial "
                f"impact of ${impacts.quantity_discrepancy_impact:,}."
            ),
            severity=(
                InsightSeverity.CRITICAL
                if impacts.quantity_discrepancy_impact > DISCREPANCY_CRITICAL_IMPACT
                else InsightSeverity.WARNING
            ),
            dollar_impact=impacts.quantity_discrepancy_impact,
        ))

    if impacts.cancelled_shipments_impact > 0:
        cancelled = sum(1 for s in shipments if s.is_cancelled)
        drafts.append(dict(
            title="Cancelled Shipments Impact",
            description=(
                f"{cancelled} cancelled shipments represent "
                f"${impacts.cancelled_shipments_impact:,} in lost inventory value."
            ),
            severity=(
                InsightSeverity.CRITICAL
                if impacts.cancelled_shipments_impact > CANCELLED_CRITICAL_IMPACT
                else InsightSeverity.WARNING
            ),
            dollar_impact=impacts.cancelled_shipments_impact,
        ))

    inactive = sum(1 for p in products if not p.active)
    if inactive and impacts.inactive_products_value > 0:
        drafts.append(dict(
            title="Inactive Product Revenue Loss",
            description=(
                f"{inactive} inactive products represent potential monthly revenue loss of "
                f"${impacts.inactive_products_value:,}."
            ),
            severity=InsightSeverity.INFO,
            dollar_impact=impacts.inactive_products_value,
        ))

    efficiency = fulfillment_efficiency(shipments)
    if shipments and efficiency < FULFILLMENT_TARGET:
        drafts.append(dict(
            title="Fulfillment Efficiency Below Target",
            description=(
                f"Fulfillment efficiency is {efficiency}% across {len(shipments)} shipments, "
                f"below the {FULFILLMENT_TARGET:.0f}% target."
            ),
            severity=InsightSeverity.CRITICAL,
            dollar_impact=impacts.at_risk_inventory_value,
            suggested_actions=[
                "Audit receiving accuracy at warehouses with the most variances",
                "Reconcile expected and received quantities with suppliers",
                "Review cancelled shipments for recurring root causes",
            ],
        ))

    return [
        Insight(
            id=f"insight-{index}",
            source=DASHBOARD_SOURCE,
            created_at=now,
            **{"suggested_actions": _review_actions(draft["title"]), **draft},
        )
        for index, draft in enumerate(drafts)
    ]


# =============================================================================
# Chat
# =============================================================================

class ChatMessage(CamelModel):
    role: str = Field(pattern="^(user|assistant)$")
    content: str
    timestamp: Optional[str] = None


class ChatContext(CamelModel):
    data_timestamp: datetime
    sources_used: List[str]


class ChatReply(CamelModel):
    response: str
    conversation_id: str
    timestamp: datetime
    context: ChatContext
    fallback: bool = False


def fallback_chat_reply(context: str) -> str:
    if not context or context == prompts.LIMITED_CONTEXT_NOTE:
        return (
            "The AI assistant is temporarily unavailable and live operational data could not "
            "be loaded. Please try again shortly."
        )
    return (
        "The AI assistant is temporarily unavailable, so here is the current operational "
        f"snapshot to work from:\n\n{context}"
    )


# =============================================================================
# Generator
# =============================================================================

class InsightGenerator:
    """
    LLM-backed generator with rule-based fallbacks.

    Every public coroutine returns usable output whether or not the LLM is
    configured or reachable.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def _complete(self, system: Optional[str], user: str, **kwargs: Any) -> LLMResult:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user})
        return await self.llm.complete(messages, **kwargs)

    async def recommendations(
        self,
        rec_type: str,
        data: Mapping[str, Any],
        context: Optional[Mapping[str, Any]] = None,
    ) -> List[str]:
        """1-4 short actions for one metric card"""
        fallback = RECOMMENDATION_FALLBACKS.get(rec_type, RECOMMENDATION_FALLBACKS["dashboard-insights"])
        system = prompts.RECOMMENDATION_SYSTEM_PROMPTS.get(rec_type)
        if system is None:
            system = prompts.RECOMMENDATION_SYSTEM_PROMPTS["dashboard-insights"]

        result = await self._complete(
            system,
            prompts.recommendation_user_prompt(rec_type, data, context),
            max_tokens=500,
            temperature=0.2,
        )
        if isinstance(result, LLMFailure):
            logger.info("Using fallback recommendations", type=rec_type, reason=result.reason)
            return list(fallback)

        lines = clean_recommendation_lines(result.content)
        return lines or list(GENERIC_RECOMMENDATIONS)

    async def insights(
        self,
        insight_type: str,
        data: Mapping[str, Any],
        now: datetime,
        context: Optional[Mapping[str, Any]] = None,
        announce_missing_key: bool = True,
    ) -> List[Insight]:
        """
        Page-level insights; JSON replies preferred, paragraphs accepted.

        Without an API key the caller gets a "Check OpenAI Connection"
        warning, or the type's template insight when `announce_missing_key`
        is off (page routes use that).
        """
        if not self.llm.enabled:
            if announce_missing_key:
                return [missing_key_insight(insight_type, now)]
            return fallback_insights(insight_type, now)

        result = await self._complete(
            prompts.INSIGHT_SYSTEM_PROMPTS.get(insight_type, prompts.INSIGHT_SYSTEM_PROMPTS["orders"]),
            prompts.insight_user_prompt(insight_type, data, context),
            max_tokens=1000,
            temperature=0.3,
            model=self.llm.chat_model,
        )
        if isinstance(result, LLMFailure):
            return fallback_insights(insight_type, now)

        parsed = parse_insights_json(result.content)
        if isinstance(parsed, ParseError):
            parsed = parse_insight_sections(result.content)
        if isinstance(parsed, ParseError):
            logger.warning("Unparseable insight reply", type=insight_type, reason=parsed.reason)
            return fallback_insights(insight_type, now)

        return [
            Insight(
                id=f"ai-insight-{insight_type}-{index}",
                source=f"{insight_type}_agent",
                created_at=now,
                **{**item, "suggested_actions": item["suggested_actions"] or list(FALLBACK_ACTIONS)},
            )
            for index, item in enumerate(parsed.items)
        ]

    async def dashboard_insights(
        self,
        products: Sequence[Product],
        shipments: Sequence[Shipment],
        now: datetime,
    ) -> List[Insight]:
        if (not products and not shipments) or not self.llm.enabled:
            return rule_based_dashboard_insights(products, shipments, now)

        prompt = prompts.dashboard_insights_prompt(
            products, shipments, calculate_financial_impacts(products, shipments)
        )
        result = await self._complete(None, prompt, max_tokens=800, temperature=0.2, model=self.llm.chat_model)
        parsed: ParseResult = (
            parse_insights_json(result.content) if isinstance(result, LLMSuccess)
            else ParseError(result.reason)
        )
        if isinstance(parsed, ParseError):
            logger.info("Using rule-based dashboard insights", reason=parsed.reason)
            return rule_based_dashboard_insights(products, shipments, now)

        return [
            Insight(
                id=f"insight-{index}",
                source=DASHBOARD_SOURCE,
                created_at=now,
                **{**item, "suggested_actions": item["suggested_actions"] or _review_actions(item["title"])},
            )
            for index, item in enumerate(parsed.items)
        ]

    async def cost_variance_recommendations(
        self,
        anomaly: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> List[str]:
        if not self.llm.enabled:
            return list(COST_VARIANCE_NO_KEY)

        result = await self._complete(
            prompts.COST_VARIANCE_SYSTEM_PROMPT,
            prompts.cost_variance_prompt(anomaly, context),
            max_tokens=500,
            temperature=0.2,
        )
        if isinstance(result, LLMFailure):
            anomaly_type = str(anomaly.get("type", ""))
            return list(COST_VARIANCE_FALLBACKS.get(anomaly_type, COST_VARIANCE_FALLBACKS["Cost Spike"]))

        return clean_recommendation_lines(result.content) or list(COST_VARIANCE_EMPTY_PARSE)

    async def cost_insights(
        self,
        kpis: Mapping[str, Any],
        cost_centers: Sequence[Mapping[str, Any]],
        total_shipments: int,
        now: datetime,
    ) -> List[Insight]:
        """Insights for the cost page; kpis and centers in their serialized form"""
        if total_shipments == 0:
            return [cost_data_unavailable_insight(now)]

        result = await self._complete(
            prompts.COST_INSIGHTS_SYSTEM_PROMPT,
            prompts.cost_insights_prompt(kpis, cost_centers, total_shipments),
            max_tokens=1200,
            temperature=0.3,
        )
        parsed: ParseResult = (
            parse_insights_json(result.content) if isinstance(result, LLMSuccess)
            else ParseError(result.reason)
        )
        if isinstance(parsed, ParseError):
            return [
                insight.model_copy(update={"source": COST_SOURCE})
                for insight in fallback_insights("cost-management", now)
            ]

        return [
            Insight(
                id=f"cost-insight-{index}",
                source=COST_SOURCE,
                created_at=now,
                **{**item, "suggested_actions": item["suggested_actions"] or list(FALLBACK_ACTIONS)},
            )
            for index, item in enumerate(parsed.items)
        ]

    async def chat(
        self,
        message: str,
        conversation: Sequence[ChatMessage],
        context: str,
        sources: Sequence[str],
        now: datetime,
        model: Optional[str] = None,
        max_tokens: int = 500,
    ) -> ChatReply:
        """Answer one chat turn; the last few conversation turns are replayed"""
        messages = [{"role": "system", "content": prompts.chat_system_prompt(context)}]
        messages.extend(
            {"role": m.role, "content": m.content}
            for m in list(conversation)[-CHAT_HISTORY_TURNS:]
        )
        messages.append({"role": "user", "content": message})

        result = await self.llm.complete(
            messages,
            max_tokens=max_tokens,
            temperature=0.3,
            model=model or self.llm.chat_model,
        )
        if isinstance(result, LLMSuccess):
            response, fallback = result.content, False
        else:
            logger.info("Using fallback chat reply", reason=result.reason)
            response, fallback = fallback_chat_reply(context), True

        return ChatReply(
            response=response,
            conversation_id=f"chat-{int(now.timestamp() * 1000)}",
            timestamp=now,
            context=ChatContext(data_timestamp=now, sources_used=list(sources)),
            fallback=fallback,
        )
