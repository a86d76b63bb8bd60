"""
Unit Tests - LLM Client and Insight Generation
"""
import json

import httpx
import pytest
from pydantic import ValidationError

from cargocore.insights import (
    ChatMessage,
    InsightGenerator,
    LLMClient,
    LLMFailure,
    LLMSuccess,
    ParseError,
    ParsedInsights,
    clean_recommendation_lines,
    parse_insights_json,
    rule_based_dashboard_insights,
)
from cargocore.insights.generator import (
    COST_VARIANCE_EMPTY_PARSE,
    COST_VARIANCE_FALLBACKS,
    COST_VARIANCE_NO_KEY,
    FALLBACK_ACTIONS,
    GENERIC_RECOMMENDATIONS,
    RECOMMENDATION_FALLBACKS,
    parse_insight_sections,
)
from cargocore.insights.prompts import LIMITED_CONTEXT_NOTE
from cargocore.models import Insight, InsightSeverity

LLM_URL = "https://llm.test/v1/chat/completions"

INSIGHTS_JSON = json.dumps([
    {
        "title": "**Carrier delays**",
        "description": "Late arrivals at wh-1",
        "severity": "CRITICAL",
        "dollarImpact": 1200,
        "suggestedActions": ["Call carrier", 5, "**Escalate** to account manager"],
    },
    {"description": "no title"},
    "junk",
    {"title": "Second", "severity": "urgent", "dollarImpact": -5},
])


def _client(transport, api_key="test-key"):
    return LLMClient(api_key=api_key, api_url=LLM_URL, transport=transport)


class TestRecommendationCleaning:
    """Tests for clean_recommendation_lines"""

    def test_strips_markers_and_filters_length(self):
        """Numbering, bullets and emphasis go; too-short lines are dropped"""
        text = (
            "1. **Renegotiate freight rates with Globex**\n"
            "2. Audit receiving accuracy weekly\n"
            "\n"
            "- Too short\n"
            "• Consolidate inbound shipments to reduce handling fees\n"
            "5. Deploy cycle counts at wh-0002\n"
            "6. Extra line beyond the limit of four"
        )

        assert clean_recommendation_lines(text) == [
            "Renegotiate freight rates with Globex",
            "Audit receiving accuracy weekly",
            "Consolidate inbound shipments to reduce handling fees",
            "Deploy cycle counts at wh-0002",
        ]

    def test_overlong_lines_dropped(self):
        assert clean_recommendation_lines("x" * 200) == []


class TestInsightParsing:
    """Tests for the LLM reply parsers"""

    def test_json_array(self):
        """Valid items survive with normalized fields"""
        result = parse_insights_json(f"```json\n{INSIGHTS_JSON}\n```")

        assert isinstance(result, ParsedInsights)
        assert len(result.items) == 2
        first, second = result.items
        assert first["title"] == "Carrier delays"
        assert first["severity"] == InsightSeverity.CRITICAL
        assert first["dollar_impact"] == 1200
        assert first["suggested_actions"] == ["Call carrier", "Escalate to account manager"]
        assert second["description"] == "Second"
        assert second["severity"] == InsightSeverity.INFO
        assert second["dollar_impact"] == 0
        assert second["suggested_actions"] == []

    def test_capped_at_four(self):
        payload = json.dumps([{"title": f"Insight {i}"} for i in range(6)])

        result = parse_insights_json(payload)

        assert len(result.items) == 4

    @pytest.mark.parametrize(
        "content",
        ["not json at all", '{"title": "object not array"}', "[]", '[{"description": "no title"}]'],
    )
    def test_parse_errors(self, content):
        """Anything without a usable insight is a ParseError"""
        assert isinstance(parse_insights_json(content), ParseError)

    def test_sections(self):
        """Paragraphs become insights with severity by position"""
        content = "## Dock congestion\nInbound volume doubled.\n\nSupplier drift\nReview Globex pricing monthly."

        result = parse_insight_sections(content)

        assert [item["title"] for item in result.items] == ["Dock congestion", "Supplier drift"]
        assert [item["severity"] for item in result.items] == [InsightSeverity.CRITICAL, InsightSeverity.WARNING]
        assert result.items[0]["description"] == "Inbound volume doubled."

    def test_sections_empty(self):
        assert isinstance(parse_insight_sections("   "), ParseError)


class TestRuleBasedInsights:
    """Tests for rule_based_dashboard_insights"""

    def test_no_data(self, now):
        """An empty snapshot yields one informational insight"""
        insights = rule_based_dashboard_insights([], [], now)

        assert len(insights) == 1
        assert insights[0].id == "insight-no-data"
        assert insights[0].severity == InsightSeverity.INFO

    def test_discrepancy_impact(self, make_shipment, now):
        """Two short shipments produce a warning with the dollar impact"""
        shipments = [make_shipment(unit_cost=50) for _ in range(8)]
        shipments += [make_shipment(unit_cost=50, received_quantity=95) for _ in range(2)]

        insights = rule_based_dashboard_insights([], shipments, now)

        assert [i.title for i in insights] == ["Quantity Discrepancy Impact"]
        assert insights[0].id == "insight-0"
        assert insights[0].dollar_impact == 500
        assert insights[0].severity == InsightSeverity.WARNING
        assert insights[0].suggested_actions == ["Review quantity discrepancy impact", "Take corrective action"]
        assert "2 shipments (20.0%)" in insights[0].description

    def test_low_fulfillment(self, make_product, make_shipment, now):
        """Cancelled shipments and inactive stock with low efficiency"""
        shipments = [make_shipment(status="cancelled", unit_cost=10) for _ in range(2)]
        products = [make_product(active=False, unit_cost=1, unit_quantity=10)]

        insights = rule_based_dashboard_insights(products, shipments, now)

        assert [i.title for i in insights] == [
            "Cancelled Shipments Impact",
            "Inactive Product Revenue Loss",
            "Fulfillment Efficiency Below Target",
        ]
        assert insights[0].dollar_impact == 2000
        assert insights[1].dollar_impact == 300
        assert insights[2].severity == InsightSeverity.CRITICAL
        assert len(insights[2].suggested_actions) == 3

    @pytest.mark.parametrize("actions", [[], ["a", "b", "c", "d", "e"]])
    def test_action_count_enforced(self, now, actions):
        """An insight carries one to four suggested actions"""
        with pytest.raises(ValidationError):
            Insight(
                id="insight-0",
                title="Title",
                description="Description",
                severity=InsightSeverity.INFO,
                suggested_actions=actions,
                created_at=now,
            )


class TestLLMClient:
    """Tests for LLMClient"""

    @pytest.mark.asyncio
    async def test_disabled_without_key(self, llm_transport_factory):
        """No key means no request and a failure result"""
        calls = []
        client = _client(llm_transport_factory("hi", calls=calls), api_key=None)

        result = await client.complete([{"role": "user", "content": "hello"}])

        assert result == LLMFailure("LLM API key not configured")
        assert calls == []

    @pytest.mark.asyncio
    async def test_success(self, llm_transport_factory):
        """Bearer auth, payload fields and stripped content"""
        calls = []
        client = _client(llm_transport_factory("  Hello there  ", calls=calls))

        result = await client.complete([{"role": "user", "content": "hello"}], max_tokens=42, model="gpt-x")

        assert result == LLMSuccess("Hello there")
        assert calls[0]["headers"]["authorization"] == "Bearer test-key"
        assert calls[0]["payload"]["model"] == "gpt-x"
        assert calls[0]["payload"]["max_tokens"] == 42

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs,reason",
        [
            ({"timeout": True}, "LLM request timed out"),
            ({"status_code": 500}, "LLM API error: 500"),
            ({"content": None}, "No response from LLM"),
            ({"content": "   "}, "No response from LLM"),
        ],
    )
    async def test_failures(self, llm_transport_factory, kwargs, reason):
        """Transport and payload problems come back as LLMFailure"""
        client = _client(llm_transport_factory(**kwargs))

        result = await client.complete([{"role": "user", "content": "hello"}])

        assert result == LLMFailure(reason)

    @pytest.mark.asyncio
    async def test_missing_choices(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))

        result = await _client(transport).complete([{"role": "user", "content": "hello"}])

        assert result == LLMFailure("LLM response has no choices")

    def test_from_settings(self, settings_factory):
        """Key presence decides whether the client is enabled"""
        assert not LLMClient.from_settings(settings_factory().llm).enabled
        assert LLMClient.from_settings(settings_factory(llm_key="sk-test").llm).enabled


class TestInsightGenerator:
    """Tests for InsightGenerator"""

    @pytest.mark.asyncio
    async def test_recommendations_without_key(self):
        """Type-specific templates when the LLM is unavailable"""
        generator = InsightGenerator(LLMClient(api_key=None))

        result = await generator.recommendations("margin-risk", {"brand": "Acme"})

        assert result == RECOMMENDATION_FALLBACKS["margin-risk"]

    @pytest.mark.asyncio
    async def test_recommendations_unknown_type(self):
        generator = InsightGenerator(LLMClient(api_key=None))

        result = await generator.recommendations("mystery", {})

        assert result == RECOMMENDATION_FALLBACKS["dashboard-insights"]

    @pytest.mark.asyncio
    async def test_recommendations_parsed(self, llm_transport_factory):
        generator = InsightGenerator(_client(llm_transport_factory(
            "1. Renegotiate freight rates with Globex\n2. Audit receiving accuracy weekly"
        )))

        result = await generator.recommendations("cost-variance", {"type": "Cost Spike"})

        assert result == ["Renegotiate freight rates with Globex", "Audit receiving accuracy weekly"]

    @pytest.mark.asyncio
    async def test_recommendations_empty_parse(self, llm_transport_factory):
        """Unusable text falls back to generic actions"""
        generator = InsightGenerator(_client(llm_transport_factory("ok")))

        result = await generator.recommendations("cost-variance", {})

        assert result == GENERIC_RECOMMENDATIONS

    @pytest.mark.asyncio
    async def test_insights_missing_key(self, now):
        """The insights endpoint announces a missing key"""
        generator = InsightGenerator(LLMClient(api_key=None))

        insights = await generator.insights("orders", {}, now)

        assert [i.title for i in insights] == ["Check OpenAI Connection"]

    @pytest.mark.asyncio
    async def test_insights_template_without_key(self, now):
        generator = InsightGenerator(LLMClient(api_key=None))

        insights = await generator.insights("warehouses", {}, now, announce_missing_key=False)

        assert insights[0].id == "fallback-warehouses-0"
        assert insights[0].source == "warehouses_agent"

    @pytest.mark.asyncio
    async def test_insights_from_json(self, llm_transport_factory, now):
        generator = InsightGenerator(_client(llm_transport_factory(INSIGHTS_JSON)))

        insights = await generator.insights("orders", {"kpis": {"ordersToday": 3}}, now)

        assert [i.id for i in insights] == ["ai-insight-orders-0", "ai-insight-orders-1"]
        assert insights[0].suggested_actions == ["Call carrier", "Escalate to account manager"]
        assert len(insights[1].suggested_actions) == 3
        assert all(i.created_at == now for i in insights)

    @pytest.mark.asyncio
    async def test_insights_on_timeout(self, llm_transport_factory, now):
        """A timed-out call yields the type's template"""
        generator = InsightGenerator(_client(llm_transport_factory(timeout=True)))

        insights = await generator.insights("inventory", {}, now)

        assert insights[0].title == "Inventory Optimization Strategy Needed"

    @pytest.mark.asyncio
    async def test_dashboard_insights_llm_failure(self, make_shipment, llm_transport_factory, now):
        """Dashboard falls back to rule-based insights"""
        shipments = [make_shipment(unit_cost=50, received_quantity=95)]
        generator = InsightGenerator(_client(llm_transport_factory(status_code=503)))

        insights = await generator.dashboard_insights([], shipments, now)

        assert insights == rule_based_dashboard_insights([], shipments, now)

    @pytest.mark.asyncio
    async def test_dashboard_insights_from_llm(self, make_shipment, llm_transport_factory, now):
        generator = InsightGenerator(_client(llm_transport_factory(INSIGHTS_JSON)))

        insights = await generator.dashboard_insights([], [make_shipment()], now)

        assert [i.id for i in insights] == ["insight-0", "insight-1"]
        assert insights[1].suggested_actions == ["Review second", "Take corrective action"]
        assert insights[0].source == "dashboard_agent"

    @pytest.mark.asyncio
    async def test_cost_variance_paths(self, llm_transport_factory):
        """No key, failure and empty parse each have their own list"""
        anomaly = {"type": "Quantity Discrepancy", "title": "Warehouse wh-1 Processing Issues"}

        no_key = await InsightGenerator(LLMClient(api_key=None)).cost_variance_recommendations(anomaly, {})
        failed = await InsightGenerator(_client(llm_transport_factory(timeout=True))).cost_variance_recommendations(
            anomaly, {}
        )
        empty = await InsightGenerator(_client(llm_transport_factory("n/a"))).cost_variance_recommendations(
            anomaly, {}
        )

        assert no_key == COST_VARIANCE_NO_KEY
        assert failed == COST_VARIANCE_FALLBACKS["Quantity Discrepancy"]
        assert empty == COST_VARIANCE_EMPTY_PARSE

    @pytest.mark.asyncio
    async def test_cost_insights(self, llm_transport_factory, now):
        """No shipments is explicit; failures use the cost template"""
        generator = InsightGenerator(LLMClient(api_key=None))

        unavailable = await generator.cost_insights({}, [], 0, now)
        fallback = await generator.cost_insights({"totalMonthlyCosts": 100}, [], 3, now)
        parsed = await InsightGenerator(_client(llm_transport_factory(INSIGHTS_JSON))).cost_insights(
            {}, [], 3, now
        )

        assert unavailable[0].title == "Information Not Available"
        assert fallback[0].title == "Cost Optimization Opportunities Identified"
        assert fallback[0].source == "cost_agent"
        assert [i.id for i in parsed] == ["cost-insight-0", "cost-insight-1"]
        assert parsed[0].suggested_actions == ["Call carrier", "Escalate to account manager"]
        assert parsed[1].suggested_actions == FALLBACK_ACTIONS

    @pytest.mark.asyncio
    async def test_chat(self, llm_transport_factory, now):
        """History is replayed and the reply carries context"""
        calls = []
        generator = InsightGenerator(_client(llm_transport_factory("Focus on wh-2 today.", calls=calls)))
        history = [ChatMessage(role="user", content=f"q{i}") for i in range(10)]

        reply = await generator.chat("What now?", history, "CTX", ["Products Data"], now)

        messages = calls[0]["payload"]["messages"]
        assert messages[0]["role"] == "system"
        assert "CTX" in messages[0]["content"]
        assert len(messages) == 1 + 6 + 1
        assert messages[-1] == {"role": "user", "content": "What now?"}
        assert reply.response == "Focus on wh-2 today."
        assert reply.fallback is False
        assert reply.conversation_id == f"chat-{int(now.timestamp() * 1000)}"
        assert reply.context.sources_used == ["Products Data"]

    @pytest.mark.asyncio
    async def test_chat_fallback(self, now):
        generator = InsightGenerator(LLMClient(api_key=None))

        reply = await generator.chat("hi", [], LIMITED_CONTEXT_NOTE, ["Limited Context"], now)

        assert reply.fallback is True
        assert "temporarily unavailable" in reply.response
