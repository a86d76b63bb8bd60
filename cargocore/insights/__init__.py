"""
Insight Generation Module

LLM-backed recommendations, insights and chat with deterministic fallbacks.
"""
from .generator import (
    ChatMessage,
    ChatReply,
    InsightGenerator,
    ParsedInsights,
    ParseError,
    clean_recommendation_lines,
    parse_insights_json,
    rule_based_dashboard_insights,
)
from .llm import LLMClient, LLMFailure, LLMResult, LLMSuccess
from .prompts import QUICK_ACTIONS

__all__ = [
    "ChatMessage",
    "ChatReply",
    "InsightGenerator",
    "LLMClient",
    "LLMFailure",
    "LLMResult",
    "LLMSuccess",
    "ParseError",
    "ParsedInsights",
    "QUICK_ACTIONS",
    "clean_recommendation_lines",
    "parse_insights_json",
    "rule_based_dashboard_insights",
]
