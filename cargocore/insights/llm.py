"""
LLM Collaborator Client

Minimal async client for an OpenAI-compatible chat-completions endpoint:

    POST {api_url}  {model, messages, max_tokens, temperature}
    Authorization: Bearer {api_key}
    ->  {"choices": [{"message": {"content": "..."}}]}

`complete()` never raises. Every outcome is returned as a tagged result
(LLMSuccess or LLMFailure) so callers can fall back to rule-based text.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
import structlog

from cargocore.config.settings import LLMSettings
from cargocore.errors import LLMError

logger = structlog.get_logger(__name__)

Message = Dict[str, str]


@dataclass(frozen=True)
class LLMSuccess:
    """Non-empty completion text"""
    content: str


@dataclass(frozen=True)
class LLMFailure:
    """Why no usable completion was produced"""
    reason: str


LLMResult = Union[LLMSuccess, LLMFailure]


class LLMClient:
    """
    Chat-completions client with bearer auth.

    A client without an API key is valid but disabled; `complete()` then
    returns LLMFailure without touching the network.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api.openai.com/v1/chat/completions",
        model: str = "gpt-4o-mini",
        chat_model: str = "gpt-4",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.chat_model = chat_model
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: LLMSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LLMClient":
        return cls(
            api_key=settings.api_key.get_secret_value() if settings.enabled else None,
            api_url=settings.api_url,
            model=settings.model,
            chat_model=settings.chat_model,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _request(self, payload: Dict[str, Any]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM API error: {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError("LLM request timed out") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise LLMError("LLM returned invalid JSON") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError("LLM response has no choices") from e

        if not isinstance(content, str) or not content.strip():
            raise LLMError("No response from LLM")
        return content.strip()

    async def complete(
        self,
        messages: List[Message],
        max_tokens: int = 500,
        temperature: float = 0.2,
        model: Optional[str] = None,
    ) -> LLMResult:
        """Run one completion; failures come back as LLMFailure"""
        if not self.enabled:
            return LLMFailure("LLM API key not configured")

        payload = {
            "model": model or self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            content = await self._request(payload)
        except LLMError as e:
            logger.warning("LLM completion failed", reason=e.message, model=payload["model"])
            return LLMFailure(e.message)

        logger.debug("LLM completion succeeded", model=payload["model"], chars=len(content))
        return LLMSuccess(content)
