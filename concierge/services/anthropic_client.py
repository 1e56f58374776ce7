from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicError(RuntimeError):
    """Raised when the Messages API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def response_text(data: Dict[str, Any]) -> str:
    """Join the text blocks of a Messages API response."""
    blocks = data.get("content") if isinstance(data.get("content"), list) else []
    parts = [
        b.get("text", "")
        for b in blocks
        if isinstance(b, dict) and b.get("type", "text") == "text" and isinstance(b.get("text"), str)
    ]
    return "".join(parts)


class AnthropicClient:
    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        max_tokens: int = 1024,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def create_message(self, system: str, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """
        Calls:
          POST https://api.anthropic.com/v1/messages
        Returns the decoded response body.
        """
        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await client.post(MESSAGES_URL, headers=self._headers(), json=body)

        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"raw": r.text}

            error = payload.get("error") if isinstance(payload, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            logger.error("anthropic_error status=%s payload=%s", r.status_code, payload)
            raise AnthropicError(
                status_code=r.status_code,
                message=message or "API error",
                payload=payload,
            )

        return r.json()
