from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from concierge.models import ChatRequest
from concierge.services.anthropic_client import AnthropicError

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/chat")
async def chat(request: Request, response: Response, payload: Optional[ChatRequest] = None):
    req_start = time.perf_counter()
    gateway = request.app.state.chat_gateway
    if gateway is None:
        logger.error("chat_rejected reason=no_anthropic_key")
        return _error(500, "Anthropic API key not configured")

    message = ((payload.message if payload else None) or "").strip()
    if not message:
        return _error(400, "Message is required")

    history = payload.history if payload else []
    logger.info("chat_received history_turns=%s", len(history))

    try:
        result = await gateway.chat(message, history)
    except AnthropicError as e:
        # Preserve the upstream status code + message for the frontend
        return _error(e.status_code, str(e))
    except Exception as e:
        logger.exception("chat_failed error=%s", repr(e))
        return _error(500, "Failed to process chat request")

    response.headers["X-Total-Ms"] = str(round((time.perf_counter() - req_start) * 1000, 2))
    return result.to_dict()
