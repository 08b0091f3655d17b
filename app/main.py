from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from config.settings import Settings, get_settings
from conversation.core.sessions import new_token
from conversation.errors import ConversationError
from conversation.orchestrator import (
    INTERNAL_ERROR_MESSAGE,
    ConversationService,
    build_service,
    error_envelope,
)


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("gallery")

CONVERSATION_PATH = "/api/conversation"

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-session-token",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE",
    "Access-Control-Max-Age": "86400",
}

app = FastAPI(title="Gallery Conversation API", version="1.0.0")

# Browser preflights carrying Origin are answered by the middleware; bare
# OPTIONS requests fall through to the explicit route below.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


def get_conversation_service(settings: Settings = Depends(get_settings)) -> ConversationService:
    return build_service(settings)


def envelope_response(status_code: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=CORS_HEADERS)


@app.exception_handler(ConversationError)
async def conversation_error_handler(request: Request, exc: ConversationError) -> JSONResponse:
    logger.error("Conversation setup failed: %s", exc, exc_info=exc)
    return envelope_response(500, error_envelope("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE))


@app.options(CONVERSATION_PATH)
def conversation_preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@app.api_route(CONVERSATION_PATH, methods=["GET", "PUT", "DELETE", "PATCH"])
def conversation_method_not_allowed() -> JSONResponse:
    return envelope_response(
        405,
        error_envelope("METHOD_NOT_ALLOWED", "Only POST requests are allowed", request_id=new_token("req")),
    )


@app.post(CONVERSATION_PATH)
async def converse(
    request: Request,
    service: ConversationService = Depends(get_conversation_service),
) -> JSONResponse:
    request_id = new_token("req")
    body = await request.body()
    try:
        payload = json.loads(body or b"null")
    except ValueError:
        logger.info("Rejected request %s: body is not valid JSON", request_id)
        return envelope_response(
            400,
            error_envelope("INVALID_REQUEST", "Request body must be valid JSON", request_id=request_id),
        )

    # Blocking I/O; run in FastAPI's threadpool like a sync route would.
    status_code, response_body = await run_in_threadpool(service.handle, payload, request_id)
    return envelope_response(status_code, response_body)


@app.get("/health")
def health():
    return {"status": "ok"}
