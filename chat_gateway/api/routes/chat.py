"""Chat endpoint and its health check."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...core.gateway import ChatGateway, GatewayResult
from ...core.settings import Settings

router = APIRouter(prefix="/api/ai", tags=["chat"])

DEV_CLIENT_ID = "dev-client"
UNKNOWN_CLIENT_ID = "unknown"


def get_gateway(request: Request) -> ChatGateway:
    return request.app.state.gateway


def client_identifier(request: Request) -> str:
    """Best available network origin of *request*, used as the quota key."""

    headers = request.headers
    forwarded = headers.get("x-forwarded-for", "").split(",")[0].strip()
    candidate = (
        forwarded
        or headers.get("x-real-ip", "").strip()
        or headers.get("cf-connecting-ip", "").strip()
        or (request.client.host if request.client else "")
    )
    if candidate:
        return candidate

    settings: Settings = request.app.state.settings
    return UNKNOWN_CLIENT_ID if settings.is_production else DEV_CLIENT_ID


def _json(result: GatewayResult) -> JSONResponse:
    return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)


@router.post("/chat", summary="Send a message to the AI assistant")
async def send_chat_message(
    request: Request,
    gateway: ChatGateway = Depends(get_gateway),
) -> JSONResponse:
    raw_body = await request.body()
    result = await gateway.handle_chat(raw_body, client_identifier(request))
    return _json(result)


@router.get("/chat", summary="AI gateway health status")
async def chat_health(gateway: ChatGateway = Depends(get_gateway)) -> JSONResponse:
    return _json(gateway.health())


__all__ = ("client_identifier", "router")
