"""
Chat API routes; conversation history kept in process memory.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chat_relay.config import APP_NAME, APP_VERSION
from chat_relay.exceptions import InternalError, ValidationError
from chat_relay.models.chat import ChatRequest, utc_timestamp
from chat_relay.services.relay import ChatRelay

log = logging.getLogger("api")

router = APIRouter()


def get_relay(request: Request) -> ChatRelay:
    return request.app.state.relay


@router.post("/chat")
async def chat_endpoint(request: ChatRequest, relay: ChatRelay = Depends(get_relay)):
    """Send a message; replies come from Gemini or the fallback responder"""
    try:
        result = await relay.handle_chat(request)
    except ValidationError:
        raise
    except Exception:
        log.exception("Chat processing failed")
        raise InternalError()
    return result.model_dump(by_alias=True)


@router.get("/chat/{session_id:path}")
async def get_session(session_id: str, relay: ChatRelay = Depends(get_relay)):
    """Stored turns for a session (read-only)"""
    history = relay.history(session_id)
    return {
        "sessionId": session_id,
        "history": [t.model_dump() for t in history],
        "messageCount": len(history),
    }


@router.delete("/chat/{session_id:path}")
async def delete_session(session_id: str, relay: ChatRelay = Depends(get_relay)):
    """Forget a session's stored turns"""
    deleted = relay.clear(session_id)
    return {
        "message": "Session cleared" if deleted else "Session not found",
        "sessionId": session_id,
        "deleted": deleted,
    }


@router.get("/health")
async def health_check(raw_request: Request, relay: ChatRelay = Depends(get_relay)):
    """Health check endpoint"""
    settings = raw_request.app.state.settings
    gemini_available = relay.provider_configured
    return {
        "status": "OK",
        "geminiAvailable": gemini_available,
        "hasApiKey": settings.has_api_key,
        "usingRealAI": gemini_available and settings.has_api_key,
        "timestamp": utc_timestamp(),
        "environment": settings.environment,
    }


@router.get("/info")
async def info(relay: ChatRelay = Depends(get_relay)):
    """Static description of the service"""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "aiProvider": "Google Gemini",
        "mode": "Real AI" if relay.provider_configured else "Fallback",
        "endpoints": {
            "chat": "POST /api/chat",
            "history": "GET /api/chat/:sessionId",
            "clear": "DELETE /api/chat/:sessionId",
            "health": "GET /api/health",
            "info": "GET /api/info",
        },
    }


@router.api_route("", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def api_not_found(raw_request: Request):
    """Anything else under /api"""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Endpoint not found",
            "path": raw_request.url.path,
            "method": raw_request.method,
        },
    )
