"""
FastAPI application entry point
"""
import logging
from pathlib import Path
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logging.getLogger("relay").setLevel(logging.INFO)
logging.getLogger("gemini").setLevel(logging.INFO)

# Load environment variables FIRST, before any other imports
# Explicitly look for .env in the backend directory (parent of chat_relay/)
backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
load_dotenv(dotenv_path=env_path, override=True)

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from chat_relay.config import APP_NAME, APP_VERSION, Settings, load_settings
from chat_relay.exceptions import InternalError, ValidationError
from chat_relay.routes import chat
from chat_relay.services.gemini import GeminiClient
from chat_relay.services.relay import ChatRelay
from chat_relay.services.sessions import SessionStore

log = logging.getLogger("api")

STATIC_DIR = Path(__file__).parent / "static"


def build_relay(settings: Settings) -> ChatRelay:
    """Wire the relay: Gemini when a usable key is set, fallback-only otherwise."""
    provider = None
    if settings.gemini_enabled:
        provider = GeminiClient.from_settings(settings)
        log.info(f"Gemini enabled (model={settings.gemini_model})")
    elif settings.has_api_key:
        log.warning("GEMINI_API_KEY looks invalid; running in fallback mode")
    else:
        log.warning("GEMINI_API_KEY not set; running in fallback mode")
    return ChatRelay(SessionStore(), provider=provider)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle: close the Gemini HTTP client on exit."""
    yield
    await app.state.relay.close()


settings = load_settings()

app = FastAPI(
    title=f"{APP_NAME} API",
    description="Chat front-end backend that relays messages to Google Gemini",
    version=APP_VERSION,
    lifespan=lifespan,
)
app.state.settings = settings
app.state.relay = build_relay(settings)

# CORS middleware - allow frontend to communicate
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


@app.exception_handler(InternalError)
async def internal_error_handler(request: Request, exc: InternalError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Internal server error", "message": exc.detail},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=InternalError.status_code,
        content={"error": "Internal server error", "message": InternalError().detail},
    )


# Include routers
app.include_router(chat.router, prefix="/api", tags=["chat"])

# Browser client (mounted last so /api wins)
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    log.info(f"Server running at http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
