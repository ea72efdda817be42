"""
Shared fixtures for the test suite.

Key design decisions:
- Uses respx to mock all Gemini API calls (no real HTTP).
- Each test gets a fresh relay + session store swapped onto the app.
- The fallback responder is seeded so replies are reproducible.
"""
import random

import pytest
import pytest_asyncio
import respx
from fastapi.testclient import TestClient

from chat_relay.config import Settings
from chat_relay.services.fallback import FallbackResponder
from chat_relay.services.gemini import GeminiClient
from chat_relay.services.relay import ChatRelay
from chat_relay.services.sessions import SessionStore

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-2.5-flash"
GENERATE_URL = f"{GEMINI_BASE}/models/{GEMINI_MODEL}:generateContent"
MODELS_URL = f"{GEMINI_BASE}/models"
TEST_API_KEY = "test-gemini-key-1234567890"


def gemini_reply(text: str) -> dict:
    """A minimal successful generateContent payload."""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


def gemini_error(code: int, status: str, message: str, reason: str = None) -> dict:
    error = {"code": code, "status": status, "message": message}
    if reason:
        error["details"] = [{"@type": "type.googleapis.com/google.rpc.ErrorInfo", "reason": reason}]
    return {"error": error}


# ── respx mock setup ──


@pytest.fixture
def gemini_api():
    """Intercept all HTTP calls to the Gemini API; tests set the responses."""
    with respx.mock(assert_all_called=False) as router:
        yield router


# ── Relay building blocks ──


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def responder():
    return FallbackResponder(rng=random.Random(42))


@pytest_asyncio.fixture
async def gemini_client():
    client = GeminiClient(api_key=TEST_API_KEY, model=GEMINI_MODEL, base_url=GEMINI_BASE, timeout=5.0)
    yield client
    await client.close()


@pytest.fixture
def fallback_relay(store, responder):
    """Relay with no provider configured."""
    return ChatRelay(store, provider=None, responder=responder)


@pytest.fixture
def gemini_relay(store, responder, gemini_client):
    """Relay backed by a Gemini client (HTTP mocked with gemini_api)."""
    return ChatRelay(store, provider=gemini_client, responder=responder)


# ── App under test ──


def _swap_app_state(monkeypatch, relay, settings):
    from chat_relay.main import app

    monkeypatch.setattr(app.state, "relay", relay, raising=False)
    monkeypatch.setattr(app.state, "settings", settings, raising=False)
    return app


@pytest.fixture
def client(monkeypatch, fallback_relay):
    """TestClient against the app in fallback mode (no API key)."""
    app = _swap_app_state(monkeypatch, fallback_relay, Settings(gemini_api_key=None, environment="test"))
    return TestClient(app)


@pytest.fixture
def gemini_app_client(monkeypatch, store, responder):
    """TestClient against the app with Gemini configured."""
    provider = GeminiClient(api_key=TEST_API_KEY, model=GEMINI_MODEL, base_url=GEMINI_BASE, timeout=5.0)
    relay = ChatRelay(store, provider=provider, responder=responder)
    app = _swap_app_state(monkeypatch, relay, Settings(gemini_api_key=TEST_API_KEY, environment="test"))
    # Entering the client runs the lifespan, which closes the provider on exit
    with TestClient(app) as test_client:
        yield test_client
