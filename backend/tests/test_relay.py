"""
Unit tests for the chat relay orchestration (validate -> provider/fallback -> store).
"""
from datetime import datetime

import httpx
import pytest

from chat_relay.exceptions import PROVIDER_ERROR_MESSAGES, ValidationError
from chat_relay.models.chat import DEFAULT_SESSION_ID, ChatRequest, Turn
from chat_relay.services.fallback import RESPONSES
from conftest import GENERATE_URL, gemini_error, gemini_reply


def _request(message, **kwargs):
    return ChatRequest(message=message, **kwargs)


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [None, "", "   ", "\n\t"])
    async def test_blank_message_rejected(self, fallback_relay, store, message):
        store.append("s", [Turn(role="user", content="existing")])
        with pytest.raises(ValidationError):
            await fallback_relay.handle_chat(_request(message, session_id="s"))
        assert len(store.get("s")) == 1
        assert DEFAULT_SESSION_ID not in store


class TestFallbackMode:

    @pytest.mark.asyncio
    async def test_greeting_reply(self, fallback_relay, store):
        result = await fallback_relay.handle_chat(_request("hello"))
        assert result.using_real_ai is False
        assert result.response in RESPONSES["greeting"]
        assert result.session_id == DEFAULT_SESSION_ID
        assert len(store.get(DEFAULT_SESSION_ID)) == 2

    @pytest.mark.asyncio
    async def test_no_note_when_unconfigured(self, fallback_relay):
        result = await fallback_relay.handle_chat(_request("Tell me about the weather tomorrow"))
        assert "fallback mode" not in result.response

    @pytest.mark.asyncio
    async def test_turns_recorded_in_order(self, fallback_relay, store):
        result = await fallback_relay.handle_chat(_request("  Can you review my code?  ", session_id="abc"))
        history = store.get("abc")
        assert history[0] == Turn(role="user", content="Can you review my code?")
        assert history[1] == Turn(role="assistant", content=result.response)

    @pytest.mark.asyncio
    async def test_session_capped_after_many_messages(self, fallback_relay, store):
        for i in range(8):
            await fallback_relay.handle_chat(_request(f"message {i}", session_id="long"))
        history = store.get("long")
        assert len(history) == 10
        assert history[0].content == "message 3"

    @pytest.mark.asyncio
    async def test_timestamp_is_iso8601(self, fallback_relay):
        result = await fallback_relay.handle_chat(_request("hello"))
        assert result.timestamp.endswith("Z")
        datetime.fromisoformat(result.timestamp.replace("Z", "+00:00"))


class TestGeminiMode:

    @pytest.mark.asyncio
    async def test_real_reply(self, gemini_api, gemini_relay, store):
        gemini_api.post(GENERATE_URL).mock(return_value=httpx.Response(200, json=gemini_reply("Real answer")))
        result = await gemini_relay.handle_chat(_request("hello", session_id="g"))
        assert result.using_real_ai is True
        assert result.response == "Real answer"
        assert [t.content for t in store.get("g")] == ["hello", "Real answer"]

    @pytest.mark.asyncio
    async def test_caller_history_forwarded(self, gemini_api, gemini_relay):
        route = gemini_api.post(GENERATE_URL).mock(return_value=httpx.Response(200, json=gemini_reply("ok")))
        history = [Turn(role="user", content="Q1"), Turn(role="assistant", content="A1")]
        await gemini_relay.handle_chat(_request("Q2", history=history))
        sent = route.calls.last.request.content.decode()
        assert '"Q1"' in sent and '"A1"' in sent and '"Q2"' in sent

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response, kind", [
        (httpx.Response(400, json=gemini_error(400, "INVALID_ARGUMENT", "API key not valid", "API_KEY_INVALID")), "invalid_credentials"),
        (httpx.Response(429, json=gemini_error(429, "RESOURCE_EXHAUSTED", "Quota exceeded")), "quota_exceeded"),
        (httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}), "safety_blocked"),
        (httpx.Response(502, text="Bad Gateway"), "upstream"),
    ])
    async def test_provider_failure_falls_back_with_note(self, gemini_api, gemini_relay, store, response, kind):
        gemini_api.post(GENERATE_URL).mock(return_value=response)
        result = await gemini_relay.handle_chat(_request("hello", session_id="f"))
        assert result.using_real_ai is False
        assert any(result.response.startswith(r) for r in RESPONSES["greeting"])
        assert "fallback mode" in result.response
        assert PROVIDER_ERROR_MESSAGES[kind] in result.response
        assert len(store.get("f")) == 2

    @pytest.mark.asyncio
    async def test_network_failure_falls_back(self, gemini_api, gemini_relay):
        gemini_api.post(GENERATE_URL).mock(side_effect=httpx.ConnectError("no route to host"))
        result = await gemini_relay.handle_chat(_request("Give me a poem"))
        assert result.using_real_ai is False
        assert any(result.response.startswith(r) for r in RESPONSES["creative"])
        # raw transport error is never shown to the user
        assert "no route to host" not in result.response

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self, gemini_relay, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("bug in relay")

        monkeypatch.setattr(gemini_relay.provider, "generate", broken)
        with pytest.raises(RuntimeError):
            await gemini_relay.handle_chat(_request("hello"))


class TestSessionAccess:

    @pytest.mark.asyncio
    async def test_history_and_clear(self, fallback_relay):
        await fallback_relay.handle_chat(_request("hello", session_id="x"))
        assert len(fallback_relay.history("x")) == 2
        assert fallback_relay.clear("x") is True
        assert fallback_relay.history("x") == []
        assert fallback_relay.clear("x") is False

    @pytest.mark.asyncio
    async def test_provider_configured_flag(self, fallback_relay, gemini_relay):
        assert fallback_relay.provider_configured is False
        assert gemini_relay.provider_configured is True
