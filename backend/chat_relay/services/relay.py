"""
Chat relay: validate -> Gemini (or fallback) -> record turns -> respond.
"""
import logging
from typing import List, Optional

from chat_relay.exceptions import ProviderError, ValidationError
from chat_relay.models.chat import ChatRequest, ChatResponse, Turn, utc_timestamp
from chat_relay.services.fallback import FallbackResponder
from chat_relay.services.gemini import GeminiClient
from chat_relay.services.sessions import SessionStore

log = logging.getLogger("relay")

FALLBACK_NOTE = (
    "\n\n*Note: I'm running in fallback mode because {reason}. "
    "This is a canned response, not a Gemini reply.*"
)


class ChatRelay:
    """Owns the session store and routes each message to Gemini or the fallback."""

    def __init__(
        self,
        store: SessionStore,
        provider: Optional[GeminiClient] = None,
        responder: Optional[FallbackResponder] = None,
    ):
        self.store = store
        self.provider = provider
        self.responder = responder or FallbackResponder()

    @property
    def provider_configured(self) -> bool:
        return self.provider is not None

    async def handle_chat(self, request: ChatRequest) -> ChatResponse:
        message = (request.message or "").strip()
        if not message:
            raise ValidationError("Message is required")

        session_id = request.resolved_session_id
        using_real_ai = False

        if self.provider is not None:
            try:
                reply = await self.provider.generate(message, request.history)
                using_real_ai = True
            except ProviderError as e:
                log.warning(f"Gemini call failed ({e.kind}), using fallback: {e.detail}")
                reply = self.responder.respond(message, request.history)
                reply += FALLBACK_NOTE.format(reason=e.user_message)
        else:
            reply = self.responder.respond(message, request.history)

        self.store.append(
            session_id,
            [Turn(role="user", content=message), Turn(role="assistant", content=reply)],
        )
        log.info(
            f"Session {session_id!r}: replied ({'gemini' if using_real_ai else 'fallback'}), "
            f"{len(self.store.get(session_id))} turn(s) stored"
        )

        return ChatResponse(
            response=reply,
            session_id=session_id,
            using_real_ai=using_real_ai,
            timestamp=utc_timestamp(),
        )

    def history(self, session_id: str) -> List[Turn]:
        return self.store.get(session_id)

    def clear(self, session_id: str) -> bool:
        return self.store.clear(session_id)

    async def close(self):
        if self.provider is not None:
            await self.provider.close()
