"""
Error taxonomy for the chat relay.

ValidationError  -> HTTP 400, message is shown to the caller.
ProviderError    -> absorbed by the relay, replaced with a fallback reply.
InternalError    -> HTTP 500 with a generic message; details stay in the logs.
"""
from typing import Optional

# User-safe explanations, keyed by ProviderError.kind
PROVIDER_ERROR_MESSAGES = {
    "not_configured": "the Gemini API key is not configured",
    "invalid_credentials": "the Gemini API key is invalid",
    "quota_exceeded": "the Gemini API quota has been exceeded",
    "safety_blocked": "the message was blocked by Gemini's safety filters",
    "network": "the Gemini service could not be reached",
    "malformed": "Gemini returned an unreadable response",
    "upstream": "the Gemini service returned an error",
}


class ValidationError(Exception):
    status_code = 400

    def __init__(self, detail: str = "Message is required"):
        super().__init__(detail)
        self.detail = detail


class ProviderError(Exception):
    """Failure talking to the generation provider."""

    def __init__(self, kind: str, detail: str = "", status_code: Optional[int] = None):
        if kind not in PROVIDER_ERROR_MESSAGES:
            kind = "upstream"
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind
        self.detail = detail
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return PROVIDER_ERROR_MESSAGES[self.kind]


class InternalError(Exception):
    status_code = 500

    def __init__(self, detail: str = "Something went wrong while processing your request. Please try again."):
        super().__init__(detail)
        self.detail = detail
