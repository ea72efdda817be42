"""
Google Gemini (Generative Language API) client.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from chat_relay.exceptions import ProviderError
from chat_relay.models.chat import Turn

log = logging.getLogger("gemini")

# Our roles -> Gemini roles
ROLE_MAP = {"user": "user", "assistant": "model"}


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    error = data.get("error") if isinstance(data, dict) else None
    return error if isinstance(error, dict) else {}


def classify_http_error(response: httpx.Response) -> ProviderError:
    """Turn a non-2xx Gemini response into a ProviderError with a known kind."""
    error = _error_body(response)
    status = str(error.get("status", ""))
    message = str(error.get("message", ""))
    reasons = [
        str(d.get("reason", ""))
        for d in error.get("details", []) or []
        if isinstance(d, dict)
    ]
    blob = " ".join([status, message, *reasons]).upper()

    if "API_KEY_INVALID" in blob or "API KEY NOT VALID" in blob or response.status_code in (401, 403):
        kind = "invalid_credentials"
    elif response.status_code == 429 or "RESOURCE_EXHAUSTED" in blob or "QUOTA" in blob:
        kind = "quota_exceeded"
    elif "SAFETY" in blob:
        kind = "safety_blocked"
    else:
        kind = "upstream"
    return ProviderError(kind, message or response.text[:500], status_code=response.status_code)


def extract_text(data: Any) -> str:
    """Pull the reply text out of a generateContent payload."""
    if not isinstance(data, dict):
        raise ProviderError("malformed", "response is not a JSON object")

    block_reason = (data.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        raise ProviderError("safety_blocked", f"prompt blocked: {block_reason}")

    candidates = data.get("candidates") or []
    if not candidates:
        raise ProviderError("malformed", "no candidates in response")

    candidate = candidates[0] or {}
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if text.strip():
        return text

    if candidate.get("finishReason") == "SAFETY":
        raise ProviderError("safety_blocked", "candidate blocked: SAFETY")
    raise ProviderError("malformed", f"empty candidate (finishReason={candidate.get('finishReason')})")


def build_contents(message: str, history: Sequence[Turn] = ()) -> List[Dict[str, Any]]:
    """Map prior turns plus the new prompt onto Gemini's `contents` list."""
    turns = list(history)
    # Browser clients push the pending message into history before sending it
    if turns and turns[-1].role == "user" and turns[-1].content.strip() == message.strip():
        turns = turns[:-1]

    contents = [
        {"role": ROLE_MAP[t.role], "parts": [{"text": t.content}]}
        for t in turns
        if t.content
    ]
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.kind in ("network", "upstream")


class GeminiClient:
    """Async HTTP client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings) -> "GeminiClient":
        return cls(
            api_key=settings.gemini_api_key.strip(),
            model=settings.gemini_model,
            base_url=settings.gemini_api_url,
            temperature=settings.gemini_temperature,
            max_output_tokens=settings.gemini_max_output_tokens,
            timeout=settings.gemini_timeout,
        )

    async def close(self):
        await self.client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        params = {**kwargs.pop("params", {}), "key": self.api_key}
        try:
            response = await self.client.request(method, endpoint, params=params, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError("network", f"timed out: {e}")
        except httpx.RequestError as e:
            raise ProviderError("network", f"request error: {e}")
        if response.is_error:
            raise classify_http_error(response)
        return response

    async def generate(self, message: str, history: Sequence[Turn] = ()) -> str:
        """Single generateContent call. Raises ProviderError on any failure."""
        payload = {
            "contents": build_contents(message, history),
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        response = await self._request(
            "POST", f"/models/{self.model}:generateContent", json=payload
        )
        try:
            data = response.json()
        except ValueError:
            raise ProviderError("malformed", "response body is not JSON")
        return extract_text(data)

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def list_models(self, page_size: Optional[int] = None) -> List[str]:
        """Names of the models this key can use (e.g. "models/gemini-2.5-flash")."""
        params = {"pageSize": page_size} if page_size else {}
        response = await self._request("GET", "/models", params=params)
        try:
            data = response.json()
        except ValueError:
            raise ProviderError("malformed", "response body is not JSON")
        return [m["name"] for m in data.get("models", []) if "name" in m]
