"""
Chat-related Pydantic models
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SESSION_ID = "default"


class Turn(BaseModel):
    """One message in a conversation, tagged with its speaker"""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request model for chat endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    # Blank/missing is rejected by the relay (400), not by pydantic (422)
    message: Optional[str] = None
    history: List[Turn] = Field(default_factory=list)
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    @property
    def resolved_session_id(self) -> str:
        return self.session_id or DEFAULT_SESSION_ID


class ChatResponse(BaseModel):
    """Response model for chat endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(alias="sessionId")
    using_real_ai: bool = Field(alias="usingRealAI")
    timestamp: str


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC, millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
