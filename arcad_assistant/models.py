from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

STATUS_CHANGED = "statusChanged"
ANSWER_STARTED = "answerStarted"
ANSWER_CHUNK = "answerChunk"
ANSWER_STOPPED = "answerStopped"
ERROR_RAISED = "errorRaised"
CHAT_CLEARED = "chatCleared"


class QuestionRequest(BaseModel):
    """Request payload for submitting a question."""
    question: str = Field(..., max_length=4000)


class AssistantEvent(BaseModel):
    """Outbound event streamed to the chat surface."""
    type: str
    text: Optional[str] = None
    message: Optional[str] = None
    connected: Optional[bool] = None


class CancelResponse(BaseModel):
    """Result of a cancel request."""
    cancelled: bool


class ConfigResponse(BaseModel):
    """Effective configuration the chat surface needs to render."""
    connected: bool
    model: str
    default_context_url: str
    prompt_suggestions: List[str]
