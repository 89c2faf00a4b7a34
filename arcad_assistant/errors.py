"""Error taxonomy for the answer pipeline and the friendly messages shown to users."""

from __future__ import annotations

from typing import Optional

import requests
from google.api_core import exceptions as google_exceptions

OVERLOAD_MARKERS = ("overloaded", "service unavailable", "503")

CANCELLED_NOTICE = "⏸️ Response paused. Ask another question whenever you're ready."
STILL_PROCESSING_NOTICE = "Still processing your previous question. Please wait or cancel it first."


class AssistantError(Exception):
    """Base error carrying an optional code and the underlying exception."""

    def __init__(self, message: str, code: Optional[str] = None, original: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.original = original


class ConfigurationError(AssistantError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIG_ERROR")


class NetworkError(AssistantError):
    """Context fetch failed (connection problem, HTTP error, or timeout)."""


FetchError = NetworkError


class AIModelError(AssistantError):
    """The model service rejected or failed the request."""


class ModelOverloadError(AIModelError):
    def __init__(self, message: str, original: Optional[BaseException] = None) -> None:
        super().__init__(message, code="503", original=original)


class RateLimitError(AIModelError):
    def __init__(self, message: str, original: Optional[BaseException] = None) -> None:
        super().__init__(message, code="429", original=original)


class CancellationError(AssistantError):
    def __init__(self, message: str = "Request cancelled by user") -> None:
        super().__init__(message, code="CANCELLED")


class SessionBusyError(AssistantError):
    def __init__(self) -> None:
        super().__init__(STILL_PROCESSING_NOTICE, code="BUSY")


def is_overload_message(text: str) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in OVERLOAD_MARKERS)


def to_assistant_error(exc: BaseException) -> AssistantError:
    """Purpose: Map library exceptions onto the assistant error taxonomy.
    Inputs/Outputs: Input is any exception; output is an AssistantError subclass.
    Side Effects / State: None.
    Dependencies: Knows requests and google.api_core exception types.
    Failure Modes: Unknown exceptions become a plain AssistantError, unless their
        message reads like an overload, which maps to ModelOverloadError.
    If Removed: The retry loop cannot tell transient overloads from terminal errors.
    Testing Notes: ServiceUnavailable -> ModelOverloadError, TooManyRequests -> RateLimitError.
    """
    # Already classified errors pass through unchanged.
    if isinstance(exc, AssistantError):
        return exc
    if isinstance(exc, requests.Timeout):
        return NetworkError("Timed out fetching context", code="TIMEOUT", original=exc)
    if isinstance(exc, requests.RequestException):
        return NetworkError(f"Failed to fetch context: {exc}", code="NETWORK", original=exc)
    if isinstance(exc, google_exceptions.GoogleAPICallError):
        status = getattr(exc, "code", None)
        if status == 503 or is_overload_message(str(exc)):
            return ModelOverloadError(str(exc), original=exc)
        if status == 429:
            return RateLimitError(str(exc), original=exc)
        if status in (401, 403):
            return ConfigurationError(f"Gemini rejected the credentials: {exc}")
        return AIModelError(str(exc), code=str(int(status)) if status else None, original=exc)
    if is_overload_message(str(exc)):
        return ModelOverloadError(str(exc), original=exc)
    return AssistantError(str(exc) or exc.__class__.__name__, original=exc)


def user_friendly_message(exc: BaseException) -> str:
    """Purpose: Turn any error into a short, non-technical message for the chat.
    Inputs/Outputs: Input is an exception; output is a user-facing string.
    Side Effects / State: None.
    Dependencies: Uses to_assistant_error for classification.
    Failure Modes: None; unknown errors get a generic apology.
    If Removed: Raw stack messages would reach the chat panel.
    Testing Notes: Each taxonomy class yields its own paraphrase.
    """
    # Raw details stay in the logs; only paraphrases reach the user.
    error = to_assistant_error(exc)
    if isinstance(error, CancellationError):
        return CANCELLED_NOTICE
    if isinstance(error, NetworkError):
        if error.code == "TIMEOUT":
            return (
                "I apologize, but I'm having trouble accessing the latest product information. "
                "Please try your question again, or you can visit www.arcadsoftware.com directly."
            )
        return "I encountered a connection issue. Could you please try your question again in a moment?"
    if isinstance(error, ConfigurationError):
        return "I need a quick check of my settings. Could you please verify the Gemini API key and model name?"
    if isinstance(error, RateLimitError):
        return "I'm processing quite a few requests at the moment. Could you give me a quick moment to catch up?"
    if isinstance(error, ModelOverloadError):
        return "I'm experiencing high demand right now. Please try your question again in a few moments."
    return "I encountered an unexpected issue. Let me try to resolve it and get back to you."
