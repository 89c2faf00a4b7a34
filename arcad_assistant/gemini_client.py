from __future__ import annotations

import logging
from typing import Iterator, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from .config import Settings
from .constants import CONTEXT_MAX_LENGTH
from .errors import ConfigurationError, to_assistant_error
from .prompt_loader import load_prompt, placeholders, render_prompt

logger = logging.getLogger("arcad.gemini")

DEFAULT_SAFETY_SETTINGS = [
    {"category": HarmCategory.HARM_CATEGORY_HARASSMENT, "threshold": HarmBlockThreshold.BLOCK_NONE},
    {"category": HarmCategory.HARM_CATEGORY_HATE_SPEECH, "threshold": HarmBlockThreshold.BLOCK_NONE},
    {"category": HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT, "threshold": HarmBlockThreshold.BLOCK_NONE},
    {"category": HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT, "threshold": HarmBlockThreshold.BLOCK_NONE},
]

ANSWER_PROMPT_FILE = "answer_prompt.txt"
COMPLETE_REASONS = {"stop", "max-tokens"}
REQUIRED_PLACEHOLDERS = {"SOURCE_URL", "CONTEXT", "QUESTION"}


class AnswerStream:
    """Iterable of answer fragments from one streamed Gemini call.

    completion_reason is filled in from the last chunk once iteration ends.
    close() stops the underlying transport, not just local iteration.
    """

    def __init__(self, response: object) -> None:
        self._response = response
        self._closed = False
        self.completion_reason: Optional[str] = None

    def __iter__(self) -> Iterator[str]:
        try:
            for chunk in self._response:
                if self._closed:
                    break
                reason = _finish_reason(chunk)
                if reason:
                    self.completion_reason = reason
                text = _chunk_text(chunk)
                if text:
                    yield text
        except google_exceptions.GoogleAPICallError as exc:
            raise to_assistant_error(exc) from exc

    def close(self) -> None:
        """Purpose: Abort the stream so no further tokens are downloaded.
        Inputs/Outputs: No inputs; no return value.
        Side Effects / State: Marks the stream closed and cancels the transport iterator.
        Dependencies: Relies on the SDK response keeping its transport iterator in
            `_iterator` (gRPC streams expose cancel(), REST generators close()).
        Failure Modes: Idempotent; missing hooks are ignored.
        If Removed: Cancelled answers keep consuming the network until the model finishes.
        Testing Notes: A fake iterator with cancel() must see it called once.
        """
        # Prefer transport-level cancel; fall back to closing a generator.
        if self._closed:
            return
        self._closed = True
        iterator = getattr(self._response, "_iterator", None)
        for hook in ("cancel", "close"):
            fn = getattr(iterator, hook, None)
            if callable(fn):
                fn()
                break

    @property
    def is_complete(self) -> bool:
        return self.completion_reason in COMPLETE_REASONS


class GeminiClient:
    """Thin wrapper around the Gemini SDK for streamed, context-grounded answers."""

    def __init__(self, settings: Settings) -> None:
        """Purpose: Configure the Gemini SDK and build the answer model.
        Inputs/Outputs: Input is Settings; no return value.
        Side Effects / State: Configures the SDK global API key.
        Dependencies: Uses google.generativeai and Settings from config.
        Failure Modes: Raises ConfigurationError if API key or model name is missing.
        If Removed: LLM-backed answers cannot execute; catalog and small talk still work.
        Testing Notes: Validate a missing key raises ConfigurationError.
        """
        # Fail fast on missing configuration before touching the SDK.
        if not settings.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is required")
        model_name = _normalize_model_name(settings.gemini_model)
        if not model_name:
            raise ConfigurationError("GEMINI_MODEL is required")
        genai.configure(api_key=settings.gemini_api_key)
        self._settings = settings
        self._model_name = model_name
        self._model = genai.GenerativeModel(model_name, safety_settings=DEFAULT_SAFETY_SETTINGS)
        template = load_prompt(settings.prompts_dir, ANSWER_PROMPT_FILE)
        missing = REQUIRED_PLACEHOLDERS.difference(placeholders(template))
        if missing:
            raise ConfigurationError(f"{ANSWER_PROMPT_FILE} is missing placeholders: {', '.join(sorted(missing))}")
        self._prompt_template = template

    @property
    def model_name(self) -> str:
        return self._model_name

    def build_contents(self, question: str, context_text: str, source_url: str) -> List[dict]:
        instructions = render_prompt(
            self._prompt_template,
            source_url=source_url,
            context=(context_text or "")[:CONTEXT_MAX_LENGTH],
            question=question,
        )
        return [
            {"role": "user", "parts": [{"text": instructions}]},
            {"role": "model", "parts": [{"text": "Answer:"}]},
        ]

    def stream_answer(self, question: str, context_text: str, source_url: str) -> AnswerStream:
        """Purpose: Start a streamed answer for a question grounded on page text.
        Inputs/Outputs: Inputs are question, context text, and its source URL; output is
            an AnswerStream of text fragments.
        Side Effects / State: Opens a streaming request to Gemini.
        Dependencies: Uses build_contents and genai.GenerativeModel.generate_content.
        Failure Modes: Google API errors are mapped to ModelOverloadError,
            RateLimitError, ConfigurationError, or AIModelError.
        If Removed: The agent cannot produce LLM answers.
        Testing Notes: Context longer than CONTEXT_MAX_LENGTH is truncated in the prompt.
        """
        # Context is truncated inside build_contents; the stream is lazy.
        contents = self.build_contents(question, context_text, source_url)
        logger.info("gemini stream model=%s source=%s context_chars=%d", self._model_name, source_url, len(context_text or ""))
        try:
            response = self._model.generate_content(contents, stream=True)
        except google_exceptions.GoogleAPICallError as exc:
            raise to_assistant_error(exc) from exc
        return AnswerStream(response)


def _normalize_model_name(name: Optional[str]) -> str:
    # Strip "models/" prefix and whitespace.
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned


def _chunk_text(chunk: object) -> str:
    # chunk.text raises when a candidate has no parts (e.g. safety stop), so read parts directly.
    texts: List[str] = []
    for candidate in getattr(chunk, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            text = getattr(part, "text", None)
            if text:
                texts.append(text)
        break
    return "".join(texts)


def _finish_reason(chunk: object) -> Optional[str]:
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return None
    reason = getattr(candidates[0], "finish_reason", None)
    name = getattr(reason, "name", None) or (str(reason) if reason else "")
    if not name or name in ("FINISH_REASON_UNSPECIFIED", "0"):
        return None
    return name.lower().replace("_", "-")
