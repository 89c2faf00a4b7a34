"""ARCAD assistant question pipeline.

Role:
    Routes each incoming question to the cheapest source that can answer it and,
    when an LLM answer is needed, drives the context fetch and streamed Gemini call
    with bounded retry, backoff, and cooperative cancellation.

Pipeline data contract (QuestionContext):
    - question / prompt_question: the user's text and the text actually sent to the model
      (rewritten for language questions).
    - category: classifier output; decides the context URL.
    - context_url: page used as grounding for the streamed answer.
    - route / answered: which step produced the answer; stops the runner.
    - chunks_sent: answer tokens already forwarded; once non-zero the answer cannot be retried.

Step contracts:
    Conversational:
        Canned reply for greetings, well-being, capability, and gratitude messages.
    Classification:
        Sets category, prompt_question, and context_url. Never answers.
    Catalog:
        Deterministic product detail / comparison / listing from the static catalog.
    Streamed Answer:
        Context fetch plus Gemini stream, retried on overload with exponential backoff.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .catalog import get_product
from .classifier import (
    LANGUAGE,
    PRODUCT_SPECIFIC,
    QuestionCategory,
    build_language_prompt,
    classify,
    language_info,
)
from .config import Settings
from .context_resolver import ContextResolver
from .conversation import ConversationalResponder
from .errors import (
    CANCELLED_NOTICE,
    AssistantError,
    CancellationError,
    ModelOverloadError,
    NetworkError,
    SessionBusyError,
    is_overload_message,
    to_assistant_error,
    user_friendly_message,
)
from .gemini_client import COMPLETE_REASONS, GeminiClient
from .pipeline_runtime import PipelineRunner, PipelineStep
from .product_resolver import is_catalog_query, resolve_product_query
from .session import RequestSession, SessionGuard
from .sinks import OutputSink

logger = logging.getLogger("arcad.agent")

STATE_IDLE = "idle"
STATE_PROCESSING = "processing"
STATE_CANCELLED = "cancelled"

TRUNCATED_WARNING = (
    "\n\n⚠️ The response may be incomplete: the model stopped early ({reason}). "
    "Try rephrasing your question if something seems missing."
)


@dataclass
class QuestionContext:
    """Mutable context passed through each pipeline step."""
    session: RequestSession
    sink: OutputSink
    question: str
    prompt_question: str
    category: Optional[QuestionCategory] = None
    context_url: str = ""
    route: str = ""
    answered: bool = False
    chunks_sent: int = 0


def wait_for_cancel(cancel_event: threading.Event, seconds: float) -> bool:
    """Sleep for the backoff; return True early if the request was cancelled."""
    return cancel_event.wait(seconds)


def is_retriable(error: AssistantError) -> bool:
    if isinstance(error, ModelOverloadError):
        return True
    return isinstance(error, NetworkError) and is_overload_message(error.message)


class AssistantAgent:
    def __init__(
        self,
        settings: Settings,
        context_resolver: ContextResolver,
        llm_factory: Optional[Callable[[], GeminiClient]] = None,
        responder: Optional[ConversationalResponder] = None,
        wait: Callable[[threading.Event, float], bool] = wait_for_cancel,
    ) -> None:
        """Purpose: Initialize the question pipeline and its collaborators.
        Inputs/Outputs: Inputs are Settings, a ContextResolver, an optional LLM factory,
            an optional responder, and the backoff wait function; no return value.
        Side Effects / State: Builds the step runner and the single-flight guard.
        Dependencies: Uses PipelineRunner/PipelineStep and the step methods below.
        Failure Modes: None at init; the LLM client is created lazily so a missing
            API key only affects questions that need the model.
        If Removed: The HTTP surface has nothing to route questions to.
        Testing Notes: Pass a fake llm_factory and a recording wait function.
        """
        # Store dependencies and build the ordered step runner.
        self._settings = settings
        self._resolver = context_resolver
        self._llm_factory = llm_factory or (lambda: GeminiClient(settings))
        self._llm: Optional[GeminiClient] = None
        self._llm_lock = threading.Lock()
        self._responder = responder or ConversationalResponder()
        self._wait = wait
        self._guard = SessionGuard()
        self._last_state = STATE_IDLE
        self._runner: PipelineRunner[QuestionContext] = PipelineRunner(
            steps=[
                PipelineStep("conversational", self._step_conversational),
                PipelineStep("classification", self._step_classification),
                PipelineStep("catalog", self._step_catalog, skip_if=_is_language_question),
                PipelineStep("streamed_answer", self._step_streamed_answer),
            ],
            is_done=lambda context: context.answered,
        )

    @property
    def is_processing(self) -> bool:
        return self._guard.is_busy

    @property
    def state(self) -> str:
        return STATE_PROCESSING if self._guard.is_busy else self._last_state

    @property
    def is_connected(self) -> bool:
        return self._settings.has_credentials

    def handle_question(self, question: str, sink: OutputSink) -> bool:
        """Purpose: Run the full pipeline for one question, streaming events to the sink.
        Inputs/Outputs: Inputs are the question text and an OutputSink; returns True if
            the question was accepted, False if empty or rejected as busy.
        Side Effects / State: Holds the single-flight session for the whole call;
            emits status, answer, and error events on the sink.
        Dependencies: Uses SessionGuard and the PipelineRunner steps.
        Failure Modes: Never leaves the session held. Unexpected exceptions are logged
            and surfaced as a friendly error event.
        If Removed: Questions cannot be answered.
        Testing Notes: A second call while busy must emit the still-processing notice.
        """
        # Reject empty input and concurrent questions before doing any work.
        question = (question or "").strip()
        if not question:
            return False
        try:
            with self._guard.acquire(question) as session:
                self._last_state = STATE_PROCESSING
                logger.info("session=%s question=%s", session.session_id, question)
                context = QuestionContext(session=session, sink=sink, question=question, prompt_question=question)
                try:
                    finished_by = self._runner.run(context)
                    logger.info("session=%s route=%s finished_by=%s", session.session_id, context.route, finished_by)
                except Exception as exc:
                    logger.exception("session=%s unexpected pipeline failure", session.session_id)
                    sink.error_raised(user_friendly_message(exc))
                finally:
                    self._last_state = STATE_CANCELLED if session.cancelled else STATE_IDLE
            return True
        except SessionBusyError as exc:
            logger.info("rejected question while busy: %s", question)
            sink.status_changed(True, exc.message)
            return False

    def cancel_active(self) -> bool:
        cancelled = self._guard.cancel_active()
        if cancelled:
            logger.info("cancel requested for active session")
        return cancelled

    def clear_chat(self, sink: OutputSink) -> None:
        self.cancel_active()
        sink.chat_cleared()

    def _step_conversational(self, context: QuestionContext) -> None:
        match = self._responder.check(context.question)
        if not match.is_conversational or not match.response:
            context.session.log("Conversational", "no small-talk match", status="skipped")
            return
        context.session.log("Conversational", f"matched {match.kind}")
        self._emit_complete_answer(context, match.response, route="conversational")

    def _step_classification(self, context: QuestionContext) -> None:
        """Purpose: Categorize the question and pick the grounding URL.
        Inputs/Outputs: Input is QuestionContext; sets category, prompt_question, context_url.
        Side Effects / State: Appends a trace entry.
        Dependencies: Uses classify, language_info, build_language_prompt, get_product.
        Failure Modes: None; unknown languages/products fall back to the default URL.
        If Removed: Every LLM answer is grounded on the default page.
        Testing Notes: "in french" targets the French site with a rewritten prompt.
        """
        # Language questions are rewritten; product questions use the product page.
        category = classify(context.question)
        context.category = category
        context.context_url = self._settings.default_context_url

        if category.type == LANGUAGE:
            info = language_info(category.language)
            if info is not None:
                context.prompt_question = build_language_prompt(context.question, info)
                context.context_url = info.url or self._settings.default_context_url
        elif category.type == PRODUCT_SPECIFIC and category.product:
            product = get_product(category.product)
            if product is not None:
                context.context_url = product.url

        context.session.log("Classification", f"type={category.type} url={context.context_url}")

    def _step_catalog(self, context: QuestionContext) -> None:
        if not is_catalog_query(context.question):
            context.session.log("Catalog", "not a catalog query", status="skipped")
            return
        answer = resolve_product_query(context.question)
        if not answer:
            context.session.log("Catalog", "catalog query without a catalog answer", status="skipped")
            return
        context.session.log("Catalog", "answered from catalog")
        self._emit_complete_answer(context, answer, route="catalog")

    def _step_streamed_answer(self, context: QuestionContext) -> None:
        """Purpose: Produce a streamed LLM answer with bounded retry and backoff.
        Inputs/Outputs: Input is QuestionContext; marks it answered.
        Side Effects / State: Emits answer_started once, tokens, retry notices, errors,
            and answer_stopped exactly once (finally block).
        Dependencies: Uses _stream_attempt, the wait function, and the error taxonomy.
        Failure Modes: Overloads are retried up to max_retries with backoff
            initial_backoff_ms * 2**(attempt-1), but only while no token has reached
            the sink; every other error is terminal and
            surfaced as a friendly message. Cancellation ends with a paused notice.
        If Removed: Questions outside the catalog and small talk get no answer.
        Testing Notes: Overload, overload, success must give backoffs 1.0s then 2.0s.
        """
        # One start/stop pair brackets every attempt, whatever the outcome.
        session = context.session
        sink = context.sink
        max_retries = max(1, self._settings.max_retries)
        context.route = "streamed_answer"
        context.answered = True
        sink.answer_started()
        try:
            for attempt in range(1, max_retries + 1):
                if session.cancelled:
                    self._notify_cancelled(context)
                    return
                try:
                    self._stream_attempt(context, attempt)
                    return
                except CancellationError:
                    self._notify_cancelled(context)
                    return
                except Exception as exc:
                    error = to_assistant_error(exc)
                    # A retry after partial output would repeat the opening tokens.
                    if is_retriable(error) and attempt < max_retries and context.chunks_sent == 0:
                        backoff_ms = self._settings.initial_backoff_ms * 2 ** (attempt - 1)
                        logger.warning(
                            "session=%s attempt=%d/%d overloaded, retrying in %dms: %s",
                            session.session_id,
                            attempt,
                            max_retries,
                            backoff_ms,
                            error.message,
                        )
                        session.log("Streamed Answer", f"attempt {attempt} overloaded; backoff {backoff_ms}ms", status="retry")
                        sink.status_changed(
                            self.is_connected,
                            f"The AI service is busy. Retrying in {backoff_ms / 1000:g}s "
                            f"(attempt {attempt + 1} of {max_retries})...",
                        )
                        if self._wait(session.cancel_event, backoff_ms / 1000.0):
                            self._notify_cancelled(context)
                            return
                        continue
                    logger.error(
                        "session=%s attempt=%d/%d failed: %s: %s",
                        session.session_id,
                        attempt,
                        max_retries,
                        type(error).__name__,
                        error.message,
                        exc_info=error.original or error,
                    )
                    session.log("Streamed Answer", f"{type(error).__name__}: {error.message}", status="error")
                    sink.error_raised(user_friendly_message(error))
                    return
        finally:
            sink.answer_stopped()

    def _stream_attempt(self, context: QuestionContext, attempt: int) -> None:
        session = context.session
        sink = context.sink
        llm = self._get_llm()
        grounding = self._resolver.get_context(context.context_url, session.cancel_event, sink)
        session.log("Streamed Answer", f"attempt {attempt} context from {grounding.source_url}", status="pending")

        stream = llm.stream_answer(context.prompt_question, grounding.text, grounding.source_url)
        finished = False
        forwarded = 0
        try:
            for token in stream:
                if session.cancelled:
                    raise CancellationError()
                sink.answer_chunk(token)
                forwarded += 1
                context.chunks_sent += 1
            finished = True
        finally:
            if not finished:
                stream.close()

        reason = stream.completion_reason
        logger.info(
            "session=%s attempt=%d streamed chunks=%d reason=%s",
            session.session_id,
            attempt,
            forwarded,
            reason,
        )
        if reason not in COMPLETE_REASONS:
            sink.answer_chunk(TRUNCATED_WARNING.format(reason=reason or "unknown"))
        session.log("Streamed Answer", f"attempt {attempt} finished reason={reason}")

    def _get_llm(self) -> GeminiClient:
        # Built on first use; a ConfigurationError here is terminal for this question only.
        with self._llm_lock:
            if self._llm is None:
                self._llm = self._llm_factory()
            return self._llm

    def _emit_complete_answer(self, context: QuestionContext, answer: str, route: str) -> None:
        context.sink.answer_started()
        try:
            context.sink.answer_chunk(answer)
        finally:
            context.sink.answer_stopped()
        context.route = route
        context.answered = True

    def _notify_cancelled(self, context: QuestionContext) -> None:
        logger.info("session=%s cancelled by user", context.session.session_id)
        context.session.log("Streamed Answer", "cancelled by user", status="cancelled")
        context.sink.status_changed(self.is_connected, CANCELLED_NOTICE)


def _is_language_question(context: QuestionContext) -> bool:
    return context.category is not None and context.category.type == LANGUAGE
