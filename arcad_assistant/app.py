from __future__ import annotations

import logging
import os
import queue
import threading
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from .agent_pipeline import AssistantAgent
from .config import Settings, load_settings
from .content_cache import ContentCache
from .context_resolver import ContextResolver
from .models import CancelResponse, ConfigResponse, QuestionRequest
from .sinks import CollectingSink, QueueSink

BASE_DIR = Path(__file__).resolve().parent

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("arcad").setLevel(log_level)
logger = logging.getLogger("arcad.app")

ENV_PATH = BASE_DIR.parent / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)


QUEUE_POLL_SEC = 0.25


async def ndjson_events(
    sink: QueueSink,
    worker: threading.Thread,
    agent: AssistantAgent,
    is_disconnected: Callable[[], Awaitable[bool]],
) -> AsyncIterator[str]:
    """Purpose: Drain a QueueSink into NDJSON lines for a streaming response.
    Inputs/Outputs: Inputs are the sink, the worker thread feeding it, the agent,
        and the request's disconnect check; yields one JSON line per event.
    Side Effects / State: Cancels the agent's active question when the client
        disconnects before the worker has finished.
    Dependencies: run_in_threadpool for the blocking queue read.
    Failure Modes: None; stops on the sink's end marker or on disconnect.
    If Removed: A dropped connection keeps the single-flight session held until
        the model finishes answering.
    Testing Notes: A disconnect check that returns True must call cancel_active.
    """
    # Poll with a timeout so a silent worker cannot hide a disconnect.
    finished = False
    try:
        while True:
            if await is_disconnected():
                logger.info("client disconnected mid-answer")
                break
            try:
                event = await run_in_threadpool(sink.queue.get, True, QUEUE_POLL_SEC)
            except queue.Empty:
                continue
            if event is None:
                finished = True
                break
            yield event.json(exclude_none=True) + "\n"
    finally:
        if not finished and worker.is_alive():
            agent.cancel_active()


def build_agent(settings: Settings) -> AssistantAgent:
    """Purpose: Wire the context resolver, cache, and agent from settings.
    Inputs/Outputs: Input is Settings; output is a ready AssistantAgent.
    Side Effects / State: Creates a fresh ContentCache owned by the resolver.
    Dependencies: ContextResolver, ContentCache, AssistantAgent.
    Failure Modes: None; the Gemini client is built lazily by the agent.
    If Removed: create_app has no agent to serve.
    Testing Notes: Tests build their own agent with fakes and pass it to create_app.
    """
    # One cache per resolver; nothing is shared at module level.
    resolver = ContextResolver(
        cache=ContentCache(ttl_seconds=settings.cache_ttl_sec),
        timeout=settings.fetch_timeout_sec,
    )
    return AssistantAgent(settings=settings, context_resolver=resolver)


def create_app(settings: Optional[Settings] = None, agent: Optional[AssistantAgent] = None) -> FastAPI:
    settings = settings or load_settings()
    agent = agent or build_agent(settings)
    if not settings.has_credentials:
        logger.warning("GEMINI_API_KEY or GEMINI_MODEL missing; only catalog and small-talk answers are available")

    app = FastAPI(title="ARCAD AI Assistant")
    app.state.settings = settings
    app.state.agent = agent

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok", "state": agent.state}

    @app.get("/api/config", response_model=ConfigResponse)
    def get_config() -> ConfigResponse:
        """Purpose: Return the effective settings the chat surface renders.
        Inputs/Outputs: No inputs; output is ConfigResponse.
        Side Effects / State: None.
        Dependencies: Uses Settings and AssistantAgent.is_connected.
        Failure Modes: None.
        If Removed: The UI cannot show prompt suggestions or connection status.
        Testing Notes: Suggestions from PROMPT_SUGGESTIONS appear in order.
        """
        # Never echo the API key; only whether one is configured.
        return ConfigResponse(
            connected=agent.is_connected,
            model=settings.gemini_model,
            default_context_url=settings.default_context_url,
            prompt_suggestions=list(settings.prompt_suggestions),
        )

    @app.post("/api/questions")
    def submit_question(payload: QuestionRequest, request: Request) -> StreamingResponse:
        """Purpose: Answer a question, streaming events as newline-delimited JSON.
        Inputs/Outputs: Input is QuestionRequest; output is an NDJSON stream of
            AssistantEvent objects.
        Side Effects / State: Runs the agent on a worker thread for the duration of
            the stream; the agent's single-flight guard rejects overlapping questions.
        Dependencies: Uses QueueSink, ndjson_events and AssistantAgent.handle_question.
        Failure Modes: A busy agent yields a single statusChanged notice. A client
            disconnect cancels the active question.
        If Removed: Questions cannot be submitted over HTTP.
        Testing Notes: "hello" streams answerStarted, answerChunk, answerStopped.
        """
        # The worker closes the sink so the stream always terminates.
        sink = QueueSink()

        def worker() -> None:
            try:
                agent.handle_question(payload.question, sink)
            finally:
                sink.close()

        thread = threading.Thread(target=worker, name="arcad-question", daemon=True)
        thread.start()
        return StreamingResponse(
            ndjson_events(sink, thread, agent, request.is_disconnected),
            media_type="application/x-ndjson",
        )

    @app.post("/api/cancel", response_model=CancelResponse)
    def cancel() -> CancelResponse:
        return CancelResponse(cancelled=agent.cancel_active())

    @app.post("/api/chat/clear")
    def clear_chat() -> dict:
        sink = CollectingSink()
        agent.clear_chat(sink)
        return {"events": [event.dict(exclude_none=True) for event in sink.events]}

    return app


app = create_app()
