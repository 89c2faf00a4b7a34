from __future__ import annotations

import threading
from typing import List, Optional

import pytest

from arcad_assistant.agent_pipeline import AssistantAgent
from arcad_assistant.config import Settings
from arcad_assistant.context_resolver import ContextResult
from arcad_assistant.sinks import CollectingSink

LONG_CONTEXT = "ARCAD Software builds DevOps and modernization tools for IBM i. " * 10


class FakeStream:
    """Stand-in for gemini_client.AnswerStream."""

    def __init__(
        self,
        tokens: List[str],
        reason: Optional[str] = "stop",
        error: Optional[BaseException] = None,
    ) -> None:
        self._tokens = tokens
        self._reason = reason
        self._error = error
        self.completion_reason: Optional[str] = None
        self.closed = 0

    def __iter__(self):
        for token in self._tokens:
            yield token
        if self._error is not None:
            raise self._error
        self.completion_reason = self._reason

    def close(self) -> None:
        self.closed += 1


class FakeLLM:
    """Returns queued streams or raises queued exceptions, one per call."""

    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[tuple] = []

    def stream_answer(self, question: str, context_text: str, source_url: str):
        self.calls.append((question, context_text, source_url))
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeResolver:
    def __init__(self, text: str = LONG_CONTEXT, error: Optional[BaseException] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[str] = []

    def get_context(self, url, cancel_event=None, sink=None) -> ContextResult:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return ContextResult(text=self.text, source_url=url)


class RecordingWait:
    """Backoff wait that returns immediately and remembers the delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, cancel_event: threading.Event, seconds: float) -> bool:
        self.delays.append(seconds)
        return cancel_event.is_set()


class CountingFactory:
    def __init__(self, llm) -> None:
        self.llm = llm
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if isinstance(self.llm, BaseException):
            raise self.llm
        return self.llm


@pytest.fixture
def settings() -> Settings:
    return Settings(gemini_api_key="test-key", gemini_model="gemini-test")


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def make_agent(settings):
    def _make(llm=None, resolver=None, wait=None, responder=None):
        resolver = resolver or FakeResolver()
        factory = CountingFactory(llm if llm is not None else FakeLLM([]))
        agent = AssistantAgent(
            settings=settings,
            context_resolver=resolver,
            llm_factory=factory,
            responder=responder,
            wait=wait or RecordingWait(),
        )
        return agent, resolver, factory

    return _make
