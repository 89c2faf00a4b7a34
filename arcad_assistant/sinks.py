"""Output sinks that receive answer events from the agent."""

from __future__ import annotations

import queue
from typing import List, Optional

from .models import (
    ANSWER_CHUNK,
    ANSWER_STARTED,
    ANSWER_STOPPED,
    CHAT_CLEARED,
    ERROR_RAISED,
    STATUS_CHANGED,
    AssistantEvent,
)


class OutputSink:
    """Receiver for status updates, streamed tokens, and errors.

    Subclasses override emit(); the named methods build the event payloads.
    """

    def emit(self, event: AssistantEvent) -> None:
        raise NotImplementedError

    def status_changed(self, connected: bool, message: str) -> None:
        self.emit(AssistantEvent(type=STATUS_CHANGED, connected=connected, message=message))

    def answer_started(self) -> None:
        self.emit(AssistantEvent(type=ANSWER_STARTED))

    def answer_chunk(self, text: str) -> None:
        self.emit(AssistantEvent(type=ANSWER_CHUNK, text=text))

    def answer_stopped(self) -> None:
        self.emit(AssistantEvent(type=ANSWER_STOPPED))

    def error_raised(self, message: str) -> None:
        self.emit(AssistantEvent(type=ERROR_RAISED, message=message))

    def chat_cleared(self) -> None:
        self.emit(AssistantEvent(type=CHAT_CLEARED))


class CollectingSink(OutputSink):
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[AssistantEvent] = []

    def emit(self, event: AssistantEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[AssistantEvent]:
        return [event for event in self.events if event.type == event_type]

    @property
    def answer_text(self) -> str:
        return "".join(event.text or "" for event in self.of_type(ANSWER_CHUNK))


class QueueSink(OutputSink):
    """Hands events to another thread through a queue; None marks the end."""

    def __init__(self, events: Optional["queue.Queue[Optional[AssistantEvent]]"] = None) -> None:
        self.queue: "queue.Queue[Optional[AssistantEvent]]" = events or queue.Queue()

    def emit(self, event: AssistantEvent) -> None:
        self.queue.put(event)

    def close(self) -> None:
        self.queue.put(None)
