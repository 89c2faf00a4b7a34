"""Single-flight request session shared by the agent and the HTTP surface."""

from __future__ import annotations

import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .errors import SessionBusyError


@dataclass
class RequestSession:
    """State of the one in-flight question."""
    question: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    is_processing: bool = True
    started_at: float = field(default_factory=time.time)
    trace: List[Dict[str, str]] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def log(self, event: str, detail: str, status: str = "success") -> None:
        """Append a structured trace entry for debugging the routing decision."""
        self.trace.append({"event": event, "detail": detail, "status": status})


class SessionGuard:
    """Hands out at most one RequestSession at a time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Optional[RequestSession] = None

    @property
    def active(self) -> Optional[RequestSession]:
        return self._active

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    @contextmanager
    def acquire(self, question: str) -> Iterator[RequestSession]:
        """Purpose: Scope a RequestSession around one orchestration.
        Inputs/Outputs: Input is the question; yields the new RequestSession.
        Side Effects / State: Holds the guard until the with-block exits.
        Dependencies: threading.Lock (non-blocking acquire).
        Failure Modes: Raises SessionBusyError if another session is active.
        If Removed: Overlapping questions interleave tokens in the same chat.
        Testing Notes: Nested acquire must raise; release must happen on exceptions.
        """
        # Non-blocking: a second question is rejected, never queued.
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError()
        session = RequestSession(question=question)
        self._active = session
        try:
            yield session
        finally:
            session.is_processing = False
            self._active = None
            self._lock.release()

    def cancel_active(self) -> bool:
        session = self._active
        if session is None:
            return False
        session.cancel_event.set()
        return True
