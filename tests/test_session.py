import pytest

from arcad_assistant.errors import SessionBusyError
from arcad_assistant.pipeline_runtime import PipelineRunner, PipelineStep
from arcad_assistant.session import SessionGuard


def test_second_acquire_is_rejected_while_busy():
    guard = SessionGuard()
    with guard.acquire("first") as session:
        assert guard.is_busy
        assert guard.active is session
        with pytest.raises(SessionBusyError):
            with guard.acquire("second"):
                pass
    assert not guard.is_busy
    assert not session.is_processing


def test_guard_is_released_after_exception():
    guard = SessionGuard()
    with pytest.raises(RuntimeError):
        with guard.acquire("boom"):
            raise RuntimeError("boom")
    assert not guard.is_busy
    with guard.acquire("next") as session:
        assert session.question == "next"


def test_cancel_active_sets_event():
    guard = SessionGuard()
    assert guard.cancel_active() is False
    with guard.acquire("q") as session:
        assert guard.cancel_active() is True
        assert session.cancelled


def test_session_trace():
    guard = SessionGuard()
    with guard.acquire("q") as session:
        session.log("Catalog", "answered from catalog")
    assert session.trace == [{"event": "Catalog", "detail": "answered from catalog", "status": "success"}]


def test_runner_stops_at_first_finishing_step():
    calls = []

    def mark(name, finish=False):
        def _fn(context):
            calls.append(name)
            if finish:
                context["done"] = True
        return _fn

    runner = PipelineRunner(
        steps=[
            PipelineStep("a", mark("a")),
            PipelineStep("b", mark("b"), skip_if=lambda context: True),
            PipelineStep("c", mark("c", finish=True)),
            PipelineStep("d", mark("d")),
        ],
        is_done=lambda context: context.get("done", False),
    )

    assert runner.step_names == ["a", "b", "c", "d"]
    assert runner.run({}) == "c"
    assert calls == ["a", "c"]


def test_runner_returns_none_when_nothing_finishes():
    runner = PipelineRunner(steps=[PipelineStep("a", lambda context: None)], is_done=lambda context: False)
    assert runner.run({}) is None
