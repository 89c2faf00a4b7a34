import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from arcad_assistant.agent_pipeline import AssistantAgent
from arcad_assistant.app import create_app, ndjson_events
from arcad_assistant.config import Settings
from arcad_assistant.sinks import QueueSink

from conftest import CountingFactory, FakeLLM, FakeResolver, FakeStream, RecordingWait


def read_events(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


@pytest.fixture
def client():
    settings = Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        prompt_suggestions=["Which products does ARCAD offer?"],
    )
    agent = AssistantAgent(
        settings=settings,
        context_resolver=FakeResolver(),
        llm_factory=CountingFactory(FakeLLM([FakeStream(["Hello ", "from Gemini."])])),
        wait=RecordingWait(),
    )
    return TestClient(create_app(settings=settings, agent=agent))


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "state": "idle"}


def test_config_hides_api_key(client):
    body = client.get("/api/config").json()
    assert body["connected"] is True
    assert body["model"] == "gemini-test"
    assert body["prompt_suggestions"] == ["Which products does ARCAD offer?"]
    assert "test-key" not in json.dumps(body)


def test_greeting_streams_ndjson_events(client):
    response = client.post("/api/questions", json={"question": "hello"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")

    events = read_events(response)
    assert [event["type"] for event in events] == ["answerStarted", "answerChunk", "answerStopped"]
    assert "text" not in events[0]


def test_model_answer_streams_tokens(client):
    events = read_events(client.post("/api/questions", json={"question": "What's new this year?"}))
    chunks = [event["text"] for event in events if event["type"] == "answerChunk"]
    assert chunks == ["Hello ", "from Gemini."]
    assert events[-1]["type"] == "answerStopped"


def test_missing_question_is_rejected(client):
    assert client.post("/api/questions", json={}).status_code == 422


def test_cancel_without_active_question(client):
    assert client.post("/api/cancel").json() == {"cancelled": False}


def test_clear_chat(client):
    assert client.post("/api/chat/clear").json() == {"events": [{"type": "chatCleared"}]}


class FakeWorker:
    def __init__(self, alive: bool) -> None:
        self.alive = alive

    def is_alive(self) -> bool:
        return self.alive


class RecordingAgent:
    def __init__(self) -> None:
        self.cancels = 0

    def cancel_active(self) -> bool:
        self.cancels += 1
        return True


def drain(sink, worker, agent, disconnected):
    async def is_disconnected():
        return disconnected

    async def run():
        return [line async for line in ndjson_events(sink, worker, agent, is_disconnected)]

    return asyncio.run(run())


def test_client_disconnect_cancels_running_question():
    sink = QueueSink()
    sink.answer_started()
    agent = RecordingAgent()

    assert drain(sink, FakeWorker(alive=True), agent, disconnected=True) == []
    assert agent.cancels == 1


def test_completed_stream_does_not_cancel():
    sink = QueueSink()
    sink.answer_started()
    sink.answer_chunk("hi")
    sink.close()
    agent = RecordingAgent()

    lines = drain(sink, FakeWorker(alive=True), agent, disconnected=False)

    assert [json.loads(line)["type"] for line in lines] == ["answerStarted", "answerChunk"]
    assert agent.cancels == 0
