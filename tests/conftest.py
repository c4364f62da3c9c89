"""Shared test fixtures for Contract Scanner tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from config import Settings
from engine import RiskAnalysisClient
from models import Finding, new_finding_id
from workflow import ScanController, ScanState


class FakeResponse:
    """Just enough of requests.Response for the client."""

    def __init__(self, status_code: int = 200, body: Any = None, reason: str = "OK"):
        self.status_code = status_code
        self._body = body
        self.reason = reason

    @property
    def text(self) -> str:
        return json.dumps(self._body) if self._body is not None else ""

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    """Records every POST and replays a canned response."""

    def __init__(self, response: FakeResponse | None = None, exc: Exception | None = None):
        self.response = response or FakeResponse()
        self.exc = exc
        self.calls: list[dict[str, Any]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.exc is not None:
            raise self.exc
        return self.response


class FakePdfBackend:
    """In-memory PDF capability: the document bytes are ignored."""

    def __init__(self, pages: list[str] | None = None, ready: bool = True, exc: Exception | None = None):
        self.pages = pages if pages is not None else []
        self._ready = ready
        self.exc = exc
        self.requested: list[int] = []

    def ready(self) -> bool:
        return self._ready

    def load_document(self, data: bytes):
        if self.exc is not None:
            raise self.exc
        return self.pages

    def page_count(self, handle) -> int:
        return len(handle)

    def page_text(self, handle, page_number: int) -> str:
        self.requested.append(page_number)
        return handle[page_number - 1]


def gemini_body(risks: list[dict[str, Any]] | None) -> dict[str, Any]:
    """Wrap a risks list the way generateContent returns structured output."""
    if risks is None:
        return {"candidates": [{"content": {"parts": [{}]}}]}
    text = json.dumps({"risks": risks})
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def make_risk(level: str = "High", **overrides: str) -> dict[str, str]:
    risk = {
        "phrase": "X",
        "level": level,
        "category": "Liability",
        "explanation": "E",
        "plainEnglish": "P",
    }
    risk.update(overrides)
    return risk


def make_finding(level: str = "High") -> Finding:
    return Finding(id=new_finding_id(), **make_risk(level))


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key-do-not-use-0123456789")


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(settings: Settings, fake_session: FakeSession) -> RiskAnalysisClient:
    return RiskAnalysisClient(settings, session=fake_session)


@pytest.fixture
def state() -> ScanState:
    return ScanState()


@pytest.fixture
def make_controller(state: ScanState):
    """Build a controller over the shared state with the given collaborators."""

    def _make(analyzer=None, backend=None) -> ScanController:
        return ScanController(state, analyzer=analyzer or (lambda text: []), backend=backend)

    return _make
