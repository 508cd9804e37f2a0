"""
Shared fixtures for multillm tests.

The gateway is never contacted: HTTP sessions are MagicMocks returning
canned responses, and time is driven by FakeClock where it matters.
"""

import json
from unittest.mock import MagicMock

import pytest

from multillm.ionet import IONetTransport
from multillm.logger import create_logger

GATEWAY_URL = "https://gateway.test/api/v1"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def _make_response(status_code=200, json_body=None, lines=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if json_body is not None:
        response.json.return_value = json_body
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    response.iter_lines.return_value = list(lines or [])
    if text is None:
        text = json.dumps(json_body) if json_body is not None else ""
    response.text = text
    return response


def _sse_lines(*chunks, done=True):
    lines = [f"data: {json.dumps(chunk)}" for chunk in chunks]
    if done:
        lines.append("data: [DONE]")
    return lines


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects."""
    return _make_response


@pytest.fixture
def sse_lines():
    """Factory turning chunk dicts into SSE `data:` lines ending with [DONE]."""
    return _sse_lines


@pytest.fixture
def test_logger():
    return create_logger("test-run", "test")


@pytest.fixture
def fake_session():
    return MagicMock()


@pytest.fixture
def transport(fake_session, test_logger):
    """IONetTransport whose thread-local session is the fake session."""
    session_manager = MagicMock()
    session_manager.get_session.return_value = fake_session
    return IONetTransport(
        "test-key",
        GATEWAY_URL,
        session_manager=session_manager,
        logger=test_logger
    )
