"""
Shared test fixtures for the Feedback Co-Pilot.
Every outbound call goes through fake sessions or a fake model client.
Zero network calls.
"""
import pytest
from fastapi.testclient import TestClient

from feedback_copilot.core.config import Settings
from feedback_copilot.services.llm import BaseChat


class FakeResponse:
    """Minimal stand-in for `requests.Response`."""

    def __init__(self, status_code=200, text="", json_data=None, reason=None):
        self.status_code = status_code
        self.text = text
        self._json = json_data
        self.reason = reason or ("OK" if status_code < 400 else "Not Found")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._json


class FakeSession:
    """Returns queued responses in order and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)


class FakeLLM(BaseChat):
    """Records composed prompts and returns a canned reply (or raises)."""

    def __init__(self, settings, reply="Great job! 💛", error=None):
        super().__init__(settings)
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def make_settings(tmp_path):
    """Factory for isolated settings (no .env, uploads under tmp_path)."""
    def _make(**overrides):
        overrides.setdefault("upload_dir", str(tmp_path / "uploads"))
        return Settings(load_env=False, **overrides)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings(gemini_api_key="test-key")


@pytest.fixture
def fake_llm(settings):
    return FakeLLM(settings)


@pytest.fixture
def api(settings):
    """TestClient plus a hook to override service dependencies."""
    from feedback_copilot.main import app
    from feedback_copilot.api import routes

    app.dependency_overrides[routes.get_settings] = lambda: settings

    def override(dependency, value):
        app.dependency_overrides[dependency] = lambda: value

    client = TestClient(app)
    client.override = override
    yield client
    app.dependency_overrides.clear()
