"""
Shared test fixtures
"""

import json

import httpx
import pytest

from taskdock.core.config import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test with default settings, unaffected by the environment or a local .env"""
    monkeypatch.chdir(tmp_path)
    for name in ("DOCKER_HOST", "DOCKER_API_VERSION", "DOCKER_EXECUTABLE", "LOG_LEVEL"):
        monkeypatch.delenv(f"TASKDOCK_{name}", raising=False)
    reset_settings()
    yield
    reset_settings()


class RecordingHandler:
    """
    Mock daemon for httpx.MockTransport

    Returns the queued responses in order and records every request.
    """

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json_body(self) -> dict:
        return json.loads(self.last_request.content)


@pytest.fixture
def make_api():
    """Build a DockerAPI talking to a RecordingHandler instead of a real daemon"""
    from taskdock.docker.api import DockerAPI

    apis = []

    def _make(*responses):
        handler = RecordingHandler(*responses)
        api = DockerAPI(
            api_version="v1.37",
            timeout=5.0,
            stop_timeout=11.0,
            transport=httpx.MockTransport(handler),
        )
        apis.append(api)
        return api, handler

    yield _make

    for api in apis:
        api.close()
