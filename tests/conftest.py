"""Shared test fixtures for azpipes."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from azpipes.client import AzureDevOpsClient
from azpipes.config import AppConfig, AzureConfig, AzureIntegrationConfig, IntegrationsConfig
from azpipes.integrations import IntegrationRegistry

ORG = "my-org"
PROJECT = "my-project"
TOKEN = "secret-token"


# --- Fake Azure DevOps ---


class FakeAzureDevOps:
    """Records requests and answers them from per-route queues.

    The last queued answer of a route is repeated once the queue is drained.
    An answer is either a (status, body) pair, where a ``bytes`` body is
    sent verbatim, or an exception the transport raises.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, *answers: Any) -> None:
        self._routes.setdefault((method, path), []).extend(answers)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "no route"})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        if isinstance(body, bytes):
            return httpx.Response(status, content=body, headers={"Content-Type": "text/html"})
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def run_path(pipeline_id: int | str = 7) -> str:
    return f"/{ORG}/{PROJECT}/_apis/pipelines/{pipeline_id}/runs"


def build_path(run_id: int = 1234) -> str:
    return f"/{ORG}/{PROJECT}/_apis/build/builds/{run_id}"


def run_created(run_id: int = 1234) -> tuple[int, dict]:
    return 200, {
        "id": run_id,
        "_links": {"web": {"href": f"https://dev.azure.com/{ORG}/{PROJECT}/_build/results?buildId={run_id}"}},
    }


def build_status(status: str, result: str | None = None) -> tuple[int, dict]:
    body: dict[str, Any] = {"status": status}
    if result is not None:
        body["result"] = result
    return 200, body


class RecordingSleep:
    """Stands in for asyncio.sleep and records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# --- Fixtures ---


@pytest.fixture
def fake_azure():
    return FakeAzureDevOps()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def app_config():
    return AppConfig(
        azure=AzureConfig(poll_interval=0),
        integrations=IntegrationsConfig(
            azure=[AzureIntegrationConfig(host="dev.azure.com", token=TOKEN)]
        ),
    )


@pytest.fixture
def credentials(app_config):
    return IntegrationRegistry.from_config(app_config.integrations)


@pytest.fixture
async def client(fake_azure):
    async with AzureDevOpsClient("dev.azure.com", ORG, TOKEN, transport=fake_azure.transport) as c:
        yield c
