"""Shared fixtures for exporter tests."""

import pytest
import requests
from prometheus_client import CollectorRegistry

from release_exporter.index_client import IndexClient
from release_exporter.metrics import PrometheusMetricSet


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.content = text.encode("utf-8")


class FakeSession:
    """Serves canned responses keyed by URL and records every GET."""

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.calls: list[str] = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(200, route)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> IndexClient:
    return IndexClient(session=session)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metric_set(registry: CollectorRegistry) -> PrometheusMetricSet:
    return PrometheusMetricSet(registry)
