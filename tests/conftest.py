"""Shared fixtures: an in-memory stand-in for ``requests.Session``."""

import threading

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body=b"", headers=None, raw=True, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._body = body
        self.headers = headers or {}
        self.raw = object() if raw else None

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def iter_content(self, chunk_size=1):
        for offset in range(0, len(self._body), chunk_size):
            yield self._body[offset:offset + chunk_size]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    """Route table keyed by endpoint name; values are responses, exceptions or callables."""

    def __init__(self, base_url, routes=None):
        self.base_url = base_url
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def _dispatch(self, method, url, **kwargs):
        endpoint = url[len(self.base_url):]
        with self._lock:
            self.calls.append((method, endpoint, kwargs))
        handler = self.routes.get(endpoint)
        if handler is None:
            return FakeResponse(status_code=404, reason="Not Found")
        if callable(handler):
            handler = handler(**kwargs)
        if isinstance(handler, Exception):
            raise handler
        return handler

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, **kwargs)

    def count(self, endpoint):
        return sum(1 for _, called, _ in self.calls if called == endpoint)


BASE_URL = "http://probe.test/"
PAYLOAD = b"x" * (2 * 1024 * 1024)


def healthy_routes():
    return {
        "ip": FakeResponse(payload={"ip": "203.0.113.7"}),
        "ping": FakeResponse(payload={"ping": 999}),
        "download": FakeResponse(body=PAYLOAD, headers={"content-length": str(len(PAYLOAD))}),
        "upload": FakeResponse(payload={"uploadTime": 500}),
        "nmap": FakeResponse(payload={"nmap": "2 hosts up"}),
        "open-ports": FakeResponse(payload={"ports": "22, 443"}),
        "services": FakeResponse(payload={"services": "ssh, https"}),
        "vuln-scan": FakeResponse(payload={"vuln": "none found"}),
        "ssl-check": FakeResponse(payload={"ssl": "valid"}),
        "firewall-check": FakeResponse(payload={"firewall": "enabled"}),
    }


class StepClock:
    """Monotonic clock that advances ``step`` seconds per reading."""

    def __init__(self, start=100.0, step=0.25):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def fake_session():
    return FakeSession(BASE_URL, healthy_routes())


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
