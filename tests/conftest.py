import inspect

import httpx
import pytest

from kycflow.client.remote import RemoteClient
from kycflow.core.orchestrator import VerificationWorkflow
from kycflow.store.session_store import SessionStore

BASE_URL = "http://authority.test/api"


class MemoryStorage:
    """Key-value storage with the slice of the redis API the session store uses."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class FakeAuthority:
    """Routes requests by (method, path) and records everything it saw."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"no route for {path}"})
        result = route(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def route(self, method, path, status_code=200, json=None, text=None):
        def _respond(request):
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json if json is not None else {})
        self.routes[(method, path)] = _respond

    def set_status(self, status, message=None):
        body = {"status": status}
        if message is not None:
            body["message"] = message
        self.route("GET", "/status", json=body)

    def calls(self, path):
        return [r for r in self.requests if r.url.path.endswith(path)]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage=storage, prefix="test:")


@pytest.fixture
def authority():
    return FakeAuthority()


@pytest.fixture
def client(store, authority):
    return RemoteClient(store, base_url=BASE_URL, transport=httpx.MockTransport(authority))


@pytest.fixture
def workflow(store, client):
    return VerificationWorkflow(store=store, client=client, poll_interval_sec=0.02)
