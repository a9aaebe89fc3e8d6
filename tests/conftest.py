import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from homegate.client import HomegateClient
from homegate.config import HomegateConfig
from homegate.core.signer import Signer
from homegate.transport.base import Transport

RESOURCES = Path(__file__).parent / "resources"
FIXED_NOW = datetime(2022, 1, 25, 1, 30, 56, tzinfo=timezone.utc)


class FakeTransport(Transport):
    """Replays canned (status, body) pairs and records what was sent."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def queue(self, status, body):
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        self.responses.append((status, body))

    def send(self, method, url, headers, body=None):
        self.requests.append({"method": method, "url": url, "headers": dict(headers), "body": body})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        return self.responses.pop(0)

    def sent_payload(self, index=0):
        return json.loads(self.requests[index]["body"])


def load_fixture(name: str) -> bytes:
    return (RESOURCES / name).read_bytes()


@pytest.fixture
def fixture_bytes():
    return load_fixture


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def signer():
    return Signer(clock=lambda: FIXED_NOW)


@pytest.fixture
def client(transport, signer):
    return HomegateClient(config=HomegateConfig(backend_url="https://api.test"), transport=transport, signer=signer)
