from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authapi.config import StoreSettings


STORE_URL = "https://store.test"
STORE_SECRET = "tests-store-secret"


def _json_response(status_code: int, payload: object) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


class FakeDocumentStore:
    """In-memory stand-in for the REST document store."""

    def __init__(self, secret: str = STORE_SECRET) -> None:
        self.secret = secret
        self.records: Dict[str, object] = {}
        self.requests: List[httpx.Request] = []
        self.fail_status: Optional[int] = None

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="store unavailable")
        if request.url.params.get("auth") != self.secret:
            return _json_response(401, {"error": "Permission denied"})

        path = request.url.path
        if not (path.startswith("/users/") and path.endswith(".json")):
            return _json_response(404, {"error": "Not found"})
        key = path[len("/users/") : -len(".json")]

        if request.method == "GET":
            return _json_response(200, self.records.get(key))
        if request.method == "PUT":
            payload = json.loads(request.content)
            self.records[key] = payload
            return _json_response(200, payload)
        return _json_response(405, {"error": "Method not allowed"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture()
def settings() -> StoreSettings:
    return StoreSettings(base_url=STORE_URL, secret=STORE_SECRET)


@pytest.fixture()
def fake_store() -> FakeDocumentStore:
    return FakeDocumentStore()
