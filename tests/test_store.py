from __future__ import annotations

import json

import anyio
import httpx
import pytest

from authapi.config import StoreSettings
from authapi.errors import StoreError, UnexpectedRecordError
from authapi.models import User
from authapi.store import UserStore, storage_key


def test_storage_key_replaces_illegal_characters() -> None:
    assert storage_key("a.b#c$d[e]f@example.com") == "a_b_c_d_e_f@example_com"


def test_storage_key_preserves_other_characters_and_is_idempotent() -> None:
    email = "First+Last-01@mail.example.org"
    key = storage_key(email)
    assert key == "First+Last-01@mail_example_org"
    assert storage_key(key) == key


def test_get_returns_none_when_store_has_no_record(settings, fake_store) -> None:
    store = UserStore(settings, transport=fake_store.transport)

    assert anyio.run(store.get, "missing@example_com") is None

    request = fake_store.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/users/missing@example_com.json"
    assert request.url.params["auth"] == settings.secret


def test_put_then_get_round_trips_record(settings, fake_store) -> None:
    store = UserStore(settings, transport=fake_store.transport)
    user = User(email="alice@example.com", password="secret1")

    anyio.run(store.put, "alice@example_com", user)

    put_request = fake_store.requests[0]
    assert put_request.method == "PUT"
    assert json.loads(put_request.content) == {"email": "alice@example.com", "password": "secret1"}
    assert anyio.run(store.get, "alice@example_com") == user


def test_error_status_raises_store_error(settings, fake_store) -> None:
    fake_store.fail_status = 503
    store = UserStore(settings, transport=fake_store.transport)

    with pytest.raises(StoreError) as excinfo:
        anyio.run(store.get, "alice@example_com")

    assert excinfo.value.status == 503
    assert excinfo.value.body == "store unavailable"
    assert "503 - store unavailable" in str(excinfo.value)


def test_wrong_secret_is_reported_as_store_error(fake_store) -> None:
    store = UserStore(
        StoreSettings(base_url="https://store.test", secret="wrong"),
        transport=fake_store.transport,
    )

    with pytest.raises(StoreError) as excinfo:
        anyio.run(store.put, "bob@example_com", User(email="bob@example.com", password="hunter22"))

    assert excinfo.value.status == 401
    assert fake_store.records == {}


def test_non_json_body_raises_store_error(settings) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    store = UserStore(settings, transport=transport)

    with pytest.raises(StoreError, match="invalid response"):
        anyio.run(store.get, "alice@example_com")


def test_unexpected_record_shape_raises_store_error(settings) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text='"just a string"'))
    store = UserStore(settings, transport=transport)

    with pytest.raises(StoreError, match="unexpected record"):
        anyio.run(store.get, "alice@example_com")


def test_transport_failure_raises_store_error(settings) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = UserStore(settings, transport=httpx.MockTransport(refuse))

    with pytest.raises(StoreError, match="Failed to contact user store") as excinfo:
        anyio.run(store.get, "alice@example_com")

    assert excinfo.value.status is None


def test_base_url_path_prefix_is_kept() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, text="null")

    store = UserStore(
        StoreSettings(base_url="https://store.test/tenant", secret="s"),
        transport=httpx.MockTransport(handler),
    )
    anyio.run(store.get, "alice@example_com")

    assert seen == ["/tenant/users/alice@example_com.json"]


@pytest.mark.parametrize(
    "key,raw_path",
    [
        ("a?b@c_com", b"/users/a%3Fb@c_com.json"),
        ("alice@example_com/password", b"/users/alice@example_com%2Fpassword.json"),
        ("100%@example_com", b"/users/100%25@example_com.json"),
        ("first+last@example_com", b"/users/first+last@example_com.json"),
    ],
)
def test_key_is_percent_encoded_into_a_single_path_segment(settings, fake_store, key, raw_path) -> None:
    store = UserStore(settings, transport=fake_store.transport)

    anyio.run(store.put, key, User(email="someone@example.com", password="abcdef"))
    anyio.run(store.get, key)

    for request in fake_store.requests:
        path, _, query = request.url.raw_path.partition(b"?")
        assert path == raw_path
        assert query == f"auth={settings.secret}".encode("ascii")
    assert list(fake_store.records) == [key]


def test_non_object_value_raises_unexpected_record_error(settings) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text='"secret1"'))
    store = UserStore(settings, transport=transport)

    with pytest.raises(UnexpectedRecordError):
        anyio.run(store.get, "alice@example_com")
