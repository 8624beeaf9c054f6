from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from wmsdb.intake.client import ApiClient, ApiError
from wmsdb.intake.session import SessionStore

USER_JSON = {
    "id": 3,
    "username": "operator",
    "full_name": "Warehouse Operator",
    "role": "WAREHOUSE_OPERATOR",
    "is_active": True,
    "last_login_at": None,
    "created_at": "2024-05-01T08:00:00+00:00",
}


def _store(tmp_path, handler, token=None):
    client = ApiClient("http://wms.test", transport=httpx.MockTransport(handler), token=token)
    return SessionStore(client, tmp_path / "session.json"), client


def _auth_server(me_status=200):
    def handler(request):
        if request.url.path == "/api/auth/login":
            body = json.loads(request.content)
            if body["password"] != "scan-it-123":
                return httpx.Response(401, json={"detail": "Invalid credentials."})
            return httpx.Response(
                200,
                json={"access_token": "tok-1", "token_type": "bearer", "expires_in": 60, "user": USER_JSON},
            )
        if request.url.path == "/api/auth/me":
            if me_status != 200:
                return httpx.Response(me_status, json={"detail": "Could not validate credentials"})
            return httpx.Response(200, json={**USER_JSON, "full_name": "Renamed Operator"})
        if request.url.path == "/api/auth/logout":
            return httpx.Response(204)
        return httpx.Response(404)

    return handler


def test_login_persists_token_and_user(tmp_path):
    store, client = _store(tmp_path, _auth_server())

    user = asyncio.run(store.login("operator", "scan-it-123"))

    assert user.username == "operator"
    assert store.is_authenticated
    assert client.token == "tok-1"
    saved = json.loads((tmp_path / "session.json").read_text())
    assert saved["token"] == "tok-1"
    assert saved["user"]["role"] == "WAREHOUSE_OPERATOR"


def test_failed_login_stores_nothing(tmp_path):
    store, client = _store(tmp_path, _auth_server())

    with pytest.raises(ApiError) as exc:
        asyncio.run(store.login("operator", "wrong"))

    assert exc.value.status_code == 401
    assert not store.is_authenticated
    assert client.token is None
    assert not (tmp_path / "session.json").exists()


def test_load_restores_saved_session(tmp_path):
    (tmp_path / "session.json").write_text(json.dumps({"token": "tok-9", "user": USER_JSON}))
    store, client = _store(tmp_path, _auth_server())

    user = store.load()

    assert user.id == 3
    assert client.token == "tok-9"
    assert store.is_authenticated


@pytest.mark.parametrize("content", ["{not json", json.dumps({"token": "x"}), json.dumps([1, 2])])
def test_load_discards_unreadable_file(tmp_path, content):
    path = tmp_path / "session.json"
    path.write_text(content)
    store, client = _store(tmp_path, _auth_server())

    assert store.load() is None
    assert not path.exists()
    assert client.token is None


def test_load_without_file(tmp_path):
    store, _ = _store(tmp_path, _auth_server())

    assert store.load() is None
    assert not store.is_authenticated


def test_logout_clears_local_state_even_when_server_fails(tmp_path):
    def broken(request):
        if request.url.path == "/api/auth/logout":
            raise httpx.ConnectError("offline", request=request)
        return _auth_server()(request)

    store, client = _store(tmp_path, broken)

    async def scenario():
        await store.login("operator", "scan-it-123")
        await store.logout()

    asyncio.run(scenario())

    assert not store.is_authenticated
    assert client.token is None
    assert not (tmp_path / "session.json").exists()


def test_refresh_mirrors_server_user(tmp_path):
    store, _ = _store(tmp_path, _auth_server())

    async def scenario():
        await store.login("operator", "scan-it-123")
        return await store.refresh()

    user = asyncio.run(scenario())

    assert user.full_name == "Renamed Operator"
    saved = json.loads((tmp_path / "session.json").read_text())
    assert saved["user"]["full_name"] == "Renamed Operator"


def test_refresh_clears_session_on_401(tmp_path):
    (tmp_path / "session.json").write_text(json.dumps({"token": "expired", "user": USER_JSON}))
    store, client = _store(tmp_path, _auth_server(me_status=401))
    store.load()

    assert asyncio.run(store.refresh()) is None
    assert not store.is_authenticated
    assert client.token is None
    assert not (tmp_path / "session.json").exists()


def test_refresh_propagates_other_errors(tmp_path):
    store, _ = _store(tmp_path, _auth_server(me_status=500), token="tok-1")

    with pytest.raises(ApiError):
        asyncio.run(store.refresh())


def test_refresh_without_token_is_noop(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=USER_JSON)

    store, _ = _store(tmp_path, handler)

    assert asyncio.run(store.refresh()) is None
    assert calls == []
