from __future__ import annotations

import fakeredis
import pytest

from ttt_client.config import ClientSettings, get_settings
from ttt_client.identity import NICKNAME_MAX_LENGTH, DeviceIdentityStore, normalize_nickname


def test_device_id_created_once_and_reused(redis_client: fakeredis.FakeRedis) -> None:
    store = DeviceIdentityStore(r=redis_client, key="ttt:device_id")

    first = store.get_or_create_device_id()
    second = DeviceIdentityStore(r=redis_client, key="ttt:device_id").get_or_create_device_id()

    assert first.startswith("device-")
    assert first == second
    assert redis_client.get("ttt:device_id") == first


def test_device_ids_are_scoped_by_key(redis_client: fakeredis.FakeRedis) -> None:
    a = DeviceIdentityStore(r=redis_client, key="ttt:device_id:a").get_or_create_device_id()
    b = DeviceIdentityStore(r=redis_client, key="ttt:device_id:b").get_or_create_device_id()
    assert a != b


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("alice", "alice"),
        ("  alice  ", "alice"),
        ("a", "a"),
        ("x" * NICKNAME_MAX_LENGTH, "x" * NICKNAME_MAX_LENGTH),
        (" " + "x" * NICKNAME_MAX_LENGTH + " ", "x" * NICKNAME_MAX_LENGTH),
        ("", None),
        ("    ", None),
        ("x" * (NICKNAME_MAX_LENGTH + 1), None),
    ],
)
def test_normalize_nickname(raw: str, expected: str | None) -> None:
    assert normalize_nickname(raw) == expected


def test_settings_defaults() -> None:
    s = ClientSettings()
    assert s.ws_url == "ws://127.0.0.1:7350/ws"
    assert s.redis_url == "redis://localhost:6379/0"


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TTT_SERVER_HOST", "play.example.com")
    monkeypatch.setenv("TTT_SERVER_PORT", "443")
    monkeypatch.setenv("TTT_SERVER_SSL", "true")
    monkeypatch.setenv("TTT_LOG_LEVEL", "debug")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/2")

    get_settings.cache_clear()
    try:
        s = get_settings()
    finally:
        get_settings.cache_clear()

    assert s.ws_url == "wss://play.example.com:443/ws"
    assert s.log_level == "DEBUG"
    assert s.redis_url == "redis://cache:6379/2"
    assert s.server_key == "defaultkey"
