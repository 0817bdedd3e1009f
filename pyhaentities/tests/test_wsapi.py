"""Tests for the WebSocket API client handshake, errors, timeout and cancellation."""
import asyncio
import time

import pytest

from pyhaentities.exceptions import (AuthError, CallCancelledError, CommandError, HAConnectionError,
                                     HATimeoutError, ProtocolError)
from pyhaentities.wsapi import WSAPI, CancelToken
from pyhaentities import wsapi

URL = "ws://ha.local:8123/api/websocket"
HELLO = {"type": "auth_required", "ha_version": "2024.6.0"}
AUTH_OK = {"type": "auth_ok", "ha_version": "2024.6.0"}


def call(request=None, timeout=1.0, cancel=None):
    return asyncio.run(WSAPI(timeout=timeout).call(URL, "TOKEN", request or {"type": "get_states"},
                                                  cancel=cancel))


def test_call_returns_result(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK, {"id": 1, "type": "result", "success": True, "result": [{"a": 1}]}])
    assert call() == [{"a": 1}]
    assert sock.url == URL
    assert sock.sent == [
        {"type": "auth", "access_token": "TOKEN"},
        {"id": 1, "type": "get_states"},
    ]
    assert sock.closed == 1


def test_missing_result_defaults_to_empty_list(fake_socket):
    fake_socket([HELLO, AUTH_OK, {"id": 1, "type": "result", "success": True}])
    assert call() == []


def test_unrelated_frames_are_ignored(fake_socket):
    fake_socket([
        HELLO, AUTH_OK,
        "not json",
        {"type": "event", "event": {}},
        {"id": 7, "success": True, "result": ["other"]},
        {"id": 1, "success": True, "result": ["mine"]},
    ])
    assert call() == ["mine"]


def test_command_error_message(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK, {"id": 1, "success": False, "error": {"code": "x", "message": "nope"}}])
    with pytest.raises(CommandError, match="nope"):
        call()
    assert sock.closed == 1


def test_command_error_fallback_message(fake_socket):
    fake_socket([HELLO, AUTH_OK, {"id": 1, "success": False}])
    with pytest.raises(CommandError, match="command failed"):
        call()


def test_invalid_hello(fake_socket):
    fake_socket(["<html>"])
    with pytest.raises(ProtocolError, match="Invalid hello"):
        call()


def test_unexpected_hello(fake_socket):
    fake_socket([{"type": "auth_ok"}])
    with pytest.raises(ProtocolError, match="Unexpected hello"):
        call()


def test_auth_rejected(fake_socket):
    sock = fake_socket([HELLO, {"type": "auth_invalid", "message": "Invalid access token"}])
    with pytest.raises(AuthError, match="Invalid access token"):
        call()
    # No request is sent after a failed auth
    assert len(sock.sent) == 1
    assert sock.closed == 1


def test_auth_response_not_json(fake_socket):
    fake_socket([HELLO, "garbage"])
    with pytest.raises(AuthError, match="invalid auth response"):
        call()


def test_no_response_times_out(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK])
    with pytest.raises(HATimeoutError):
        call(timeout=0.05)
    assert sock.closed == 1


def test_silent_server_times_out_during_hello(fake_socket):
    fake_socket([])
    with pytest.raises(TimeoutError):
        call(timeout=0.05)


def test_connect_failure(monkeypatch):
    async def refuse(url, **kwargs):
        raise OSError("Connection refused")

    monkeypatch.setattr(wsapi.websockets, "connect", refuse)
    with pytest.raises(HAConnectionError, match="Connection refused"):
        call()


def test_cancel_closes_socket(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK])

    async def scenario():
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        return await WSAPI(timeout=5).call(URL, "TOKEN", {"type": "get_states"}, cancel=token)

    with pytest.raises(CallCancelledError):
        asyncio.run(scenario())
    assert sock.closed == 1


def test_already_cancelled_never_connects(monkeypatch):
    async def connect(url, **kwargs):
        raise AssertionError("should not connect")

    monkeypatch.setattr(wsapi.websockets, "connect", connect)
    token = CancelToken()
    token.cancel()
    with pytest.raises(CallCancelledError):
        call(cancel=token)


def test_timeout_covers_connect_and_exchange(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK], delay=0.2)
    started = time.monotonic()
    with pytest.raises(HATimeoutError):
        call(timeout=0.25)
    assert time.monotonic() - started < 0.4
    assert sock.closed == 1


def test_slow_connect_times_out(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK], delay=5)
    started = time.monotonic()
    with pytest.raises(HATimeoutError):
        call(timeout=0.05)
    assert time.monotonic() - started < 1
    # Never opened, nothing to close
    assert sock.closed == 0


def test_cancel_while_connecting(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK], delay=5)

    async def scenario():
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)
        return await WSAPI(timeout=5).call(URL, "TOKEN", {"type": "get_states"}, cancel=token)

    started = time.monotonic()
    with pytest.raises(CallCancelledError):
        asyncio.run(scenario())
    assert time.monotonic() - started < 1
    assert sock.closed == 0
    assert sock.sent == []


def test_token_created_outside_event_loop(fake_socket):
    sock = fake_socket([HELLO, AUTH_OK])
    token = CancelToken()

    async def scenario():
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        return await WSAPI(timeout=5).call(URL, "TOKEN", {"type": "get_states"}, cancel=token)

    with pytest.raises(CallCancelledError):
        asyncio.run(scenario())
    assert token.cancelled
    assert sock.closed == 1


def test_connect_failure_without_message(monkeypatch):
    async def refuse(url, **kwargs):
        raise ConnectionResetError()

    monkeypatch.setattr(wsapi.websockets, "connect", refuse)
    with pytest.raises(HAConnectionError, match="ConnectionResetError"):
        call()
