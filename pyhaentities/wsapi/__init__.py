# pyHAEntities - Home Assistant WebSocket API Class
# -*- coding: utf-8 -*-
"""
 Home Assistant WebSocket API Class

 This module issues single commands against the Home Assistant WebSocket
 API (ws://<host>:8123/api/websocket). Every call opens its own socket,
 runs the hello / auth handshake, sends one tagged request and closes the
 socket as soon as the matching response arrives.

 Class:
    WSAPI(timeout: float = 5.0) - Initialize WSAPI
    CancelToken() - Cancellation handle that can be passed to WSAPI.call()

 Functions:
    call(socket_url, token, request, timeout, cancel) - Run one command and return its result

 Handshake:
    server -> {"type": "auth_required"}
    client -> {"type": "auth", "access_token": token}
    server -> {"type": "auth_ok"}
    client -> {"id": 1, "type": "config/device_registry/list"}
    server -> {"id": 1, "type": "result", "success": true, "result": [...]}

 Errors:
    HAConnectionError   - Socket could not be opened or closed mid exchange
    ProtocolError       - Malformed or unexpected hello frame
    AuthError           - Token rejected
    CommandError        - Server answered success: false
    HATimeoutError      - No answer within timeout
    CallCancelledError  - CancelToken triggered

 For more information see https://developers.home-assistant.io/docs/api/websocket
"""

import asyncio
import json
import logging
import sys

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from pyhaentities import __version__
from pyhaentities.exceptions import (AuthError, CallCancelledError, CommandError, HAConnectionError,
                                     HATimeoutError, ProtocolError)

# Default seconds to wait for a full exchange
DEFAULT_TIMEOUT = 5.0

# Setup Logging
log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)


class CancelToken:
    """Cancellation handle shared between a caller and one or more calls

    The event is created on first wait() so a token can be built outside
    the event loop that uses it.
    """

    def __init__(self):
        self._cancelled = False
        self._event = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    async def wait(self):
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()


# WSAPI Class
class WSAPI:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    async def call(self, socket_url: str, token: str, request: dict, timeout: float = None,
                   cancel: CancelToken = None) -> list:
        """
        Run a single command on a fresh socket and return its result.

        The timeout bounds the whole call (connect, handshake and response).
        Cancelling aborts the call in any phase, including while the socket
        is still opening.

        Args:
            socket_url = WebSocket URL (ws://host:8123/api/websocket)
            token      = Long-lived access token
            request    = Command object, e.g. {"type": "get_states"}
            timeout    = Seconds before the call fails with HATimeoutError (default: self.timeout)
            cancel     = Optional CancelToken to abort the call
        """
        timeout = self.timeout if timeout is None else timeout
        if cancel is not None and cancel.cancelled:
            raise CallCancelledError("call cancelled")
        log.debug(f"WSAPI call {request.get('type')} -> {socket_url}")

        session = asyncio.ensure_future(self._session(socket_url, token, request))
        waiters = {session}
        stopper = None
        if cancel is not None:
            stopper = asyncio.ensure_future(cancel.wait())
            waiters.add(stopper)
        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
            if session in done:
                return session.result()
            if stopper is not None and stopper in done:
                log.debug(f"WSAPI call {request.get('type')} cancelled")
                raise CallCancelledError("call cancelled")
            log.debug(f"WSAPI call {request.get('type')} timed out after {timeout}s")
            raise HATimeoutError(f"No response from {socket_url} within {timeout}s")
        finally:
            pending = [task for task in waiters if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _session(self, socket_url: str, token: str, request: dict) -> list:
        # Deadline is enforced by call(), not by the opening handshake
        try:
            ws = await websockets.connect(socket_url, open_timeout=None, max_size=None)
        except (OSError, WebSocketException) as exc:
            reason = str(exc) or type(exc).__name__
            raise HAConnectionError(f"Unable to connect to {socket_url}: {reason}") from exc
        try:
            return await self._exchange(ws, token, request)
        finally:
            await ws.close()

    async def _exchange(self, ws, token: str, request: dict) -> list:
        try:
            # Hello
            try:
                hello = json.loads(await ws.recv())
            except ValueError:
                raise ProtocolError("Invalid hello")
            if not isinstance(hello, dict) or hello.get("type") != "auth_required":
                kind = hello.get("type") if isinstance(hello, dict) else hello
                raise ProtocolError(f"Unexpected hello: {kind}")

            # Authenticate
            await ws.send(json.dumps({"type": "auth", "access_token": token}))
            try:
                reply = json.loads(await ws.recv())
            except ValueError:
                raise AuthError("invalid auth response")
            if not isinstance(reply, dict) or reply.get("type") != "auth_ok":
                message = reply.get("message") if isinstance(reply, dict) else None
                raise AuthError(f"auth failed: {message}" if message else "auth failed")
            log.debug("WSAPI authenticated")

            # Issue the request - one pending call per session
            request_id = 1
            await ws.send(json.dumps({**request, "id": request_id}))
            while True:
                try:
                    frame = json.loads(await ws.recv())
                except ValueError:
                    continue
                if not isinstance(frame, dict) or frame.get("id") != request_id:
                    continue
                if frame.get("success") is False:
                    error = frame.get("error") or {}
                    message = error.get("message") if isinstance(error, dict) else None
                    raise CommandError(message or "command failed")
                result = frame.get("result")
                return [] if result is None else result
        except ConnectionClosed as exc:
            raise HAConnectionError(f"Connection closed: {exc}") from exc
