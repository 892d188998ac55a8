"""Proxy-aware replacement for the ``websockets`` connect primitive.

The SDK adapter opens its WebSocket through whatever callable it is handed.
``RoutedConnect`` has the same calling convention as
``websockets.asyncio.client.connect`` (awaitable, or usable with
``async with``) but asks the proxy selector for a route on every attempt and
tunnels the TCP connection through it before the WebSocket handshake.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import ClientConnection, connect
from websockets.protocol import State
from websockets.uri import parse_uri

from .proxy import ProxySelector

logger = logging.getLogger(__name__)


class _PendingConnection:
    """Awaitable / async-context-manager wrapper around one attempt."""

    def __init__(self, opener: Callable[[], Awaitable[ClientConnection]]) -> None:
        self._opener = opener
        self._connection: ClientConnection | None = None

    def __await__(self):
        return self._opener().__await__()

    async def __aenter__(self) -> ClientConnection:
        self._connection = await self._opener()
        return self._connection

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._connection is not None:
            await self._connection.close()


class RoutedConnect:
    """Drop-in substitute for ``connect`` routing through a ProxySelector."""

    # Connection state constants, as exposed by the websockets protocol
    State = State

    def __init__(
        self,
        selector: ProxySelector | None,
        base: Callable[..., Any] = connect,
    ) -> None:
        self._selector = selector
        self._base = base
        self.__wrapped__ = base

    def __call__(self, uri: str, **kwargs: Any) -> _PendingConnection:
        # The route is picked now, once per attempt, not when awaited.
        handle = self._selector.next_handle() if self._selector else None
        return _PendingConnection(lambda: self._open(uri, handle, kwargs))

    async def _open(
        self, uri: str, handle: Any, kwargs: dict[str, Any]
    ) -> ClientConnection:
        if handle is None:
            return await self._base(uri, **kwargs)

        ws_uri = parse_uri(uri)
        logger.debug(
            "Tunnelling %s:%d through proxy", ws_uri.host, ws_uri.port
        )
        sock = await handle.connect(dest_host=ws_uri.host, dest_port=ws_uri.port)
        kwargs = dict(kwargs, sock=sock, proxy=None)
        if ws_uri.secure:
            kwargs.setdefault("server_hostname", ws_uri.host)
        return await self._base(uri, **kwargs)


def build_connector(selector: ProxySelector | None) -> Callable[..., Any]:
    """Connect primitive for the SDK adapter: routed when proxies are set."""
    if selector is None:
        return connect
    return RoutedConnect(selector)
