"""Capability contract the bots need from the SmartFox SDK.

The protocol SDK itself (handshake, framing, SFSObject serialization) is not
part of this project. An adapter module exposes it through the interfaces
below; ``sdk.load_sdk`` checks the adapter once at startup and the rest of
the code only ever talks to these types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol, runtime_checkable


class SfsEvent(str, Enum):
    """Client events the bots subscribe to."""

    CONNECTION = "connection"
    LOGIN = "login"
    LOGIN_ERROR = "loginError"
    ROOM_JOIN = "roomJoin"
    ROOM_JOIN_ERROR = "roomJoinError"
    CONNECTION_LOST = "connectionLost"
    EXTENSION_RESPONSE = "extensionResponse"


# Listeners get the event params: "success" (CONNECTION), "room" (ROOM_JOIN),
# "cmd" and "params" (EXTENSION_RESPONSE), "error_message" / "reason".
EventListener = Callable[[Mapping[str, Any]], None]


class SfsArray(Protocol):
    def add_sfs_object(self, value: SfsObject) -> None: ...

    def add_utf_string(self, value: str) -> None: ...

    def size(self) -> int: ...

    def get_sfs_object(self, index: int) -> SfsObject | None: ...

    def get_utf_string(self, index: int) -> str | None: ...


class SfsObject(Protocol):
    """Typed key/value payload.

    Getters return ``None`` for a missing key and may raise on a type
    mismatch.
    """

    def put_utf_string(self, key: str, value: str) -> None: ...

    def put_int(self, key: str, value: int) -> None: ...

    def put_sfs_object(self, key: str, value: SfsObject) -> None: ...

    def put_sfs_array(self, key: str, value: SfsArray) -> None: ...

    def get_utf_string(self, key: str) -> str | None: ...

    def get_int(self, key: str) -> int | None: ...

    def get_sfs_object(self, key: str) -> SfsObject | None: ...

    def get_sfs_array(self, key: str) -> SfsArray | None: ...

    def get_keys(self) -> Iterable[str]: ...


class RoomInfo(Protocol):
    name: str
    user_count: int


@runtime_checkable
class SfsClient(Protocol):
    def connect(self, host: str, port: int, use_ssl: bool) -> None: ...

    def send(self, request: Any) -> None: ...

    def add_event_listener(self, event: SfsEvent, listener: EventListener) -> None: ...

    def get_room_list(self) -> Iterable[RoomInfo]: ...


@runtime_checkable
class SfsApi(Protocol):
    """Factory side of the SDK: clients, payloads and requests."""

    def create_client(self) -> SfsClient: ...

    def new_object(self) -> SfsObject: ...

    def new_array(self) -> SfsArray: ...

    def login_request(
        self, username: str, password: str, params: SfsObject, zone: str
    ) -> Any: ...

    def extension_request(self, cmd: str, params: SfsObject) -> Any: ...

    def join_room_request(self, name: str) -> Any: ...

    def leave_room_request(self, room: Any = None) -> Any: ...
