"""Shared test fixtures for sfs-bots tests.

The SmartFox SDK is replaced by a small in-memory fake: payload objects are
typed dicts, the client records what it is asked to send, and events are
dispatched by hand. Timers run on a manual clock.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Callable

import pytest

from sfsbots.bot import BotActor
from sfsbots.bot_state import BotConfig
from sfsbots.protocol import SfsEvent


# ---------------------------------------------------------------------------
#  Manual clock
# ---------------------------------------------------------------------------


class FakeHandle:
    def __init__(self, when: float, seq: int, callback: Callable, args: tuple) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """``call_later`` implementation driven by ``advance()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable, *args: Any) -> FakeHandle:
        self._seq += 1
        handle = FakeHandle(self.now + max(0.0, delay), self._seq, callback, args)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self._handles if not h.cancelled]


# ---------------------------------------------------------------------------
#  Fake SDK
# ---------------------------------------------------------------------------


class FakeSfsArray:
    def __init__(self) -> None:
        self._items: list[tuple[str, Any]] = []

    def add_sfs_object(self, value: FakeSfsObject) -> None:
        self._items.append(("object", value))

    def add_utf_string(self, value: str) -> None:
        self._items.append(("utf", value))

    def add_int(self, value: int) -> None:
        self._items.append(("int", value))

    def size(self) -> int:
        return len(self._items)

    def _get(self, index: int, kind: str) -> Any:
        item_kind, value = self._items[index]
        if item_kind != kind:
            raise TypeError(f"item {index} is {item_kind}, not {kind}")
        return value

    def get_sfs_object(self, index: int) -> FakeSfsObject:
        return self._get(index, "object")

    def get_utf_string(self, index: int) -> str:
        return self._get(index, "utf")


class FakeSfsObject:
    def __init__(self) -> None:
        self._data: dict[str, tuple[str, Any]] = {}

    def put_utf_string(self, key: str, value: str) -> None:
        self._data[key] = ("utf", value)

    def put_int(self, key: str, value: int) -> None:
        self._data[key] = ("int", value)

    def put_sfs_object(self, key: str, value: FakeSfsObject) -> None:
        self._data[key] = ("object", value)

    def put_sfs_array(self, key: str, value: FakeSfsArray) -> None:
        self._data[key] = ("array", value)

    def _get(self, key: str, kind: str) -> Any:
        if key not in self._data:
            return None
        item_kind, value = self._data[key]
        if item_kind != kind:
            raise TypeError(f"{key} is {item_kind}, not {kind}")
        return value

    def get_utf_string(self, key: str) -> str | None:
        return self._get(key, "utf")

    def get_int(self, key: str) -> int | None:
        return self._get(key, "int")

    def get_sfs_object(self, key: str) -> FakeSfsObject | None:
        return self._get(key, "object")

    def get_sfs_array(self, key: str) -> FakeSfsArray | None:
        return self._get(key, "array")

    def get_keys(self) -> list[str]:
        return list(self._data)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, (kind, value) in self._data.items():
            if kind == "object":
                out[key] = value.to_dict()
            elif kind == "array":
                out[key] = [
                    v.to_dict() if k == "object" else v for k, v in value._items
                ]
            else:
                out[key] = value
        return out


@dataclass
class LoginRequest:
    username: str
    password: str
    params: FakeSfsObject
    zone: str


@dataclass
class ExtensionRequest:
    cmd: str
    params: FakeSfsObject


@dataclass
class JoinRoomRequest:
    name: str


@dataclass
class LeaveRoomRequest:
    room: Any = None


@dataclass
class FakeRoom:
    name: str
    user_count: int = 0


class FakeClient:
    def __init__(self) -> None:
        self.connected_to: tuple[str, int, bool] | None = None
        self.sent: list[Any] = []
        self.rooms: list[Any] = []
        self._listeners: dict[SfsEvent, list[Callable]] = {}

    def connect(self, host: str, port: int, use_ssl: bool) -> None:
        self.connected_to = (host, port, use_ssl)

    def send(self, request: Any) -> None:
        self.sent.append(request)

    def add_event_listener(self, event: SfsEvent, listener: Callable) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def get_room_list(self) -> list[Any]:
        return self.rooms

    def dispatch(self, event: SfsEvent, **params: Any) -> None:
        for listener in self._listeners.get(event, []):
            listener(params)

    # --- helpers for assertions ---

    def extensions(self, cmd: str | None = None) -> list[ExtensionRequest]:
        return [
            r
            for r in self.sent
            if isinstance(r, ExtensionRequest) and (cmd is None or r.cmd == cmd)
        ]

    def of_type(self, kind: type) -> list[Any]:
        return [r for r in self.sent if isinstance(r, kind)]


class FakeApi:
    def __init__(self) -> None:
        self.clients: list[FakeClient] = []
        self.reject_room_refs = False

    def create_client(self) -> FakeClient:
        client = FakeClient()
        self.clients.append(client)
        return client

    def new_object(self) -> FakeSfsObject:
        return FakeSfsObject()

    def new_array(self) -> FakeSfsArray:
        return FakeSfsArray()

    def login_request(
        self, username: str, password: str, params: FakeSfsObject, zone: str
    ) -> LoginRequest:
        return LoginRequest(username, password, params, zone)

    def extension_request(self, cmd: str, params: FakeSfsObject) -> ExtensionRequest:
        return ExtensionRequest(cmd, params)

    def join_room_request(self, name: str) -> JoinRoomRequest:
        return JoinRoomRequest(name)

    def leave_room_request(self, room: Any = None) -> LeaveRoomRequest:
        if room is not None and self.reject_room_refs:
            raise TypeError("not a room")
        return LeaveRoomRequest(room)


# ---------------------------------------------------------------------------
#  Payload builders
# ---------------------------------------------------------------------------


def _product(
    type_: str | None = "CLOTH",
    clip: str | None = "shirt_01",
    id_: int | None = 1,
    colors: list[str] | None = None,
) -> FakeSfsObject:
    p = FakeSfsObject()
    if type_ is not None:
        p.put_utf_string("type", type_)
    if clip is not None:
        p.put_utf_string("clip", clip)
    if id_ is not None:
        p.put_int("id", id_)
    if colors is not None:
        arr = FakeSfsArray()
        for c in colors:
            arr.add_utf_string(c)
        p.put_sfs_array("colors", arr)
    return p


def _shop_response(
    shop_id: int | None, groups: dict[str, list[FakeSfsObject]]
) -> FakeSfsObject:
    params = FakeSfsObject()
    if shop_id is not None:
        params.put_int("shopID", shop_id)
    shop_list = FakeSfsObject()
    for key, products in groups.items():
        arr = FakeSfsArray()
        for p in products:
            arr.add_sfs_object(p)
        shop_list.put_sfs_array(key, arr)
    params.put_sfs_object("shopProductList", shop_list)
    return params


@pytest.fixture
def make_product() -> Callable[..., FakeSfsObject]:
    return _product


@pytest.fixture
def make_shop_response() -> Callable[..., FakeSfsObject]:
    return _shop_response


@pytest.fixture
def make_room() -> Callable[..., FakeRoom]:
    return FakeRoom


# ---------------------------------------------------------------------------
#  Bots
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def bot_config() -> BotConfig:
    return BotConfig(
        host="game.local",
        port=8080,
        zone="World",
        username="bot01",
        password="secret",
        join_room="lobby",
        move_interval_ms=1000,
        grid_width=20,
        grid_height=10,
    )


@pytest.fixture
def make_bot(api: FakeApi, clock: ManualClock, bot_config: BotConfig):
    """Build a BotActor on the fake SDK; keyword args override BotConfig."""

    def _make(**overrides: Any) -> BotActor:
        config = replace(bot_config, **overrides)
        return BotActor(api, config, scheduler=clock, rng=random.Random(7))

    return _make


@pytest.fixture
def request_types() -> dict[str, type]:
    return {
        "login": LoginRequest,
        "extension": ExtensionRequest,
        "join": JoinRoomRequest,
        "leave": LeaveRoomRequest,
    }
