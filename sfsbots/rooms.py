"""Room-name resolution against the client's live room list.

A room category such as ``lobby`` may exist as several server-side
instances (``lobby@1``, ``lobby@2``, ...), optionally with a ``w1#`` world
prefix. Bots join the busiest instance of the requested category.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from .protocol import RoomInfo, SfsClient

logger = logging.getLogger(__name__)

WORLD_PREFIX = "w1#"


def _as_list(rooms: Iterable[Any] | None) -> list[Any] | None:
    if rooms is None:
        return None
    try:
        return list(rooms)
    except TypeError:
        return None


def room_list(client: SfsClient) -> list[Any]:
    """Rooms known to the client: its own list, else its room manager's."""
    try:
        rooms = _as_list(client.get_room_list())
    except Exception as e:
        logger.debug("get_room_list() failed: %s", e)
        rooms = None
    if rooms is not None:
        return rooms

    manager = getattr(client, "room_manager", None)
    if manager is None:
        return []
    try:
        return _as_list(manager.get_room_list()) or []
    except Exception as e:
        logger.debug("room_manager.get_room_list() failed: %s", e)
        return []


def room_user_count(room: RoomInfo) -> int:
    try:
        return int(room.user_count or 0)
    except (AttributeError, TypeError, ValueError):
        return 0


def _name_forms(base: str) -> tuple[str, ...]:
    with_prefix = base if base.startswith(WORLD_PREFIX) else WORLD_PREFIX + base
    without_prefix = base[len(WORLD_PREFIX):] if base.startswith(WORLD_PREFIX) else base
    return (base, with_prefix, without_prefix)


def _matches(name: str, forms: Sequence[str]) -> bool:
    return any(name == f or name.startswith(f + "@") for f in forms)


def resolve_room_name(base_name: str, rooms: Iterable[RoomInfo]) -> str:
    """Concrete room to join for ``base_name``.

    Fully qualified names (containing ``@``) pass through. Otherwise the
    matching room with the most users wins, ties going to the first one
    listed; with no match the base name is returned and the server decides.
    """
    base = (base_name or "").strip()
    if not base:
        return base_name
    if "@" in base:
        return base

    forms = _name_forms(base)
    best: RoomInfo | None = None
    best_count = 0
    for room in rooms:
        name = getattr(room, "name", None)
        if not name or not _matches(str(name), forms):
            continue
        count = room_user_count(room)
        if best is None or count > best_count:
            best, best_count = room, count

    if best is None:
        return base
    return str(best.name)
