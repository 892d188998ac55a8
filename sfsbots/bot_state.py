"""Per-bot configuration and lifecycle phase.

Each spawned bot gets an immutable BotConfig built by the swarm, and its
actor reports where it is in the lifecycle through BotPhase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BotPhase(Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"
    ZONE_ONLY = "zone_only"
    JOINING = "joining"
    JOINED = "joined"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class BotConfig:
    """Everything a single bot needs; never mutated after creation."""

    host: str
    port: int
    zone: str
    username: str
    password: str = ""
    use_ssl: bool = False

    # Lifecycle
    join_room: str | None = None
    zone_only: bool = False
    send_init: bool = True
    init_timeout_ms: int = 800
    join_delay_ms: int = 250

    # Movement
    move_interval_ms: int = 1000
    grid_width: int = 10
    grid_height: int = 10

    # Clothing automation
    enable_random_clothes: bool = False
    cloth_shop_ids: tuple[int, ...] = field(default_factory=tuple)
    cloth_request_delay_ms: int = 0
    cloth_change_interval_ms: int = 0

    # Proxy slot (zero-based bot index) and the endpoint it maps to
    proxy_index: int | None = None
    proxy: str | None = None
