"""Swarm orchestrator: creates the bots and keeps an eye on them.

Bots are spawned one after another with ``staggerMs`` between them so the
server does not see a connection burst. Each bot is bound to a proxy slot
(its zero-based index) up front; the actual route is picked by the
transport when the SDK opens the connection.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Awaitable, Callable

from .bot import BotActor
from .bot_state import BotConfig, BotPhase
from .config import SwarmConfig
from .protocol import SfsApi
from .proxy import ProxySelector

logger = logging.getLogger(__name__)

ActorFactory = Callable[[SfsApi, BotConfig], BotActor]


def make_run_id() -> str:
    """Last six digits of the current epoch time in milliseconds."""
    return str(int(time.time() * 1000))[-6:]


def make_username(
    prefix: str, index: int, run_id: str | None = None, suffix: str = ""
) -> str:
    """``bot01``-style name; ``run_id`` makes it unique across runs."""
    username = f"{prefix}{index:02d}"
    if run_id:
        username = f"{username}_{run_id}_{index}"
    if suffix:
        username = f"{username}{suffix}"
    return username


def bot_config_for(
    config: SwarmConfig,
    username: str,
    index: int,
    selector: ProxySelector | None = None,
) -> BotConfig:
    """BotConfig for the 1-based bot ``index``."""
    proxy_index = index - 1 if selector is not None else None
    return BotConfig(
        host=config.host,
        port=config.port,
        zone=config.zone,
        username=username,
        password=config.password,
        use_ssl=config.use_ssl,
        join_room=config.join_room,
        zone_only=config.zone_only,
        send_init=config.send_init,
        init_timeout_ms=config.init_timeout_ms,
        join_delay_ms=config.join_delay_ms,
        move_interval_ms=config.move_interval_ms,
        grid_width=config.grid_width,
        grid_height=config.grid_height,
        enable_random_clothes=config.enable_random_clothes,
        cloth_shop_ids=tuple(config.cloth_shop_ids),
        cloth_request_delay_ms=config.cloth_request_delay_ms,
        cloth_change_interval_ms=config.cloth_change_interval_ms,
        proxy_index=proxy_index,
        proxy=(
            selector.endpoint_for_index(proxy_index)
            if selector is not None and proxy_index is not None
            else None
        ),
    )


class Swarm:
    """Spawns BotActors and reports how far they got."""

    def __init__(
        self,
        config: SwarmConfig,
        api: SfsApi,
        selector: ProxySelector | None = None,
        actor_factory: ActorFactory = BotActor,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._api = api
        self._selector = selector
        self._actor_factory = actor_factory
        self._sleep = sleep
        self.actors: list[BotActor] = []
        self.run_id = make_run_id() if config.randomize_names else None

    def usernames(self) -> list[str]:
        return [
            make_username(
                self._config.name_prefix, i, self.run_id, self._config.name_suffix
            )
            for i in range(1, self._config.bot_count + 1)
        ]

    async def spawn(self) -> list[BotActor]:
        """Create and connect every bot, pausing ``staggerMs`` in between."""
        stagger = self._config.stagger_ms / 1000.0
        logger.info(
            "Spawning %d bot(s) against %s:%d (zone %s)",
            self._config.bot_count,
            self._config.host,
            self._config.port,
            self._config.zone,
        )
        for index, username in enumerate(self.usernames(), start=1):
            bot_config = bot_config_for(self._config, username, index, self._selector)
            actor = self._actor_factory(self._api, bot_config)
            self.actors.append(actor)
            actor.connect()
            await self._sleep(stagger)
        logger.info("All %d bot(s) spawned", len(self.actors))
        return self.actors

    def phase_counts(self) -> dict[BotPhase, int]:
        return dict(Counter(actor.phase for actor in self.actors))

    async def report_loop(self) -> None:
        """Periodically log how many bots sit in each phase."""
        interval = self._config.report_interval_ms / 1000.0
        if interval <= 0:
            return
        while True:
            await self._sleep(interval)
            logger.info("Bot status: %s", _format_counts(self.phase_counts()))


def _format_counts(counts: dict[BotPhase, int]) -> str:
    if not counts:
        return "no bots"
    return ", ".join(
        f"{phase.value}={counts[phase]}" for phase in BotPhase if phase in counts
    )
