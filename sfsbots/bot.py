"""A single simulated SmartFox client.

Lifecycle::

    CONNECTING -> CONNECTED -> LOGGING_IN -> LOGGED_IN -+-> ZONE_ONLY
                                                        |
                                                        +-> JOINING -> JOINED -> ACTIVE

Connection loss moves any phase to DISCONNECTED; there is no reconnect.

After login the bot sends ``init`` and waits for its acknowledgement, but no
longer than ``init_timeout_ms``; whichever comes first triggers the room
join, exactly once. Once in a room it walks around on a timer and, when
clothing automation is on, collects the shop catalogs and keeps buying and
wearing random clothes.
"""

from __future__ import annotations

import functools
import logging
import random
from typing import Any, Mapping

from .bot_state import BotConfig, BotPhase
from .catalog import ClothCatalog, ClothProduct, pick_color
from .protocol import SfsApi, SfsEvent, SfsObject
from .rooms import resolve_room_name, room_list
from .timers import Scheduler, Timer, TimerGroup

logger = logging.getLogger(__name__)

# Extension commands
CMD_INIT = "init"
CMD_ROOM_JOIN_COMPLETE = "roomjoincomplete"
CMD_WALK = "walkrequest"
CMD_SHOP_PRODUCT_LIST = "shopproductlist"
SHOP_PRODUCT_LIST_RESPONSES = frozenset({"shopproductlist", "shopproductlistA"})
CMD_PURCHASE = "purchase"
CMD_CHANGE_CLOTHES = "changeclothes"

INIT_CLIENT_KIND = "desktop"
CLOTHES_APPLY_DELAY_MS = 300


class BotActor:
    """Event-driven state machine for one bot connection."""

    def __init__(
        self,
        api: SfsApi,
        config: BotConfig,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.api = api
        self.config = config
        self.rng = rng or random.Random()
        self.phase = BotPhase.CONNECTING

        self.init_received = False
        self.join_started = False
        self.shop_requests_sent = False
        self.clothes_schedule_started = False
        self.catalog = ClothCatalog()

        self.timers = TimerGroup(scheduler)
        self._init_timer: Timer | None = None
        self._move_timer: Timer | None = None
        self._clothes_timer: Timer | None = None

        self.client = api.create_client()
        listeners = {
            SfsEvent.CONNECTION: self.on_connection,
            SfsEvent.LOGIN: self.on_login,
            SfsEvent.LOGIN_ERROR: self.on_login_error,
            SfsEvent.ROOM_JOIN: self.on_room_join,
            SfsEvent.ROOM_JOIN_ERROR: self.on_room_join_error,
            SfsEvent.CONNECTION_LOST: self.on_connection_lost,
            SfsEvent.EXTENSION_RESPONSE: self.on_extension_response,
        }
        for event, listener in listeners.items():
            self.client.add_event_listener(event, listener)

    @property
    def username(self) -> str:
        return self.config.username

    @property
    def zone_only(self) -> bool:
        return self.config.zone_only

    def connect(self) -> None:
        cfg = self.config
        if cfg.proxy:
            logger.debug(
                "Connecting %s via proxy slot %s (%s)",
                cfg.username,
                cfg.proxy_index,
                cfg.proxy,
            )
        self.phase = BotPhase.CONNECTING
        self.client.connect(cfg.host, cfg.port, cfg.use_ssl)

    # --- Event Handlers ---

    def on_connection(self, evt: Mapping[str, Any]) -> None:
        if not evt.get("success"):
            logger.warning(
                "Connection failed: %s (%s)",
                self.username,
                evt.get("error_message") or evt.get("reason") or "no reason given",
            )
            return

        logger.info("Connected: %s", self.username)
        self.phase = BotPhase.CONNECTED
        params = self.api.new_object()
        params.put_utf_string("username", self.username)
        params.put_utf_string("loginName", self.username)
        self._send(
            self.api.login_request(
                self.username, self.config.password, params, self.config.zone
            )
        )
        self.phase = BotPhase.LOGGING_IN

    def on_login(self, evt: Mapping[str, Any]) -> None:
        logger.info("Login ok: %s", self.username)
        self.phase = BotPhase.LOGGED_IN
        self.init_received = False
        self.join_started = False
        if self._init_timer is not None:
            self._init_timer.cancel()
            self._init_timer = None

        if self.zone_only:
            # Stay in the zone: no init, no room
            self.phase = BotPhase.ZONE_ONLY
            return

        if self.config.send_init:
            payload = self.api.new_object()
            payload.put_utf_string("client", INIT_CLIENT_KIND)
            self._extension(CMD_INIT, payload)
            self._init_timer = self.timers.once(
                self.config.init_timeout_ms, self._on_init_timeout, "init-timeout"
            )
        else:
            self.join_after_init()

    def on_login_error(self, evt: Mapping[str, Any]) -> None:
        logger.warning(
            "Login error: %s (%s)", self.username, evt.get("error_message")
        )

    def on_room_join(self, evt: Mapping[str, Any]) -> None:
        room = evt.get("room")
        logger.info(
            "Joined room: %s (%s)", self.username, getattr(room, "name", room)
        )
        if self.zone_only:
            self._leave_room(room)
            self.phase = BotPhase.ZONE_ONLY
            return

        self._extension(CMD_ROOM_JOIN_COMPLETE, self.api.new_object())
        self.phase = BotPhase.JOINED
        self.start_moving()
        self.request_shop_lists_if_needed()

    def on_room_join_error(self, evt: Mapping[str, Any]) -> None:
        logger.warning(
            "Join error: %s (%s)", self.username, evt.get("error_message")
        )
        self.phase = BotPhase.LOGGED_IN

    def on_connection_lost(self, evt: Mapping[str, Any]) -> None:
        cancelled = self.timers.cancel_all()
        self._init_timer = self._move_timer = self._clothes_timer = None
        self.phase = BotPhase.DISCONNECTED
        logger.warning(
            "Connection lost: %s (%s), %d timer(s) cancelled",
            self.username,
            evt.get("reason"),
            cancelled,
        )

    def on_extension_response(self, evt: Mapping[str, Any]) -> None:
        cmd = evt.get("cmd")
        params = evt.get("params")
        if not cmd or params is None:
            return

        if cmd == CMD_INIT:
            self.init_received = True
            if self._init_timer is not None:
                self._init_timer.cancel()
                self._init_timer = None
            self.join_after_init()
        elif cmd in SHOP_PRODUCT_LIST_RESPONSES:
            added = self.catalog.collect(params)
            logger.debug(
                "%s: %d cloth product(s) added, catalog size %d",
                self.username,
                added,
                len(self.catalog),
            )
            self.maybe_start_clothes_schedule()

    # --- Room Join ---

    def _on_init_timeout(self) -> None:
        self._init_timer = None
        logger.debug("%s: no init acknowledgement, joining anyway", self.username)
        self.join_after_init()

    def join_after_init(self) -> None:
        """Continue towards the room join; only the first call does anything."""
        if self.join_started:
            return
        self.join_started = True
        if self.zone_only:
            return
        if not self.config.join_room:
            # Logged in with nowhere to go; still counts as load
            return
        if self.phase is BotPhase.LOGGED_IN:
            self.phase = BotPhase.JOINING
        self.timers.once(self.config.join_delay_ms, self._send_join, "join")

    def _send_join(self) -> None:
        target = resolve_room_name(self.config.join_room, room_list(self.client))
        logger.debug("%s joining room %s", self.username, target)
        self._send(self.api.join_room_request(target))

    def _leave_room(self, room: Any) -> None:
        try:
            request = self.api.leave_room_request(room)
        except (TypeError, ValueError) as e:
            logger.debug("%s: room reference rejected (%s)", self.username, e)
            try:
                request = self.api.leave_room_request()
            except (TypeError, ValueError) as e:
                logger.debug("%s: leave room failed (%s)", self.username, e)
                return
        try:
            self._send(request)
        except Exception as e:
            # Zone-only bots stay in the zone whether or not the leave got out
            logger.debug("%s: leave room not sent (%s)", self.username, e)

    # --- Movement ---

    def start_moving(self) -> None:
        if self.zone_only or self._move_timer is not None:
            return
        self._move_timer = self.timers.every(
            self.config.move_interval_ms, self._walk, "walk"
        )
        self.phase = BotPhase.ACTIVE

    def _walk(self) -> None:
        x = self.rng.randrange(max(1, self.config.grid_width))
        y = self.rng.randrange(max(1, self.config.grid_height))
        payload = self.api.new_object()
        payload.put_int("x", x)
        payload.put_int("y", y)
        self._extension(CMD_WALK, payload)

    # --- Clothing ---

    def request_shop_lists_if_needed(self) -> None:
        cfg = self.config
        if self.zone_only or not cfg.enable_random_clothes:
            return
        if not cfg.cloth_shop_ids or self.shop_requests_sent:
            return
        self.shop_requests_sent = True
        self.timers.once(
            cfg.cloth_request_delay_ms, self._send_shop_requests, "shop-requests"
        )

    def _send_shop_requests(self) -> None:
        for shop_id in self.config.cloth_shop_ids:
            payload = self.api.new_object()
            payload.put_int("shopID", shop_id)
            self._extension(CMD_SHOP_PRODUCT_LIST, payload)

    def maybe_start_clothes_schedule(self) -> None:
        if not self.config.enable_random_clothes:
            return
        if self.clothes_schedule_started or len(self.catalog) == 0:
            return
        self.clothes_schedule_started = True
        self.timers.once(
            CLOTHES_APPLY_DELAY_MS, self.apply_random_clothes_once, "clothes-first"
        )
        interval = self.config.cloth_change_interval_ms
        if interval > 0:
            self._clothes_timer = self.timers.every(
                interval, self.apply_random_clothes_once, "clothes"
            )

    def apply_random_clothes_once(self) -> None:
        product = self.catalog.pick(self.rng)
        if product is None:
            return
        color = pick_color(product, self.rng)
        self._send_purchase(product, color)
        self.timers.once(
            CLOTHES_APPLY_DELAY_MS,
            functools.partial(self._send_change_clothes, product.clip, color),
            "changeclothes",
        )

    def _send_purchase(self, product: ClothProduct, color: int) -> None:
        item = self.api.new_object()
        item.put_int("shopProductID", product.product_id)
        item.put_int("quantity", 1)
        if color > 0:
            item.put_int("color", color)
        items = self.api.new_array()
        items.add_sfs_object(item)
        payload = self.api.new_object()
        payload.put_int("shopID", product.shop_id or 0)
        payload.put_sfs_array("items", items)
        self._extension(CMD_PURCHASE, payload)

    def _send_change_clothes(self, clip: str, color: int) -> None:
        payload = self.api.new_object()
        payload.put_utf_string("clip", clip)
        if color > 0:
            payload.put_int("color", color)
        self._extension(CMD_CHANGE_CLOTHES, payload)

    # --- Sending ---

    def _extension(self, cmd: str, payload: SfsObject) -> None:
        self._send(self.api.extension_request(cmd, payload))

    def _send(self, request: Any) -> None:
        self.client.send(request)
