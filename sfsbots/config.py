"""Configuration model and YAML loader.

The swarm is described by a single document (``bots.yaml``; a ``bots.json``
file works too since JSON is valid YAML). Keys are camelCase, e.g. ``botCount`` or
``useSSL``; the snake_case field names are accepted as well.

Relative paths inside the document (``proxyListFile``, ``apiFile``) are
resolved against the directory holding the config file.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .proxy import DEFAULT_ROTATE_EVERY, resolve_rotate_every


class SwarmConfig(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    # Server
    host: str
    port: int = Field(ge=1, le=65535)
    zone: str
    use_ssl: bool = Field(default=False, alias="useSSL")

    # Bot population
    bot_count: int = Field(default=1, ge=0)
    name_prefix: str = "bot"
    password: str = ""
    randomize_names: bool = False
    name_suffix: str = ""
    stagger_ms: int = Field(default=0, ge=0)

    # Lifecycle
    join_room: str | None = None
    zone_only: bool = False
    send_init: bool = True
    init_timeout_ms: int = Field(default=800, ge=0)
    join_delay_ms: int = Field(default=250, ge=0)

    # Movement
    move_interval_ms: int = Field(default=1000, gt=0)
    grid_width: int = 10
    grid_height: int = 10

    # Clothing automation
    enable_random_clothes: bool = False
    cloth_shop_ids: list[int] = Field(default_factory=list)
    cloth_request_delay_ms: int = Field(default=0, ge=0)
    cloth_change_interval_ms: int = Field(default=0, ge=0)

    # SDK adapter
    api_file: str | None = None

    # Proxies
    proxy_list: list[str] | str | None = None
    proxy_list_file: str | None = None
    proxy_url: str | None = None
    proxy: str | None = None
    proxy_rotate_every: int = DEFAULT_ROTATE_EVERY

    # Status reporting (0 disables)
    report_interval_ms: int = Field(default=30000, ge=0)

    # Directory of the config file; anchors relative paths
    base_dir: Path = Field(default_factory=Path.cwd)

    @field_validator("host", "zone")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("join_room", mode="before")
    @classmethod
    def _blank_join_room_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("proxy_rotate_every", mode="before")
    @classmethod
    def _coerce_rotate_every(cls, v: object) -> int:
        return resolve_rotate_every(v)


def load_config(path: str | Path) -> SwarmConfig:
    """Load and validate the swarm configuration from a YAML/JSON file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    raw["base_dir"] = config_path.resolve().parent
    return SwarmConfig(**raw)
