"""Locate and load the SmartFox SDK adapter.

The adapter is a Python file placed next to the config (``sfs2x_api.py`` by
default, or whatever ``apiFile`` names). It must define::

    def create_api(connect) -> SfsApi: ...

where ``connect`` is the WebSocket connect primitive the SDK has to use for
every connection it opens (it may be proxy-routed).
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Any, Callable

from .errors import SdkLoadError
from .protocol import SfsApi

logger = logging.getLogger(__name__)

DEFAULT_API_FILES = ("sfs2x_api.py", "sfs2x-api.py", "smartfox_api.py")


def resolve_api_path(api_file: str | None, base_dir: Path) -> Path | None:
    """Configured adapter file if present, else the first default found."""
    candidates = [api_file] if api_file else []
    candidates.extend(DEFAULT_API_FILES)
    for name in candidates:
        p = Path(name)
        if not p.is_absolute():
            p = base_dir / p
        if p.is_file():
            return p
    return None


def load_sdk(
    api_file: str | None, base_dir: Path, connect: Callable[..., Any]
) -> SfsApi:
    api_path = resolve_api_path(api_file, base_dir)
    if api_path is None:
        raise SdkLoadError(
            f"Missing SmartFox SDK adapter. Put sfs2x_api.py in {base_dir} "
            "or set apiFile in the config."
        )

    spec = importlib.util.spec_from_file_location("sfs2x_adapter", api_path)
    if spec is None or spec.loader is None:
        raise SdkLoadError(f"Cannot import SDK adapter from {api_path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise SdkLoadError(f"Failed to import SDK adapter {api_path}: {e}") from e

    factory = getattr(module, "create_api", None)
    if not callable(factory):
        raise SdkLoadError(f"{api_path} does not define create_api(connect)")

    api = factory(connect)
    if not isinstance(api, SfsApi):
        raise SdkLoadError(
            f"create_api() in {api_path} returned {type(api).__name__}, "
            "which does not provide the SfsApi interface"
        )
    logger.info("Loaded SmartFox SDK adapter from %s", api_path)
    return api
