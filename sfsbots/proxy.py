"""Proxy endpoint resolution and rotation.

Bots are spread over the configured proxies in contiguous batches: with
``rotate_every=100`` the first hundred connections leave through the first
endpoint, the next hundred through the second one, and so on, wrapping
around the list.

Routing handles (python-socks ``Proxy`` objects) are created lazily and
cached per endpoint for the whole run, so a batch of bots sharing an
endpoint shares one handle.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

if TYPE_CHECKING:
    from .config import SwarmConfig

from .errors import ProxyUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_ROTATE_EVERY = 100

ENV_PROXY_VARS = ("HTTPS_PROXY", "HTTP_PROXY", "https_proxy", "http_proxy")

_SPLIT_RE = re.compile(r"[\r\n,]+")


def resolve_rotate_every(value: object) -> int:
    """Parse the batch size; anything unusable falls back to the default."""
    if value is None or isinstance(value, bool):
        return DEFAULT_ROTATE_EVERY
    try:
        n = int(str(value).strip())
    except ValueError:
        return DEFAULT_ROTATE_EVERY
    return n if n > 0 else DEFAULT_ROTATE_EVERY


def dedupe_endpoints(values: Iterable[object]) -> list[str]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out


def _read_proxy_file(path: str, base_dir: Path) -> list[str]:
    fp = Path(path)
    if not fp.is_absolute():
        fp = base_dir / fp
    if not fp.is_file():
        logger.debug("Proxy list file %s not found", fp)
        return []
    return fp.read_text(encoding="utf-8").splitlines()


def resolve_proxy_list(
    config: SwarmConfig, environ: Mapping[str, str] | None = None
) -> list[str]:
    """Build the endpoint list; the first source yielding anything wins.

    Order: ``proxyList`` (list, or a string split on newlines/commas),
    ``proxyListFile``, ``proxyUrl``/``proxy``, then the usual proxy
    environment variables.
    """
    if environ is None:
        environ = os.environ

    sources: list[Callable[[], Iterable[object]]] = []
    raw = config.proxy_list
    if isinstance(raw, list):
        sources.append(lambda: raw)
    elif raw is not None:
        sources.append(lambda: _SPLIT_RE.split(str(raw)))
    if config.proxy_list_file:
        sources.append(
            lambda: _read_proxy_file(config.proxy_list_file, config.base_dir)
        )
    sources.append(lambda: [config.proxy_url or config.proxy])
    sources.append(
        lambda: [next((environ[k] for k in ENV_PROXY_VARS if environ.get(k)), None)]
    )

    for source in sources:
        endpoints = dedupe_endpoints(source())
        if endpoints:
            return endpoints
    return []


def _socks_proxy_factory() -> Callable[[str], Any]:
    try:
        from python_socks.async_.asyncio import Proxy
    except ImportError as e:
        raise ProxyUnavailableError(
            "Proxy requested but 'python-socks' is not installed. "
            "Run: pip install 'sfs-bots[proxy]'"
        ) from e
    return Proxy.from_url


class ProxySelector:
    """Deterministic round-robin-with-rotation over proxy endpoints."""

    def __init__(
        self,
        endpoints: list[str],
        rotate_every: int = DEFAULT_ROTATE_EVERY,
        handle_factory: Callable[[str], Any] | None = None,
    ) -> None:
        if not endpoints:
            raise ValueError("ProxySelector needs at least one endpoint")
        self.endpoints = list(endpoints)
        self.rotate_every = rotate_every if rotate_every > 0 else DEFAULT_ROTATE_EVERY
        self._handle_factory = handle_factory or _socks_proxy_factory()
        self._handles: dict[str, Any] = {}
        self._conn_index = 0

    def endpoint_for_index(self, index: int) -> str:
        """Endpoint assigned to the zero-based bot sequence index."""
        i = (index // self.rotate_every) % len(self.endpoints)
        return self.endpoints[i]

    def next_endpoint(self) -> str:
        """Endpoint for the next freshly created connection."""
        endpoint = self.endpoint_for_index(self._conn_index)
        self._conn_index += 1
        return endpoint

    def handle_for(self, endpoint: str) -> Any:
        handle = self._handles.get(endpoint)
        if handle is None:
            handle = self._handle_factory(endpoint)
            self._handles[endpoint] = handle
        return handle

    def next_handle(self) -> Any:
        return self.handle_for(self.next_endpoint())

    @property
    def connections_routed(self) -> int:
        return self._conn_index


def build_proxy_selector(
    endpoints: list[str],
    rotate_every: int = DEFAULT_ROTATE_EVERY,
    handle_factory: Callable[[str], Any] | None = None,
) -> ProxySelector | None:
    """Return a selector, or ``None`` when connections should go direct."""
    if not endpoints:
        return None
    selector = ProxySelector(endpoints, rotate_every, handle_factory)
    logger.info(
        "Routing through %d proxy endpoint(s), rotating every %d connection(s)",
        len(selector.endpoints),
        selector.rotate_every,
    )
    return selector
