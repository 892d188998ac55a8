"""Fatal startup errors.

Anything raised from here aborts the whole run before a single bot is
spawned. Per-bot protocol failures are never exceptions; they are logged by
the owning actor.
"""

from __future__ import annotations


class StartupError(RuntimeError):
    """Unrecoverable problem detected while bootstrapping the swarm."""


class SdkLoadError(StartupError):
    """The SmartFox SDK adapter module is missing or does not conform."""


class ProxyUnavailableError(StartupError):
    """Proxies are configured but the routing library is not installed."""
