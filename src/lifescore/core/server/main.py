"""Scorecard server entry point: ``python -m lifescore.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from lifescore.core.config.settings import Settings, get_settings
from lifescore.core.server.app import create_app

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def _check_bind(settings: Settings) -> None:
    """Refuse public interfaces unless explicitly allowed; the tools carry no auth."""
    if settings.scorecard_allow_insecure_bind or _is_loopback_host(settings.scorecard_host):
        return
    raise RuntimeError(
        f"Refusing to bind the scorecard server to {settings.scorecard_host!r} without an "
        "auth layer. Set SCORECARD_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    """Start the scorecard MCP server with Streamable HTTP transport."""
    settings = get_settings()
    _configure_logging(settings.scorecard_log_level)
    _check_bind(settings)

    logger = logging.getLogger(__name__)
    logger.info(
        "Starting Life Scorecard server on %s:%d (default rule set %r)",
        settings.scorecard_host,
        settings.scorecard_port,
        settings.default_ruleset,
    )

    create_app().run(
        transport="streamable-http",
        host=settings.scorecard_host,
        port=settings.scorecard_port,
    )


if __name__ == "__main__":
    run()
