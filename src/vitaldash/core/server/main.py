"""VitalDash server entry point: ``python -m vitaldash.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from vitaldash.core.config.settings import get_settings
from vitaldash.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the VitalDash MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.vitaldash_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.vitaldash_allow_insecure_bind and not _is_loopback_host(settings.vitaldash_host):
        raise RuntimeError(
            "Refusing to bind VitalDash to a non-loopback host. "
            "Set VITALDASH_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting VitalDash server on %s:%d",
        settings.vitaldash_host,
        settings.vitaldash_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.vitaldash_host,
        port=settings.vitaldash_port,
    )


if __name__ == "__main__":
    run()
