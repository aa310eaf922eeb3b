"""``labtrend-server``: serve the lab tracker over Streamable HTTP."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from labtrend.core.config.settings import get_settings
from labtrend.core.server.app import create_app

logger = logging.getLogger(__name__)


def is_local_only(host: str) -> bool:
    """True when ``host`` is reachable from this machine only."""
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind_host(host: str, allow_insecure: bool) -> None:
    """Reject exposing unauthenticated lab results beyond this machine.

    Raises:
        RuntimeError: If ``host`` is not loopback and the override is off.
    """
    if is_local_only(host) or allow_insecure:
        return
    raise RuntimeError(
        f"LabTrend serves stored lab results without authentication and will not "
        f"listen on {host!r}. Bind to 127.0.0.1, or set "
        f"LABTREND_ALLOW_INSECURE_BIND=true if access is restricted elsewhere."
    )


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.labtrend_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    check_bind_host(settings.labtrend_host, settings.labtrend_allow_insecure_bind)

    logger.info("LabTrend listening on http://%s:%d", settings.labtrend_host, settings.labtrend_port)
    create_app().run(
        transport="streamable-http",
        host=settings.labtrend_host,
        port=settings.labtrend_port,
    )


if __name__ == "__main__":
    run()
