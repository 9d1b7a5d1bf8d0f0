"""Background version check utility."""

from __future__ import annotations

import httpx
from packaging.version import InvalidVersion, Version

from branchdiff.runtime_logging import get_runtime_logger
from branchdiff.version import __version__

PYPI_URL = "https://pypi.org/pypi/{package}/json"


async def check_for_update(
    package_name: str = "branchdiff",
    *,
    current: str = __version__,
    timeout_s: float = 2.5,
) -> str | None:
    """Return the newer released version, or ``None`` when up to date or offline."""
    logger = get_runtime_logger().bind(component="updates")
    try:
        async with httpx.AsyncClient(timeout=timeout_s) as client:
            response = await client.get(PYPI_URL.format(package=package_name))
            response.raise_for_status()
            latest = response.json().get("info", {}).get("version")
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("updates.check.failed", error=str(exc))
        return None

    if not latest:
        return None

    try:
        if Version(latest) > Version(current):
            return str(latest)
    except InvalidVersion:
        logger.debug("updates.check.invalid_version", latest=latest)
    return None
