"""Anonymous volumes for the VOLUME entries of an image."""

from __future__ import annotations

import logging
import posixpath
import secrets
from collections.abc import Callable, Iterable
from typing import Any

log = logging.getLogger(__name__)

_FORBIDDEN = ("/", "/dev", "/sys", "proc")


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def check_image_volume(path: str) -> str:
    """Return the cleaned VOLUME path, or raise ValueError if it may not be a volume."""
    cleaned = _clean(path)
    if cleaned in _FORBIDDEN:
        raise ValueError(f"invalid VOLUME: {path!r}")
    return cleaned


def image_volume_mounts(
    image_volumes: Iterable[str],
    mounted: Iterable[str],
    create_volume: Callable[[str], str],
) -> tuple[list[dict[str, Any]], list[str]]:
    """Create an anonymous volume for each image VOLUME not already mounted.

    ``create_volume(name)`` creates the named volume and returns its
    mountpoint. Returns the mounts to add and the names of the new volumes.
    """
    taken = {_clean(m) for m in mounted}
    mounts: list[dict[str, Any]] = []
    names: list[str] = []
    for raw in image_volumes:
        destination = check_image_volume(raw)
        if destination in taken:
            continue
        name = secrets.token_hex(32)
        log.debug('creating anonymous volume %r, for "VOLUME %s"', name, raw)
        mountpoint = create_volume(name)
        mounts.append(
            {
                "type": "none",
                "source": mountpoint,
                "destination": destination,
                "options": ["rbind"],
            }
        )
        names.append(name)
    return mounts, names