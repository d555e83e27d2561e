"""Cgroup resource settings for a new container."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ctrkit import rootlessutil

log = logging.getLogger(__name__)

_RAM_RE = re.compile(r"([0-9]+(\.[0-9]+)*) ?([kKmMgGtTpP])?[iI]?[bB]?")
_BINARY_UNITS = {
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
    "p": 1024**5,
}

CPU_PERIOD = 100000


@dataclass(frozen=True)
class CgroupSettings:
    """Cgroup path, resource limits and cgroup namespace mode.

    A field left at None is not set on the spec.
    """

    cgroups_path: str | None = None
    cpu_quota: int | None = None
    cpu_period: int | None = None
    cpu_shares: int | None = None
    cpuset_cpus: str | None = None
    memory_limit: int | None = None
    pids_limit: int | None = None
    cgroupns: str | None = None


def parse_ram_in_bytes(text: str) -> int:
    """Parse a size such as ``"42m"`` or ``"1 GiB"`` using binary units."""
    match = _RAM_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid size: {text!r}")
    try:
        size = float(match.group(1))
    except ValueError:
        raise ValueError(f"invalid size: {text!r}") from None
    unit = match.group(3)
    multiplier = _BINARY_UNITS[unit.lower()] if unit else 1
    return int(size * multiplier)


def cgroup_settings(
    container_id: str,
    cgroup_manager: str = "",
    cpus: float = 0.0,
    memory: str = "",
    pids_limit: int = -1,
    cpu_shares: int = 0,
    cpuset_cpus: str = "",
    cgroupns: str = "private",
    rootless: bool | None = None,
    rootless_child: bool | None = None,
) -> CgroupSettings:
    """Work out the cgroup settings from the run flags."""
    if cgroup_manager == "none":
        if rootless is None:
            rootless = rootlessutil.is_rootless()
        if not rootless:
            raise ValueError('cgroup-manager "none" is only supported for rootless')
        if cpus > 0.0 or memory != "" or pids_limit > 0:
            log.warning(
                'cgroup manager is set to "none", discarding resource limit requests. '
                "(Hint: enable cgroup v2 with systemd)"
            )
        return CgroupSettings(cgroups_path="")

    cgroups_path = None
    if cgroup_manager == "systemd":
        if rootless_child is None:
            rootless_child = rootlessutil.is_rootless_child()
        slice_name = "user.slice" if rootless_child else "system.slice"
        cgroups_path = f"{slice_name}:nerdctl:{container_id}"

    cpu_quota = cpu_period = None
    if cpus > 0.0:
        cpu_period = CPU_PERIOD
        cpu_quota = int(cpus * 100000.0)

    shares = cpu_shares % 2**64 if cpu_shares != 0 else None

    memory_limit = None
    if memory:
        try:
            memory_limit = parse_ram_in_bytes(memory)
        except ValueError as err:
            raise ValueError(f"failed to parse memory bytes {memory!r}: {err}") from err

    if cgroupns not in ("private", "host"):
        raise ValueError(f"unknown cgroupns mode {cgroupns!r}")

    return CgroupSettings(
        cgroups_path=cgroups_path,
        cpu_quota=cpu_quota,
        cpu_period=cpu_period,
        cpu_shares=shares,
        cpuset_cpus=cpuset_cpus or None,
        memory_limit=memory_limit,
        pids_limit=pids_limit if pids_limit > 0 else None,
        cgroupns=cgroupns,
    )