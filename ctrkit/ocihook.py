"""Helpers for the OCI hook that sets up and tears down container networking."""

from __future__ import annotations

import dataclasses
import ipaddress
import json
import os
from collections.abc import Iterable

from ctrkit.portutil import PortMapping

_Address = ipaddress.IPv4Address | ipaddress.IPv6Address


def load_spec_root(bundle: str) -> str:
    """Return the root filesystem path from ``config.json`` in ``bundle``.

    A relative root path is resolved against the bundle directory.
    Raises OSError if the file cannot be read and ValueError if it is not
    valid JSON.
    """
    with open(os.path.join(bundle, "config.json"), encoding="utf-8") as f:
        spec = json.load(f)
    root = spec.get("root") if isinstance(spec, dict) else None
    path = root.get("path", "") if isinstance(root, dict) else ""
    if not isinstance(path, str):
        raise ValueError(f"invalid root path in spec: {path!r}")
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(bundle, path))


def net_ns_path(pid: int) -> str:
    """Return the network namespace path of process ``pid``.

    Raises ValueError if ``pid`` is unset (0) and OSError if the path is missing.
    """
    if pid == 0:
        raise ValueError("state.Pid is unset")
    path = f"/proc/{pid}/ns/net"
    os.stat(path)
    return path


def full_id(namespace: str, container_id: str) -> str:
    """Return the network identifier ``<namespace>-<id>`` of a container."""
    if not namespace:
        raise ValueError("namespace must be set")
    if not container_id:
        raise ValueError("state.ID must be set")
    return f"{namespace}-{container_id}"


def parse_networks(networks_json: str) -> list[str]:
    """Parse the networks annotation; exactly one network is supported."""
    try:
        networks = json.loads(networks_json)
    except json.JSONDecodeError as err:
        raise ValueError(f"invalid networks annotation: {err}") from err
    if networks is None:
        networks = []
    if not isinstance(networks, list) or not all(isinstance(n, str) for n in networks):
        raise ValueError(f"invalid networks annotation: {networks_json!r}")
    if len(networks) != 1:
        raise ValueError("currently, number of networks must be 1")
    return networks


def _parse_ip(text: str | None) -> _Address | None:
    if not text or "%" in text:
        return None
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


def _ip_string(address: _Address | None) -> str:
    return "<nil>" if address is None else str(address)


def rootless_port_mappings(
    ports: Iterable[PortMapping],
    child_ip: str | None,
    disallow_loopback_child_ip: bool,
) -> list[PortMapping]:
    """Rewrite host IPs that cannot be bound inside the rootless child namespace.

    The input mappings are left unchanged; new mappings are returned.
    """
    child = _parse_ip(child_ip)
    result = []
    for mapping in ports:
        host_ip = _parse_ip(mapping.host_ip)
        new_host_ip = mapping.host_ip
        if host_ip is not None and not host_ip.is_unspecified:
            if not host_ip.is_loopback:
                if child is None or child != host_ip:
                    new_host_ip = (
                        _ip_string(child) if disallow_loopback_child_ip else "127.0.0.1"
                    )
            elif disallow_loopback_child_ip:
                new_host_ip = _ip_string(child)
        result.append(dataclasses.replace(mapping, host_ip=new_host_ip))
    return result