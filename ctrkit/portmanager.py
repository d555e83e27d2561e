"""Forwarding of published ports through the rootless port driver."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from ctrkit.portutil import PortMapping


@dataclass(frozen=True)
class PortSpec:
    """A port forwarded from the parent namespace into the child namespace."""

    proto: str
    parent_ip: str
    parent_port: int
    child_port: int


class _PortDriverClient(Protocol):
    def add_port(self, spec: PortSpec) -> object: ...

    def list_ports(self) -> Iterable[tuple[int, PortSpec]]: ...

    def remove_port(self, port_id: int) -> object: ...


_Address = ipaddress.IPv4Address | ipaddress.IPv6Address


def _parse_ip(text: str) -> _Address | None:
    if "%" in text:
        return None
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


class RootlessCNIPortManager:
    """Exposes container port mappings through a rootless port driver client.

    The client must provide ``add_port(spec)``, ``list_ports()`` yielding
    ``(id, PortSpec)`` pairs, and ``remove_port(id)``.
    """

    def __init__(self, client: _PortDriverClient) -> None:
        if client is None:
            raise ValueError("invalid argument: port driver client is required")
        self.client = client

    def expose_port(self, mapping: PortMapping) -> None:
        """Forward the host port of ``mapping`` into the child namespace.

        The child port is the host port, not the container port: the child
        namespace is the "host" as seen by the network plugins.
        """
        spec = PortSpec(
            proto=mapping.protocol,
            parent_ip=mapping.host_ip,
            parent_port=mapping.host_port,
            child_port=mapping.host_port,
        )
        self.client.add_port(spec)

    def unexpose_port(self, mapping: PortMapping) -> None:
        """Remove the forwarding created for ``mapping``; do nothing if absent."""
        wanted_ip = _parse_ip(mapping.host_ip)
        for port_id, spec in self.client.list_ports():
            if (
                spec.proto != mapping.protocol
                or spec.parent_port != mapping.host_port
                or spec.child_port != mapping.host_port
            ):
                continue
            parent_ip = _parse_ip(spec.parent_ip)
            if parent_ip is None or wanted_ip is None or parent_ip != wanted_ip:
                continue
            self.client.remove_port(port_id)
            return