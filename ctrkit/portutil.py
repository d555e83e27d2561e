"""Parsing of ``-p`` / ``--publish`` port flags."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Any

_PORT_RE = re.compile(r"[0-9]+")
_PROTOCOLS = ("tcp", "udp", "sctp")


@dataclass
class PortMapping:
    """A host port published to a container port."""

    host_port: int = 0
    container_port: int = 0
    protocol: str = ""
    host_ip: str = ""

    def to_json(self) -> dict[str, Any]:
        """Return the mapping as a JSON-ready dict."""
        return {
            "HostPort": self.host_port,
            "ContainerPort": self.container_port,
            "Protocol": self.protocol,
            "HostIP": self.host_ip,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "PortMapping":
        """Build a mapping from a dict as produced by :meth:`to_json`."""
        return cls(
            host_port=int(data.get("HostPort", 0)),
            container_port=int(data.get("ContainerPort", 0)),
            protocol=str(data.get("Protocol", "")),
            host_ip=str(data.get("HostIP", "")),
        )


def _parse_port(text: str) -> int:
    if not _PORT_RE.fullmatch(text):
        raise ValueError(f"invalid port {text!r}")
    value = int(text)
    if value > 0xFFFF:
        raise ValueError(f"port {text!r} out of range")
    return value


def parse_port_range(text: str) -> tuple[int, int]:
    """Parse ``"80"`` or ``"8000-8010"`` into an inclusive (start, end) pair."""
    if text == "":
        raise ValueError("empty string specified for ports")
    if "-" not in text:
        port = _parse_port(text)
        return port, port
    parts = text.split("-")
    start = _parse_port(parts[0])
    end = _parse_port(parts[1])
    if end < start:
        raise ValueError(f"invalid range specified for port: {text}")
    return start, end


def _split_parts(raw: str) -> tuple[str, str, str]:
    """Split into (ip, host port, container port)."""
    parts = raw.split(":")
    container_port = parts[-1]
    if len(parts) == 1:
        return "", "", container_port
    if len(parts) == 2:
        return "", parts[0], container_port
    if len(parts) == 3:
        return parts[0], parts[1], container_port
    return ":".join(parts[:-2]), parts[-2], container_port


def _valid_ip(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def parse_flag_p(text: str) -> list[PortMapping]:
    """Parse a publish flag like ``127.0.0.1:8080-8081:80-81/tcp``."""
    proto = "tcp"
    split_by_slash = text.split("/")
    if len(split_by_slash) == 2:
        proto = split_by_slash[1].lower()
        if proto not in _PROTOCOLS:
            raise ValueError(f"invalid protocol {split_by_slash[1]!r}")
    elif len(split_by_slash) != 1:
        raise ValueError(f"failed to parse {text!r}, unexpected slashes")

    ip, host_port, container_port = _split_parts(split_by_slash[0])
    if container_port == "":
        raise ValueError(f"no port specified: {split_by_slash[0]}")
    if host_port == "":
        raise ValueError("automatic host port assignment is not supported yet")

    try:
        start_host, end_host = parse_port_range(host_port)
    except ValueError:
        raise ValueError(f"invalid hostPort: {host_port}") from None
    try:
        start, end = parse_port_range(container_port)
    except ValueError:
        raise ValueError(f"invalid containerPort: {container_port}") from None

    if (end - start) != (end_host - start_host) and end != start:
        raise ValueError(
            "invalid ranges specified for container and host Ports: "
            f"{container_port} and {host_port}"
        )

    if ip and not _valid_ip(ip):
        raise ValueError(f"invalid ip address: {ip}")
    host_ip = ip or "0.0.0.0"

    return [
        PortMapping(
            host_port=start_host + offset,
            container_port=start + offset,
            protocol=proto,
            host_ip=host_ip,
        )
        for offset in range(end - start + 1)
    ]