"""Text shown by the ps, port and version commands."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone

from ctrkit.portutil import PortMapping

log = logging.getLogger(__name__)

VERSION = "<unknown>"
REVISION = "<unknown>"

PORTS_LABEL = "nerdctl/ports"

_SIMPLE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


def _quote(text: str) -> str:
    """Double-quote ``text``, escaping control and non-printable characters."""
    out = ['"']
    for ch in text:
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) < 0x10000:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    out.append('"')
    return "".join(out)


def _title(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def ellipsis(text: str, max_width: int) -> str:
    """Shorten ``text`` to ``max_width`` characters, ending with an ellipsis."""
    if max_width <= 0:
        return ""
    if len(text) <= max_width:
        return text
    if max_width == 1:
        return text[0]
    return text[: max_width - 1] + "…"


def human_duration(seconds: float) -> str:
    """Describe a duration in seconds in rough human terms."""
    whole_seconds = int(seconds)
    if whole_seconds < 1:
        return "Less than a second"
    if whole_seconds == 1:
        return "1 second"
    if whole_seconds < 60:
        return f"{whole_seconds} seconds"
    minutes = int(seconds / 60)
    if minutes == 1:
        return "About a minute"
    if minutes < 60:
        return f"{minutes} minutes"
    hours = math.floor(seconds / 3600 + 0.5)
    if hours == 1:
        return "About an hour"
    if hours < 48:
        return f"{hours} hours"
    if hours < 24 * 7 * 2:
        return f"{hours // 24} days"
    if hours < 24 * 30 * 2:
        return f"{hours // 24 // 7} weeks"
    if hours < 24 * 365 * 2:
        return f"{hours // 24 // 30} months"
    return f"{int(seconds / 3600) // 24 // 365} years"


def time_since_in_human(since: datetime, now: datetime | None = None) -> str:
    """Describe how long ago ``since`` was, e.g. ``"5 seconds ago"``."""
    if now is None:
        now = datetime.now(timezone.utc) if since.tzinfo is not None else datetime.now()
    return human_duration((now - since).total_seconds()) + " ago"


def inspect_container_command(
    command_line: str | None, args: Sequence[str] | None, trunc: bool
) -> str:
    """Return the quoted command of a container, or "" if it has no process."""
    if command_line is None and args is None:
        return ""
    command = (command_line or "") + " ".join(args or [])
    if trunc:
        command = ellipsis(command, 20)
    return _quote(command)


def _load_ports(ports_json: str) -> list[PortMapping]:
    data = json.loads(ports_json)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected a list of port mappings, got {type(data).__name__}")
    try:
        return [PortMapping.from_json(item) for item in data]
    except (AttributeError, TypeError) as err:
        raise ValueError(f"invalid port mapping: {err}") from err


def format_ports(ports_json: str | None) -> str:
    """Format the ports label of a container for the ps listing."""
    if not ports_json:
        return ""
    try:
        ports = _load_ports(ports_json)
    except ValueError as err:
        log.error("failed to parse label %r=%r: %s", PORTS_LABEL, ports_json, err)
        return ""
    return ", ".join(
        f"{p.host_ip}:{p.host_port}->{p.container_port}/{p.protocol}" for p in ports
    )


def status_text(
    status: str,
    exit_status: int = 0,
    exit_time: datetime | None = None,
    now: datetime | None = None,
) -> str:
    """Return the STATUS column for a task status such as ``"running"``."""
    normalized = status.lower()
    if normalized == "stopped":
        if exit_time is None:
            exit_time = now if now is not None else datetime.now(timezone.utc)
        return f"Exited ({exit_status}) {time_since_in_human(exit_time, now)}"
    if normalized == "running":
        return "Up"
    return _title(status)


def parse_port_argument(text: str | None) -> tuple[int, str]:
    """Parse ``PRIVATE_PORT[/PROTO]``; an empty argument gives ``(-1, "")``."""
    if not text:
        return -1, ""
    parts = text.split("/")
    try:
        port = int(parts[0]) if parts[0].lstrip("+-").isdigit() else int("x")
    except ValueError:
        raise ValueError(f"invalid syntax: {parts[0]!r}") from None
    if port <= 0:
        raise ValueError(f"unexpected port {port}")
    if len(parts) == 1:
        return port, "tcp"
    if len(parts) == 2:
        return port, parts[1].lower()
    raise ValueError(f"failed to parse {_quote(text)}")


def port_lines(
    ports_json: str | None, port: int, proto: str, container_id: str
) -> list[str]:
    """Return the lines printed by the port command.

    With a negative ``port`` every mapping is listed; otherwise the one
    matching mapping is shown, and LookupError is raised if there is none.
    """
    if not ports_json:
        return []
    ports = _load_ports(ports_json)
    if port < 0:
        return [
            f"{p.container_port}/{p.protocol} -> {p.host_ip}:{p.host_port}" for p in ports
        ]
    for p in ports:
        if p.container_port == port and p.protocol.lower() == proto:
            return [f"{p.host_ip}:{p.host_port}"]
    raise LookupError(
        f"no public port {port}/{proto} published for {_quote(container_id)}"
    )


def version_text(server_version: str | None = None, server_revision: str | None = None) -> str:
    """Return the version report; the server part only when a server version is given."""
    lines = [
        "Client:",
        f" Version:\t{VERSION}",
        f" Git commit:\t{REVISION}",
    ]
    if server_version is not None:
        lines += [
            "",
            "Server:",
            " containerd:",
            f"  Version:\t{server_version}",
            f"  Revision:\t{server_revision or ''}",
        ]
    return "\n".join(lines) + "\n"