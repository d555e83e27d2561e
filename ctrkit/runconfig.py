"""Checks and derived values for the run command."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ctrkit.display import PORTS_LABEL
from ctrkit.portutil import PortMapping

NAMESPACE_LABEL = "nerdctl/namespace"
NAME_LABEL = "nerdctl/name"
HOSTNAME_LABEL = "nerdctl/hostname"
STATE_DIR_LABEL = "nerdctl/state-dir"
NETWORKS_LABEL = "nerdctl/networks"
LOG_URI_LABEL = "nerdctl/log-uri"
ANONYMOUS_VOLUMES_LABEL = "nerdctl/anonymous-volumes"

APPARMOR_PROFILE_NAME = "nerdctl-default"

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _compact_json(value: object) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return "".join(_JSON_ESCAPES.get(ch, ch) for ch in text)


@dataclass(frozen=True)
class RestartPolicy:
    """Keep the container in ``status``; restarted tasks log to ``log_uri``."""

    status: str = "running"
    log_uri: str | None = None


def parse_restart_policy(flag: str | None, log_uri: str | None = None) -> RestartPolicy | None:
    """Parse the --restart flag; ``"no"`` or empty gives None."""
    if flag in (None, "", "no"):
        return None
    if flag == "always":
        return RestartPolicy(status="running", log_uri=log_uri or None)
    raise ValueError(
        f'unsupported restart type {flag!r}, supported types are: "no",  "always"'
    )


def container_state_dir(data_store: str, namespace: str, container_id: str) -> str:
    """Return the directory holding the state of a container."""
    if not namespace:
        raise ValueError("namespace is required")
    if "/" in namespace:
        raise ValueError("namespace with '/' is unsupported")
    return os.path.join(data_store, "containers", namespace, container_id)


def process_args(entrypoint: str | None, tail: Sequence[str] | None) -> list[str]:
    """Build the process arguments when the entrypoint is overridden."""
    args: list[str] = []
    if entrypoint:
        args.append(entrypoint)
    args.extend(tail or [])
    if not args:
        raise ValueError(
            "no command or entrypoint provided, and no CMD or ENTRYPOINT from image"
        )
    return args


def internal_labels(
    namespace: str,
    name: str,
    hostname: str,
    state_dir: str,
    networks: Sequence[str] | None,
    ports: Iterable[PortMapping] | None = None,
    log_uri: str = "",
    anon_volumes: Sequence[str] | None = None,
) -> dict[str, str]:
    """Return the labels recording how a container was created."""
    labels = {NAMESPACE_LABEL: namespace}
    if name:
        labels[NAME_LABEL] = name
    labels[HOSTNAME_LABEL] = hostname
    labels[STATE_DIR_LABEL] = state_dir
    labels[NETWORKS_LABEL] = _compact_json(None if networks is None else list(networks))
    port_list = list(ports or [])
    if port_list:
        labels[PORTS_LABEL] = _compact_json([p.to_json() for p in port_list])
    if log_uri:
        labels[LOG_URI_LABEL] = log_uri
    if anon_volumes:
        labels[ANONYMOUS_VOLUMES_LABEL] = _compact_json(list(anon_volumes))
    return labels


def check_network_flags(networks: Sequence[str]) -> str:
    """Return the single requested network."""
    if len(networks) != 1:
        raise ValueError("currently, number of networks must be 1")
    return networks[0]


def check_terminal_flags(interactive: bool, tty: bool, detach: bool) -> None:
    """Reject combinations of -i, -t and -d that are not supported."""
    if interactive and detach:
        raise ValueError("currently flag -i and -d cannot be specified together")
    if tty:
        if detach:
            raise ValueError("currently flag -t and -d cannot be specified together")
        if not interactive:
            raise ValueError("currently flag -t needs -i to be specified together")


def default_hostname(container_id: str, custom: str | None = None) -> str:
    """Return ``custom`` if set, else the first 12 characters of the ID."""
    return custom or container_id[:12]


def completion_candidates(
    flag_name: str, known_caps: Iterable[str] = ()
) -> list[str] | None:
    """Return completion values for a run flag, or None if it has no fixed set."""
    if flag_name == "restart":
        return ["always", "no"]
    if flag_name == "pull":
        return ["always", "missing", "never"]
    if flag_name == "cgroupns":
        return ["host", "private"]
    if flag_name == "security-opt":
        return ["seccomp=", "apparmor=" + APPARMOR_PROFILE_NAME, "no-new-privileges"]
    if flag_name in ("cap-add", "cap-drop"):
        return [cap.removeprefix("CAP_").lower() for cap in known_caps]
    return None