"""Modifiers applied to an OCI runtime spec, held as a JSON-style dict."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

RUNTIME_RUNC_V2 = "io.containerd.runc.v2"

Spec = dict[str, Any]


@dataclass(frozen=True)
class RuntimeOptions:
    """The runtime a container is created with, and its runc options.

    ``runc_options`` is False when the runtime is not runc, in which case no
    runc options are passed and the other fields stay at their defaults.
    """

    runtime: str = RUNTIME_RUNC_V2
    runc_options: bool = True
    binary_name: str = ""
    systemd_cgroup: bool = False


def with_custom_mount(spec: Spec, destination: str, source: str) -> Spec:
    """Add a writable bind mount of ``source`` at ``destination``."""
    spec.setdefault("mounts", []).append(
        {
            "destination": destination,
            "type": "bind",
            "source": source,
            "options": ["bind"],
        }
    )
    return spec


def with_custom_resolv_conf(spec: Spec, source: str) -> Spec:
    """Bind-mount ``source`` as the container's /etc/resolv.conf."""
    return with_custom_mount(spec, "/etc/resolv.conf", source)


def with_custom_hosts(spec: Spec, source: str) -> Spec:
    """Bind-mount ``source`` as the container's /etc/hosts."""
    return with_custom_mount(spec, "/etc/hosts", source)


def with_oci_hooks(
    spec: Spec,
    self_exe: str,
    global_flags: Sequence[str],
    env: Mapping[str, str] | None = None,
) -> Spec:
    """Register this program as the createRuntime and poststop hook."""
    if env is None:
        env = os.environ
    env_list = [f"{key}={value}" for key, value in env.items()]
    base_args = [self_exe, *global_flags, "internal", "oci-hook"]
    hooks = spec.get("hooks")
    if hooks is None:
        hooks = spec["hooks"] = {}
    hooks.setdefault("createRuntime", []).append(
        {"path": self_exe, "args": [*base_args, "createRuntime"], "env": list(env_list)}
    )
    hooks.setdefault("poststop", []).append(
        {"path": self_exe, "args": [*base_args, "postStop"], "env": list(env_list)}
    )
    return spec


def with_annotations_from_labels(spec: Spec, labels: Mapping[str, str]) -> Spec:
    """Copy container labels into the spec annotations."""
    annotations = spec.get("annotations")
    if annotations is None:
        annotations = spec["annotations"] = {}
    annotations.update(labels)
    return spec


def with_sysctls(spec: Spec, sysctls: Mapping[str, str]) -> Spec:
    """Set the given sysctls on the spec."""
    linux = spec.get("linux")
    if linux is None:
        linux = spec["linux"] = {}
    sysctl = linux.get("sysctl")
    if sysctl is None:
        sysctl = linux["sysctl"] = {}
    sysctl.update(sysctls)
    return spec


def _rootfs(spec: Spec) -> str | None:
    path = (spec.get("root") or {}).get("path")
    if path and os.path.isabs(path):
        return path
    return None


def _read_db(rootfs: str | None, name: str) -> list[list[str]] | None:
    if rootfs is None:
        return None
    try:
        with open(os.path.join(rootfs, "etc", name), encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError:
        return None
    return [
        line.split(":")
        for line in lines
        if line.strip() and not line.lstrip().startswith("#")
    ]


def _passwd(rootfs: str | None) -> list[tuple[str, int, int]] | None:
    rows = _read_db(rootfs, "passwd")
    if rows is None:
        return None
    entries = []
    for row in rows:
        if len(row) < 4 or not row[2].isdigit() or not row[3].isdigit():
            continue
        entries.append((row[0], int(row[2]), int(row[3])))
    return entries


def _groups(rootfs: str | None) -> list[tuple[str, int, list[str]]] | None:
    rows = _read_db(rootfs, "group")
    if rows is None:
        return None
    entries = []
    for row in rows:
        if len(row) < 3 or not row[2].isdigit():
            continue
        members = [m for m in row[3].split(",") if m] if len(row) > 3 else []
        entries.append((row[0], int(row[2]), members))
    return entries


def _resolve_user(rootfs: str | None, text: str) -> tuple[int, int, str | None]:
    """Return (uid, primary gid, user name) for a user name or numeric uid."""
    entries = _passwd(rootfs)
    if text.isdigit():
        uid = int(text)
        for name, entry_uid, gid in entries or []:
            if entry_uid == uid:
                return uid, gid, name
        return uid, 0, None
    if entries is None:
        raise LookupError(f"cannot resolve user {text!r}: no passwd file in the root filesystem")
    for name, uid, gid in entries:
        if name == text:
            return uid, gid, name
    raise LookupError(f"no users found for {text!r}")


def _resolve_group(rootfs: str | None, text: str) -> int:
    if text.isdigit():
        return int(text)
    entries = _groups(rootfs)
    if entries is None:
        raise LookupError(f"cannot resolve group {text!r}: no group file in the root filesystem")
    for name, gid, _ in entries:
        if name == text:
            return gid
    raise LookupError(f"no groups found for {text!r}")


def with_user(spec: Spec, user: str) -> Spec:
    """Run the process as ``user`` (``<name|uid>[:<group|gid>]``).

    Names are resolved against /etc/passwd and /etc/group under the spec's
    root path. Supplementary groups are replaced by the groups that list the
    user as a member.
    """
    if user == "":
        return spec
    parts = user.split(":")
    if len(parts) > 2 or any(part == "" for part in parts):
        raise ValueError(f"invalid user {user!r}")
    rootfs = _rootfs(spec)
    uid, gid, name = _resolve_user(rootfs, parts[0])
    if len(parts) == 2:
        gid = _resolve_group(rootfs, parts[1])

    additional: list[int] = []
    if name is not None:
        for _, group_gid, members in _groups(rootfs) or []:
            if name in members and group_gid not in additional:
                additional.append(group_gid)

    process = spec.get("process")
    if process is None:
        process = spec["process"] = {}
    user_spec = process.get("user")
    if user_spec is None:
        user_spec = process["user"] = {}
    user_spec["uid"] = uid
    user_spec["gid"] = gid
    user_spec["additionalGids"] = additional
    return spec


def runtime_options(runtime: str | None, cgroup_manager: str | None) -> RuntimeOptions:
    """Choose the runtime and runc options from the --runtime flag.

    A value starting with ``io.containerd.`` names a runtime; anything else
    is taken as the name of a runc binary.
    """
    systemd = cgroup_manager == "systemd"
    if not runtime:
        return RuntimeOptions(systemd_cgroup=systemd)
    if runtime.startswith("io.containerd."):
        if runtime.startswith("io.containerd.runc."):
            return RuntimeOptions(runtime=runtime, systemd_cgroup=systemd)
        if systemd:
            log.warning(
                "cannot set cgroup manager to %r for runtime %r", cgroup_manager, runtime
            )
        return RuntimeOptions(runtime=runtime, runc_options=False)
    return RuntimeOptions(binary_name=runtime, systemd_cgroup=systemd)