"""Detection of rootless mode and the rootless daemon's state."""

from __future__ import annotations

import functools
import logging
import os
import re
import shutil
import sys
from collections.abc import Sequence

log = logging.getLogger(__name__)

_UID_MAP = "/proc/self/uid_map"
_INT_RE = re.compile(r"[+-]?[0-9]+")


def _atoi(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    return int(text)


def _scan_ints(line: str, count: int) -> list[int]:
    values = []
    for token in line.split()[:count]:
        if not _INT_RE.fullmatch(token):
            break
        values.append(int(token))
    return values + [0] * (count - len(values))


@functools.lru_cache(maxsize=None)
def running_in_user_ns() -> bool:
    """Return True if this process runs inside a non-initial user namespace."""
    try:
        with open(_UID_MAP, encoding="utf-8") as f:
            line = f.readline()
    except OSError:
        return False
    if not line:
        return False
    first, second, third = _scan_ints(line.rstrip("\n"), 3)
    return not (first == 0 and second == 0 and third == 4294967295)


def is_rootless_parent() -> bool:
    """Return True when running as a non-root user outside the rootless namespace."""
    return os.geteuid() != 0


def is_rootless_child() -> bool:
    """Return True when running inside the namespace of a rootless daemon."""
    return (
        not is_rootless_parent()
        and running_in_user_ns()
        and os.environ.get("ROOTLESSKIT_STATE_DIR", "") != ""
    )


def is_rootless() -> bool:
    return is_rootless_parent() or is_rootless_child()


def _parent_id(variable: str, fallback) -> int:
    if not is_rootless_child():
        return fallback()
    value = os.environ.get(variable, "")
    if value == "":
        raise RuntimeError(f"environment variable {variable} is not set")
    try:
        return _atoi(value)
    except ValueError as err:
        raise RuntimeError(f"failed to parse {variable}={value!r}") from err


def parent_euid() -> int:
    """Effective UID of the user that started the rootless daemon."""
    return _parent_id("ROOTLESSKIT_PARENT_EUID", os.geteuid)


def parent_egid() -> int:
    """Effective GID of the user that started the rootless daemon."""
    return _parent_id("ROOTLESSKIT_PARENT_EGID", os.getegid)


def rootlesskit_state_dir() -> str:
    """Return the state directory of the rootless daemon.

    Raises FileNotFoundError if the directory does not exist.
    """
    value = os.environ.get("ROOTLESSKIT_STATE_DIR", "")
    if value:
        return value
    state_dir = os.path.join(xdg_runtime_dir(), "containerd-rootless")
    os.stat(state_dir)
    return state_dir


def rootlesskit_child_pid(state_dir: str) -> int:
    """Read the PID of the rootless child process from ``state_dir``."""
    path = os.path.join(state_dir, "child_pid")
    with open(path, encoding="utf-8") as f:
        return _atoi(f.read().strip())


def parent_main(argv: Sequence[str] | None = None) -> None:
    """Re-execute ``argv`` inside the namespaces of the rootless daemon."""
    if not is_rootless_parent():
        raise RuntimeError("should not be called when not a rootless parent")
    try:
        state_dir = rootlesskit_state_dir()
    except (OSError, RuntimeError) as err:
        raise RuntimeError(
            "rootless containerd not running? (hint: use "
            "`containerd-rootless-setuptool.sh install` to start rootless containerd)"
        ) from err
    child_pid = rootlesskit_child_pid(state_dir)
    wd = os.getcwd()

    arg0 = shutil.which("nsenter")
    if arg0 is None:
        raise FileNotFoundError("executable file not found in $PATH: nsenter")
    args = [
        "-r/",
        "-w" + wd,
        "--preserve-credentials",
        "-m",
        "-n",
        "-U",
        "-t",
        str(child_pid),
        "-F",
    ]
    args.extend(sys.argv if argv is None else argv)
    log.debug("rootless parent main: executing %r with %r", arg0, args)

    os.environ["ROOTLESSKIT_STATE_DIR"] = state_dir
    os.environ["ROOTLESSKIT_PARENT_EUID"] = str(os.geteuid())
    os.environ["ROOTLESSKIT_PARENT_EGID"] = str(os.getegid())
    os.execve(arg0, args, dict(os.environ))


def xdg_runtime_dir() -> str:
    value = os.environ.get("XDG_RUNTIME_DIR", "")
    if value:
        return value
    euid = os.environ.get("ROOTLESSKIT_PARENT_EUID", "")
    if euid:
        return "/run/user/" + euid
    raise RuntimeError("environment variable XDG_RUNTIME_DIR is not set")


def _home() -> str:
    home = os.environ.get("HOME", "")
    if not home:
        raise RuntimeError("environment variable HOME is not set")
    return home


def xdg_config_home() -> str:
    value = os.environ.get("XDG_CONFIG_HOME", "")
    if value:
        return value
    return os.path.join(_home(), ".config")


def xdg_data_home() -> str:
    value = os.environ.get("XDG_DATA_HOME", "")
    if value:
        return value
    return os.path.join(_home(), ".local/share")