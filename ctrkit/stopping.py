"""Stopping a running container task: SIGTERM, wait, then SIGKILL."""

from __future__ import annotations

import logging
import queue
import re
import signal
from typing import Any, Protocol

log = logging.getLogger(__name__)

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT = re.compile(r"([0-9]*(?:\.[0-9]*)?)([^0-9.]+)")


class _Task(Protocol):
    def status(self) -> str: ...

    def wait(self) -> "queue.Queue[Any]": ...

    def kill(self, sig: int) -> None: ...

    def resume(self) -> None: ...


def _parse_duration(text: str) -> float:
    rest = text
    sign = 1.0
    if rest[:1] in ("+", "-"):
        if rest[0] == "-":
            sign = -1.0
        rest = rest[1:]
    if rest == "0":
        return 0.0
    if rest == "":
        raise ValueError(f"time: invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None or match.group(1) in ("", "."):
            raise ValueError(f"time: invalid duration {text!r}")
        unit = match.group(2)
        if unit not in _UNITS:
            raise ValueError(f"time: unknown unit {unit!r} in duration {text!r}")
        total += float(match.group(1)) * _UNITS[unit]
        pos = match.end()
    return sign * total


def parse_stop_timeout(text: str) -> float:
    """Parse the --time flag (a number of seconds) into seconds."""
    return _parse_duration(text + "s")


def wait_container_stop(
    exit_queue: "queue.Queue[Any]", timeout: float | None, container_id: str
) -> Any:
    """Wait for the task's exit status; return it, or raise on error or timeout.

    An exception placed on the queue is raised as the exit error.
    """
    try:
        status = exit_queue.get(timeout=timeout)
    except queue.Empty:
        raise TimeoutError(
            f"wait container {container_id}: context deadline exceeded"
        ) from None
    if isinstance(status, BaseException):
        raise status
    return status


def _resume(task: _Task, container_id: str) -> bool:
    try:
        task.resume()
    except Exception as err:  # noqa: BLE001 - the daemon may report anything
        log.warning("Cannot unpause container %s: %s", container_id, err)
        return False
    return True


def stop_container(task: _Task, container_id: str, timeout: float) -> None:
    """Stop ``task``: SIGTERM and wait up to ``timeout`` seconds, then SIGKILL."""
    status = task.status().lower()
    if status in ("created", "stopped"):
        return
    paused = status in ("paused", "pausing")

    exit_queue = task.wait()

    if timeout > 0:
        task.kill(signal.SIGTERM)
        # the signal is delivered once the task resumes
        if paused and _resume(task, container_id):
            paused = False
        try:
            wait_container_stop(exit_queue, timeout, container_id)
        except Exception:  # noqa: BLE001 - fall back to SIGKILL
            pass
        else:
            return

    task.kill(signal.SIGKILL)
    if paused:
        _resume(task, container_id)
    wait_container_stop(exit_queue, None, container_id)