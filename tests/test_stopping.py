import queue
import signal

import pytest

from ctrkit.stopping import parse_stop_timeout, stop_container, wait_container_stop


class FakeTask:
    def __init__(self, status, exit_on=(signal.SIGTERM, signal.SIGKILL), resume_fails=False):
        self._status = status
        self.exit_on = set(exit_on)
        self.resume_fails = resume_fails
        self.calls = []
        self.q = queue.Queue()

    def status(self):
        return self._status

    def wait(self):
        self.calls.append("wait")
        return self.q

    def kill(self, sig):
        self.calls.append(("kill", sig))
        if sig in self.exit_on:
            self.q.put(0)

    def resume(self):
        self.calls.append("resume")
        if self.resume_fails:
            raise RuntimeError("cannot resume")


def test_parse_default_timeout():
    assert parse_stop_timeout("10") == 10.0


def test_parse_fractional_timeout():
    assert parse_stop_timeout("1.5") == pytest.approx(1.5)


def test_parse_zero_and_negative():
    assert parse_stop_timeout("0") == 0.0
    assert parse_stop_timeout("-1") == -1.0


@pytest.mark.parametrize("text", ["", "abc", "1x", "."])
def test_parse_invalid(text):
    with pytest.raises(ValueError):
        parse_stop_timeout(text)


def test_wait_returns_status():
    q = queue.Queue()
    q.put(123)
    assert wait_container_stop(q, 1, "c1") == 123


def test_wait_times_out():
    with pytest.raises(TimeoutError, match="c1"):
        wait_container_stop(queue.Queue(), 0.01, "c1")


def test_wait_raises_exit_error():
    q = queue.Queue()
    q.put(RuntimeError("boom"))
    with pytest.raises(RuntimeError, match="boom"):
        wait_container_stop(q, 1, "c1")


@pytest.mark.parametrize("status", ["created", "stopped"])
def test_not_running_is_noop(status):
    task = FakeTask(status)
    stop_container(task, "c1", 10)
    assert task.calls == []


def test_running_stops_with_sigterm():
    task = FakeTask("running")
    stop_container(task, "c1", 10)
    assert task.calls == ["wait", ("kill", signal.SIGTERM)]


def test_sigterm_ignored_falls_back_to_sigkill():
    task = FakeTask("running", exit_on=(signal.SIGKILL,))
    stop_container(task, "c1", 0.01)
    assert task.calls == ["wait", ("kill", signal.SIGTERM), ("kill", signal.SIGKILL)]


def test_zero_timeout_sends_sigkill_only():
    task = FakeTask("running")
    stop_container(task, "c1", 0)
    assert task.calls == ["wait", ("kill", signal.SIGKILL)]


def test_paused_is_resumed_once():
    task = FakeTask("paused", exit_on=(signal.SIGKILL,))
    stop_container(task, "c1", 0.01)
    assert task.calls.count("resume") == 1
    assert task.calls[-1] == ("kill", signal.SIGKILL)


def test_paused_resume_failure_retried_after_sigkill():
    task = FakeTask("paused", exit_on=(signal.SIGKILL,), resume_fails=True)
    stop_container(task, "c1", 0.01)
    assert task.calls.count("resume") == 2
    assert task.calls[-1] == "resume"


def test_kill_error_propagates():
    class Failing(FakeTask):
        def kill(self, sig):
            raise PermissionError("denied")

    with pytest.raises(PermissionError):
        stop_container(Failing("running"), "c1", 10)