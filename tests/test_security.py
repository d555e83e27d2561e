import pytest

from ctrkit.runconfig import APPARMOR_PROFILE_NAME
from ctrkit.security import CapabilityChanges, capability_changes, security_settings


def test_defaults_with_apparmor():
    s = security_settings({}, apparmor_supported=True)
    assert s.seccomp_default is True
    assert s.seccomp_profile is None
    assert s.apparmor_profile == APPARMOR_PROFILE_NAME
    assert s.no_new_privileges is False


def test_defaults_without_apparmor():
    s = security_settings({}, apparmor_supported=False)
    assert s.apparmor_profile is None
    assert s.seccomp_default is True


def test_seccomp_unconfined():
    s = security_settings({"seccomp": "unconfined"}, apparmor_supported=False)
    assert s.seccomp_default is False
    assert s.seccomp_profile is None


def test_seccomp_custom_profile():
    s = security_settings({"seccomp": "/tmp/profile.json"}, apparmor_supported=False)
    assert s.seccomp_default is False
    assert s.seccomp_profile == "/tmp/profile.json"


@pytest.mark.parametrize("key", ["seccomp", "apparmor"])
def test_empty_value_rejected(key):
    with pytest.raises(ValueError, match=key):
        security_settings({key: ""}, apparmor_supported=True)


def test_apparmor_profile_applied_when_supported():
    s = security_settings({"apparmor": "myprofile"}, apparmor_supported=True)
    assert s.apparmor_profile == "myprofile"


def test_apparmor_profile_ignored_when_unsupported():
    s = security_settings({"apparmor": "myprofile"}, apparmor_supported=False)
    assert s.apparmor_profile is None


def test_apparmor_unconfined():
    s = security_settings({"apparmor": "unconfined"}, apparmor_supported=True)
    assert s.apparmor_profile is None


@pytest.mark.parametrize(
    "value, expected",
    [("", True), ("true", True), ("1", True), ("false", False), ("0", False)],
)
def test_no_new_privileges(value, expected):
    s = security_settings({"no-new-privileges": value}, apparmor_supported=False)
    assert s.no_new_privileges is expected


def test_no_new_privileges_invalid():
    with pytest.raises(ValueError, match="no-new-privileges"):
        security_settings({"no-new-privileges": "maybe"}, apparmor_supported=False)


def test_no_capability_flags():
    assert capability_changes([], []) is None


def test_cap_add_all():
    c = capability_changes(["all"], [])
    assert c == CapabilityChanges(drop_all=False, add_all=True, add=[], drop=[])


def test_cap_add_one():
    c = capability_changes(["ipc_lock"], [])
    assert c.add == ["CAP_IPC_LOCK"]
    assert c.drop == []
    assert not c.add_all and not c.drop_all


def test_cap_add_all_drop_one():
    c = capability_changes(["all"], ["net_raw"])
    assert c.add_all is True
    assert c.drop == ["CAP_NET_RAW"]


def test_cap_drop_all_add_one():
    c = capability_changes(["net_raw"], ["all"])
    assert c.drop_all is True
    assert c.add == ["CAP_NET_RAW"]
    assert c.drop == []