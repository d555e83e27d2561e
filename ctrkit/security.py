"""Security options for a new container: seccomp, AppArmor, privileges, capabilities."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ctrkit.runconfig import APPARMOR_PROFILE_NAME
from ctrkit.strutil import in_string_slice

log = logging.getLogger(__name__)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@dataclass(frozen=True)
class SecuritySettings:
    """How seccomp, AppArmor and no-new-privileges are set on the spec.

    ``seccomp_default`` applies the default seccomp profile; ``seccomp_profile``
    names a custom profile instead. With neither, seccomp is unconfined.
    ``apparmor_profile`` is None when no AppArmor profile is applied.
    """

    seccomp_default: bool = True
    seccomp_profile: str | None = None
    apparmor_profile: str | None = None
    no_new_privileges: bool = False


@dataclass(frozen=True)
class CapabilityChanges:
    """Capability changes, applied in order: drop all, add, drop.

    ``add_all`` keeps every capability currently available instead of
    adding the ones in ``add``. ``drop`` is ignored when ``drop_all`` is set.
    """

    drop_all: bool = False
    add_all: bool = False
    add: list[str] = field(default_factory=list)
    drop: list[str] = field(default_factory=list)


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f'invalid "no-new-privileges" value: {text!r}')


def security_settings(
    options: Mapping[str, str], apparmor_supported: bool
) -> SecuritySettings:
    """Work out the security settings from the --security-opt key/value map."""
    seccomp_default = True
    seccomp_profile: str | None = None
    if "seccomp" in options:
        profile = options["seccomp"]
        if profile == "":
            raise ValueError('invalid security-opt "seccomp"')
        seccomp_default = False
        if profile != "unconfined":
            seccomp_profile = profile

    apparmor_profile: str | None = None
    if "apparmor" in options:
        profile = options["apparmor"]
        if profile == "":
            raise ValueError('invalid security-opt "apparmor"')
        if profile != "unconfined":
            if apparmor_supported:
                apparmor_profile = profile
            else:
                log.warning(
                    "The host does not support AppArmor. Ignoring profile %r", profile
                )
    elif apparmor_supported:
        apparmor_profile = APPARMOR_PROFILE_NAME

    no_new_privileges = False
    if "no-new-privileges" in options:
        value = options["no-new-privileges"]
        no_new_privileges = True if value == "" else _parse_bool(value)

    return SecuritySettings(
        seccomp_default=seccomp_default,
        seccomp_profile=seccomp_profile,
        apparmor_profile=apparmor_profile,
        no_new_privileges=no_new_privileges,
    )


def capability_changes(
    cap_add: Sequence[str], cap_drop: Sequence[str]
) -> CapabilityChanges | None:
    """Translate --cap-add/--cap-drop values; None when neither is given."""
    if not cap_add and not cap_drop:
        return None
    drop_all = in_string_slice(cap_drop, "ALL")
    add_all = in_string_slice(cap_add, "ALL")
    add = [] if add_all else ["CAP_" + c.upper() for c in cap_add]
    drop = [] if drop_all else ["CAP_" + c.upper() for c in cap_drop]
    return CapabilityChanges(drop_all=drop_all, add_all=add_all, add=add, drop=drop)