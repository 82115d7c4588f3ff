# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Hardened UNC path checks.

Checks: HARDENED_UNC_PATHS.

Group Policy is pulled from SYSVOL and NETLOGON.  Without mutual
authentication and integrity (or privacy) on those shares, a machine on the
network path can serve forged policy that the client applies as SYSTEM.

Windows 10 and later harden both shares by default, so only entries that
explicitly switch a protection off matter.  Older releases are unprotected
unless both shares are configured.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from privesc_audit.core.defaults import ValueSpec, coerce_value, resolve_value
from privesc_audit.core.models import Finding, Observation, Severity, ValueType

from ._helpers import make_finding, not_applicable, observe

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import HostAccessor

logger = logging.getLogger(__name__)

CHECK_ID = "HARDENED_UNC_PATHS"
TITLE = "SYSVOL and NETLOGON shares are not hardened"

HARDENED_PATHS_KEY = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\NetworkProvider\HardenedPaths"

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

SYSVOL = ValueSpec(path=HARDENED_PATHS_KEY, name=r"\\*\SYSVOL", value_type=ValueType.STRING, default=None)
NETLOGON = ValueSpec(path=HARDENED_PATHS_KEY, name=r"\\*\NETLOGON", value_type=ValueType.STRING, default=None)

VALUE_SPECS = (SYSVOL, NETLOGON)

# Windows 10 is the first release that hardens these shares without policy
HARDENED_BY_DEFAULT_MAJOR = 10

_PROTECTIONS = {
    "requiremutualauthentication": "mutual authentication",
    "requireintegrity": "integrity",
    "requireprivacy": "privacy",
}

_FIELD_SEPARATORS = re.compile(r"[,;]")
_WHITESPACE = re.compile(r"\s+")


def parse_fields(value: Any) -> set[str]:
    """Turn ``"RequireMutualAuthentication=1, RequireIntegrity=1"`` into a set of
    normalised ``name=value`` tokens. Field order is irrelevant."""
    if value is None:
        return set()
    tokens = (_WHITESPACE.sub("", part).lower() for part in _FIELD_SEPARATORS.split(str(value)))
    return {token for token in tokens if token}


def weakened_protections(fields: set[str]) -> list[str]:
    """Protections that *fields* explicitly set to 0, in a fixed order."""
    return [label for name, label in _PROTECTIONS.items() if f"{name}=0" in fields]


def is_hardened(fields: set[str]) -> bool:
    return "requiremutualauthentication=1" in fields and (
        "requireintegrity=1" in fields or "requireprivacy=1" in fields
    )


def _describe_weakened(value: Any) -> str:
    weakened = weakened_protections(parse_fields(value))
    return "Hardened path explicitly disables " + " and ".join(weakened)


def _describe_legacy(value: Any) -> str:
    if value is None:
        return "Hardened path is not configured"
    if is_hardened(parse_fields(value)):
        return "Hardened path requires mutual authentication and integrity or privacy"
    return "Hardened path does not require mutual authentication and integrity or privacy"


# ---------------------------------------------------------------------------
# Check functions
# ---------------------------------------------------------------------------


def _check_modern(accessor: HostAccessor) -> list[Observation]:
    observations: list[Observation] = []
    for name, raw in accessor.enumerate_values(HARDENED_PATHS_KEY):
        identity = f"{HARDENED_PATHS_KEY}\\{name}"
        value = coerce_value(raw, ValueType.STRING, identity)
        if not weakened_protections(parse_fields(value)):
            continue
        observations.append(
            Observation(identity=identity, resolved_value=value, description=_describe_weakened(value), compliant=False)
        )
    return observations


def _check_legacy(accessor: HostAccessor) -> list[Observation]:
    observations: list[Observation] = []
    for spec in VALUE_SPECS:
        resolved = resolve_value(accessor, spec)
        compliant = resolved.value is not None and is_hardened(parse_fields(resolved.value))
        observations.append(observe(resolved, _describe_legacy, compliant=compliant))
    return observations


def check_hardened_unc_paths(accessor: HostAccessor, base_severity: Severity) -> Finding:
    """Check SYSVOL/NETLOGON hardening on domain-joined hosts."""
    if not accessor.is_domain_joined():
        return not_applicable(
            CHECK_ID,
            TITLE,
            identity="Domain membership",
            value=False,
            description="Host is not joined to a domain; hardened UNC paths do not apply",
        )

    major = accessor.os_version_major()
    if major >= HARDENED_BY_DEFAULT_MAJOR:
        logger.debug("%s: OS major %d hardens by default, looking for weakened entries", CHECK_ID, major)
        observations = _check_modern(accessor)
    else:
        logger.debug("%s: OS major %d requires explicit hardening", CHECK_ID, major)
        observations = _check_legacy(accessor)

    vulnerable = any(o.compliant is False for o in observations)
    return make_finding(CHECK_ID, TITLE, base_severity, vulnerable, observations)
