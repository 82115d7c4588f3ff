# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Windows Installer elevation checks.

Checks: ALWAYS_INSTALL_ELEVATED.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from privesc_audit.core.defaults import ValueSpec, resolve_value
from privesc_audit.core.models import Finding, Severity, ValueType

from ._helpers import describe, make_finding, observe

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import HostAccessor

logger = logging.getLogger(__name__)

CHECK_ID = "ALWAYS_INSTALL_ELEVATED"
TITLE = "MSI packages install with elevated privileges"

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

MACHINE_SCOPE = ValueSpec(
    path=r"HKLM\SOFTWARE\Policies\Microsoft\Windows\Installer",
    name="AlwaysInstallElevated",
    value_type=ValueType.INTEGER,
    default=0,
)

USER_SCOPE = ValueSpec(
    path=r"HKCU\SOFTWARE\Policies\Microsoft\Windows\Installer",
    name="AlwaysInstallElevated",
    value_type=ValueType.INTEGER,
    default=0,
)

VALUE_SPECS = (MACHINE_SCOPE, USER_SCOPE)

_MACHINE_DESCRIPTIONS = {
    0: "AlwaysInstallElevated is disabled for the machine",
    1: "AlwaysInstallElevated is enabled for the machine",
}

_USER_DESCRIPTIONS = {
    0: "AlwaysInstallElevated is disabled for the current user",
    1: "AlwaysInstallElevated is enabled for the current user",
}


def _on_off(value: int) -> int:
    return 1 if value else 0


# ---------------------------------------------------------------------------
# Check functions
# ---------------------------------------------------------------------------


def check_always_install_elevated(accessor: HostAccessor, base_severity: Severity) -> Finding:
    """Any user can run an MSI as SYSTEM when the policy is set in both HKLM and HKCU.

    The user-scope value is only read once the machine-scope value is enabled.
    """
    machine = resolve_value(accessor, MACHINE_SCOPE)
    observations = [observe(machine, lambda v: describe(_MACHINE_DESCRIPTIONS, _on_off(v)))]

    if not machine.value:
        logger.debug("%s: machine scope disabled, skipping user scope", CHECK_ID)
        return make_finding(CHECK_ID, TITLE, base_severity, False, observations)

    user = resolve_value(accessor, USER_SCOPE)
    observations.append(observe(user, lambda v: describe(_USER_DESCRIPTIONS, _on_off(v))))
    return make_finding(CHECK_ID, TITLE, base_severity, bool(user.value), observations)
