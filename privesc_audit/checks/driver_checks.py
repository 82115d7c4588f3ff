# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Device driver installation checks.

Checks: DRIVER_CO_INSTALLERS.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from privesc_audit.core.defaults import ValueSpec, resolve_value
from privesc_audit.core.models import Finding, Severity, ValueType

from ._helpers import make_finding, observe

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import HostAccessor

CHECK_ID = "DRIVER_CO_INSTALLERS"
TITLE = "Driver co-installers run when a device is plugged in"

DISABLE_CO_INSTALLERS = ValueSpec(
    path=r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\Device Installer",
    name="DisableCoInstallers",
    value_type=ValueType.INTEGER,
    default=0,
)

VALUE_SPECS = (DISABLE_CO_INSTALLERS,)


def _describe(value: int) -> str:
    if value >= 1:
        return "Driver co-installers are disabled"
    return "Driver co-installers are enabled; vendor installers run as SYSTEM when a device is connected"


def check_driver_co_installers(accessor: HostAccessor, base_severity: Severity) -> Finding:
    resolved = resolve_value(accessor, DISABLE_CO_INSTALLERS)
    vulnerable = resolved.value < 1
    return make_finding(CHECK_ID, TITLE, base_severity, vulnerable, [observe(resolved, _describe)])
