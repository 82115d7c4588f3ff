# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Point and Print driver installation checks.

Checks: POINT_AND_PRINT.

Point and Print lets a standard user install a printer driver from a print
server.  Unless driver installation is limited to administrators, a user
who can suppress the elevation prompt or pick an arbitrary server can load a
driver of their choosing into the SYSTEM spooler (PrintNightmare).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from privesc_audit.core.defaults import ResolvedValue, ValueSpec, resolve_value
from privesc_audit.core.models import Finding, Severity, ValueType

from ._helpers import describe, make_finding, not_applicable, observe

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import HostAccessor

logger = logging.getLogger(__name__)

CHECK_ID = "POINT_AND_PRINT"
TITLE = "Point and Print allows unprivileged driver installation"

SPOOLER_SERVICE = "Spooler"

_POINT_AND_PRINT_KEY = r"HKLM\SOFTWARE\Policies\Microsoft\Windows NT\Printers\PointAndPrint"
_PACKAGE_POINT_AND_PRINT_KEY = r"HKLM\SOFTWARE\Policies\Microsoft\Windows NT\Printers\PackagePointAndPrint"

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

RESTRICT_DRIVER_INSTALLATION = ValueSpec(
    path=_POINT_AND_PRINT_KEY,
    name="RestrictDriverInstallationToAdministrators",
    value_type=ValueType.INTEGER,
    default=1,
)

NO_WARNING_NO_ELEVATION = ValueSpec(
    path=_POINT_AND_PRINT_KEY,
    name="NoWarningNoElevationOnInstall",
    value_type=ValueType.INTEGER,
    default=0,
)

UPDATE_PROMPT_SETTINGS = ValueSpec(
    path=_POINT_AND_PRINT_KEY,
    name="UpdatePromptSettings",
    value_type=ValueType.INTEGER,
    default=0,
)

TRUSTED_SERVERS = ValueSpec(
    path=_POINT_AND_PRINT_KEY,
    name="TrustedServers",
    value_type=ValueType.INTEGER,
    default=0,
)

SERVER_LIST = ValueSpec(
    path=_POINT_AND_PRINT_KEY,
    name="ServerList",
    value_type=ValueType.LIST,
    default=[],
)

PACKAGE_SERVER_LIST = ValueSpec(
    path=_PACKAGE_POINT_AND_PRINT_KEY,
    name="PackagePointAndPrintServerList",
    value_type=ValueType.INTEGER,
    default=0,
)

# Report order
VALUE_SPECS = (
    RESTRICT_DRIVER_INSTALLATION,
    NO_WARNING_NO_ELEVATION,
    UPDATE_PROMPT_SETTINGS,
    TRUSTED_SERVERS,
    SERVER_LIST,
    PACKAGE_SERVER_LIST,
)

_RESTRICT_DESCRIPTIONS = {
    0: "Standard users can install printer drivers",
    1: "Only administrators can install printer drivers",
}

_NO_WARNING_DESCRIPTIONS = {
    0: "Installing a new printer shows a warning and an elevation prompt",
    1: "Installing a new printer shows no warning or elevation prompt",
}

_UPDATE_PROMPT_DESCRIPTIONS = {
    0: "Updating a driver shows a warning and an elevation prompt",
    1: "Updating a driver shows a warning only",
    2: "Updating a driver shows no warning or elevation prompt",
}

_TRUSTED_SERVERS_DESCRIPTIONS = {
    0: "Drivers may come from any print server",
    1: "Drivers may only come from the servers in ServerList",
}

_PACKAGE_SERVER_LIST_DESCRIPTIONS = {
    0: "Package Point and Print is not restricted to approved servers",
    1: "Package Point and Print is restricted to approved servers",
}


def _describe_server_list(servers: list[str]) -> str:
    if not servers:
        return "No trusted print servers are listed"
    return "Trusted print servers: " + ", ".join(servers)


def _is_vulnerable(
    restrict: ResolvedValue,
    no_warning: ResolvedValue,
    update_prompt: ResolvedValue,
    trusted_servers: ResolvedValue,
    package_list: ResolvedValue,
) -> bool:
    # Order matters: administrator-only installation overrides everything else.
    if restrict.value == 1:
        return False
    if no_warning.value == 1 or update_prompt.value >= 1:
        return True
    if trusted_servers.value == 0 or package_list.value == 0:
        return True
    return False


# ---------------------------------------------------------------------------
# Check functions
# ---------------------------------------------------------------------------


def check_point_and_print(accessor: HostAccessor, base_severity: Severity) -> Finding:
    """Evaluate the Point and Print policy when the spooler is running.

    Each observation carries a ``compliant`` flag judged on that value alone.
    The verdict comes from the decision tree, so a finding can be safe while
    some of its observations are not compliant.
    """
    services = accessor.list_services(SPOOLER_SERVICE)
    if not any(service.enabled for service in services):
        start_mode = services[0].start_mode if services else "Not installed"
        return not_applicable(
            CHECK_ID,
            TITLE,
            identity=f"{SPOOLER_SERVICE} service",
            value=start_mode,
            description="Print spooler is not enabled; Point and Print does not apply",
        )

    restrict = resolve_value(accessor, RESTRICT_DRIVER_INSTALLATION)
    no_warning = resolve_value(accessor, NO_WARNING_NO_ELEVATION)
    update_prompt = resolve_value(accessor, UPDATE_PROMPT_SETTINGS)
    trusted_servers = resolve_value(accessor, TRUSTED_SERVERS)
    server_list = resolve_value(accessor, SERVER_LIST)
    package_list = resolve_value(accessor, PACKAGE_SERVER_LIST)

    observations = [
        observe(restrict, lambda v: describe(_RESTRICT_DESCRIPTIONS, v), compliant=restrict.value == 1),
        observe(no_warning, lambda v: describe(_NO_WARNING_DESCRIPTIONS, v), compliant=no_warning.value == 0),
        observe(update_prompt, lambda v: describe(_UPDATE_PROMPT_DESCRIPTIONS, v), compliant=update_prompt.value == 0),
        observe(
            trusted_servers,
            lambda v: describe(_TRUSTED_SERVERS_DESCRIPTIONS, v),
            compliant=trusted_servers.value == 1,
        ),
        observe(server_list, _describe_server_list, compliant=bool(server_list.value)),
        observe(
            package_list,
            lambda v: describe(_PACKAGE_SERVER_LIST_DESCRIPTIONS, v),
            compliant=package_list.value == 1,
        ),
    ]

    vulnerable = _is_vulnerable(restrict, no_warning, update_prompt, trusted_servers, package_list)
    logger.debug("%s: restrict=%s vulnerable=%s", CHECK_ID, restrict.value, vulnerable)
    return make_finding(CHECK_ID, TITLE, base_severity, vulnerable, observations)
