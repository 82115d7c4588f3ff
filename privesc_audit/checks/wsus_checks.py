# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""WSUS update-channel checks.

Checks: WSUS_HTTP_MITM.

A client pointed at a WSUS server over plain HTTP accepts update metadata from
anyone on the network path, and updates install as SYSTEM.
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

CHECK_ID = "WSUS_HTTP_MITM"
TITLE = "Windows Update is fetched from a WSUS server over HTTP"

_WINDOWS_UPDATE_KEY = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\WindowsUpdate"

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

WU_SERVER = ValueSpec(
    path=_WINDOWS_UPDATE_KEY,
    name="WUServer",
    value_type=ValueType.STRING,
    default=None,
)

USE_WU_SERVER = ValueSpec(
    path=_WINDOWS_UPDATE_KEY + r"\AU",
    name="UseWUServer",
    value_type=ValueType.INTEGER,
    default=0,
)

PROXY_BEHAVIOR = ValueSpec(
    path=_WINDOWS_UPDATE_KEY,
    name="SetProxyBehaviorForUpdateDetection",
    value_type=ValueType.INTEGER,
    default=0,
)

DISABLE_WINDOWS_UPDATE_ACCESS = ValueSpec(
    path=_WINDOWS_UPDATE_KEY,
    name="DisableWindowsUpdateAccess",
    value_type=ValueType.INTEGER,
    default=0,
)

# Report order
VALUE_SPECS = (WU_SERVER, USE_WU_SERVER, PROXY_BEHAVIOR, DISABLE_WINDOWS_UPDATE_ACCESS)

_USE_WU_SERVER_DESCRIPTIONS = {
    0: "Automatic Updates do not use the configured WSUS server",
    1: "Automatic Updates use the configured WSUS server",
}

_PROXY_DESCRIPTIONS = {
    0: "Update detection only uses the system proxy",
    1: "Update detection falls back to the user proxy",
}


def _server_configured(url: str | None) -> bool:
    return bool(url and url.strip())


def _uses_https(url: str) -> bool:
    return url.strip().lower().startswith("https://")


def _describe_server(url: str | None) -> str:
    if not _server_configured(url):
        return "No WSUS server is configured"
    if _uses_https(url):
        return f"WSUS server {url} is contacted over HTTPS"
    return f"WSUS server {url} is contacted over HTTP"


def _describe_disabled(value: int) -> str:
    if value >= 1:
        return "Access to Windows Update features is disabled"
    return "Access to Windows Update features is enabled"


# ---------------------------------------------------------------------------
# Check functions
# ---------------------------------------------------------------------------


def check_wsus_http(accessor: HostAccessor, base_severity: Severity) -> Finding:
    """Flag a WSUS configuration that can be intercepted.

    All four values are read and reported whatever the outcome; each one can
    only clear the verdict, never set it.
    """
    server = resolve_value(accessor, WU_SERVER)
    use_server = resolve_value(accessor, USE_WU_SERVER)
    proxy = resolve_value(accessor, PROXY_BEHAVIOR)
    disabled = resolve_value(accessor, DISABLE_WINDOWS_UPDATE_ACCESS)

    vulnerable = True
    if not _server_configured(server.value):
        vulnerable = False
    elif _uses_https(server.value):
        vulnerable = False
    if use_server.value < 1:
        vulnerable = False
    # One read drives both the gate and the description.
    if disabled.value >= 1:
        vulnerable = False
    logger.debug("%s: server=%r use=%s disabled=%s", CHECK_ID, server.value, use_server.value, disabled.value)

    observations = [
        observe(server, _describe_server),
        observe(use_server, lambda v: describe(_USE_WU_SERVER_DESCRIPTIONS, v)),
        observe(proxy, lambda v: describe(_PROXY_DESCRIPTIONS, v)),
        observe(disabled, _describe_disabled),
    ]
    return make_finding(CHECK_ID, TITLE, base_severity, vulnerable, observations)
