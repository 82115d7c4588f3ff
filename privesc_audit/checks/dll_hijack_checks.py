# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""DLL search-order hijacking checks.

Checks: DLL_SEARCH_PATH_HIJACK.

Services running as SYSTEM resolve missing DLLs through the machine PATH; a
PATH directory the principal can write to lets it plant a DLL they load.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from privesc_audit.core.defaults import ValueSpec, resolve_value
from privesc_audit.core.models import Finding, Observation, Severity, ValueType

from ._helpers import make_finding

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import HostAccessor

logger = logging.getLogger(__name__)

CHECK_ID = "DLL_SEARCH_PATH_HIJACK"
TITLE = "Writable directory in the system PATH"

SYSTEM_PATH = ValueSpec(
    path=r"HKLM\SYSTEM\CurrentControlSet\Control\Session Manager\Environment",
    name="Path",
    value_type=ValueType.STRING,
    default="",
)

VALUE_SPECS = (SYSTEM_PATH,)


def split_search_path(value: str) -> list[str]:
    """Split a PATH value on ``;``, dropping blank segments."""
    return [segment.strip() for segment in value.split(";") if segment.strip()]


def check_dll_search_path(
    accessor: HostAccessor,
    base_severity: Severity,
    *,
    principal: str | None = None,
) -> Finding:
    """Report every PATH directory that *principal* (default: the current user) can write to."""
    resolved = resolve_value(accessor, SYSTEM_PATH)
    observations: list[Observation] = []

    for directory in split_search_path(resolved.value):
        try:
            entries = accessor.check_writable(directory, principal)
        except OSError as e:
            logger.debug("%s: skipping %s, ACL not readable: %s", CHECK_ID, directory, e)
            continue
        for entry in entries:
            attributes = {
                "identity_reference": entry.identity,
                "permissions": list(entry.permissions),
            }
            if entry.parent:
                attributes["parent"] = entry.parent
                description = (
                    f"Directory {entry.path} on the system PATH is missing and can be created in {entry.parent}"
                )
            else:
                description = f"Directory {entry.path} on the system PATH is writable"
            observations.append(
                Observation(
                    identity=entry.path,
                    resolved_value=entry.path,
                    description=description,
                    attributes=attributes,
                )
            )

    return make_finding(CHECK_ID, TITLE, base_severity, bool(observations), observations)
