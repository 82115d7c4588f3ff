# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Software-distribution cache folder checks.

Checks: SCCM_CACHE_FOLDER, SCCM_CACHE_FOLDER_ACCESS.

The Configuration Manager client caches deployment content, which often
includes install scripts with embedded credentials.  The informational check
reports which cache folders exist; the access check also tries to list them
as the current user.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from privesc_audit.core.models import Finding, Observation, Severity

from ._helpers import make_finding

if TYPE_CHECKING:
    from privesc_audit.core.accessors.base import FolderInfo, HostAccessor

logger = logging.getLogger(__name__)

INFO_CHECK_ID = "SCCM_CACHE_FOLDER"
INFO_TITLE = "Configuration Manager cache folder present"

ACCESS_CHECK_ID = "SCCM_CACHE_FOLDER_ACCESS"
ACCESS_TITLE = "Configuration Manager cache folder readable by the current user"

DEFAULT_CACHE_PATHS = (r"C:\Windows\ccmcache",)


def _existing_folders(accessor: HostAccessor, paths: Iterable[str], check_id: str) -> list[FolderInfo]:
    folders: list[FolderInfo] = []
    for path in paths:
        try:
            info = accessor.folder_info(path)
        except OSError as e:
            logger.debug("%s: skipping %s: %s", check_id, path, e)
            continue
        if info is not None:
            folders.append(info)
    return folders


# ---------------------------------------------------------------------------
# Check functions
# ---------------------------------------------------------------------------


def check_cache_folder(
    accessor: HostAccessor,
    base_severity: Severity,
    *,
    paths: Iterable[str] = DEFAULT_CACHE_PATHS,
) -> Finding:
    """Report cache folders that exist, with their attributes. Contents are not touched."""
    observations = [
        Observation(
            identity=info.path,
            resolved_value=info.path,
            description=f"Cache folder {info.path} exists",
            attributes={"attributes": list(info.attributes)},
        )
        for info in _existing_folders(accessor, paths, INFO_CHECK_ID)
    ]
    return make_finding(INFO_CHECK_ID, INFO_TITLE, base_severity, bool(observations), observations)


def check_cache_folder_access(
    accessor: HostAccessor,
    base_severity: Severity,
    *,
    paths: Iterable[str] = DEFAULT_CACHE_PATHS,
    include_entries: bool = False,
) -> Finding:
    """Report cache folders whose contents the current user can list.

    A folder that cannot be listed is left out of the result, not reported
    as an error.
    """
    observations: list[Observation] = []
    for info in _existing_folders(accessor, paths, ACCESS_CHECK_ID):
        try:
            entries = accessor.list_folder(info.path)
        except OSError as e:
            logger.debug("%s: %s is not accessible: %s", ACCESS_CHECK_ID, info.path, e)
            continue

        attributes: dict = {"attributes": list(info.attributes)}
        if include_entries:
            attributes["entries"] = list(entries)
        observations.append(
            Observation(
                identity=info.path,
                resolved_value=len(entries),
                description=f"Cache folder is readable and holds {len(entries)} entries",
                attributes=attributes,
            )
        )
    return make_finding(ACCESS_CHECK_ID, ACCESS_TITLE, base_severity, bool(observations), observations)
