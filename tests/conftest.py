# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0


"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from dotenv import load_dotenv

from privesc_audit.core.accessors.snapshot import SnapshotAccessor
from privesc_audit.core.audit_policy import AuditPolicy

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

project_root = Path(__file__).parent.parent
env_file = project_root / ".env"

if env_file.exists():
    load_dotenv(env_file)


# ---------------------------------------------------------------------------
# Registry paths used across check tests
# ---------------------------------------------------------------------------

INSTALLER_HKLM = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\Installer"
INSTALLER_HKCU = r"HKCU\SOFTWARE\Policies\Microsoft\Windows\Installer"
WINDOWS_UPDATE = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\WindowsUpdate"
WINDOWS_UPDATE_AU = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\WindowsUpdate\AU"
HARDENED_PATHS = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\NetworkProvider\HardenedPaths"
SESSION_ENVIRONMENT = r"HKLM\SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
POINT_AND_PRINT = r"HKLM\SOFTWARE\Policies\Microsoft\Windows NT\Printers\PointAndPrint"
PACKAGE_POINT_AND_PRINT = r"HKLM\SOFTWARE\Policies\Microsoft\Windows NT\Printers\PackagePointAndPrint"
DEVICE_INSTALLER = r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\Device Installer"
CCM_CACHE = r"C:\Windows\ccmcache"


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_accessor():
    """Factory fixture for in-memory :class:`SnapshotAccessor` objects.

    Usage::

        accessor = make_accessor(
            registry={INSTALLER_HKLM: {"AlwaysInstallElevated": 1}},
            services={"Spooler": "Automatic"},
            domain_joined=True,
        )

    Keyword arguments map directly onto the snapshot sections.
    """

    def _make(**sections) -> SnapshotAccessor:
        return SnapshotAccessor(dict(sections))

    return _make


@pytest.fixture
def make_policy(tmp_path: Path):
    """Factory fixture for :class:`AuditPolicy` objects built from a YAML string.

    The YAML is written to disk and loaded through ``AuditPolicy.from_yaml``
    so it is merged over the built-in defaults like a real policy file.
    """
    _counter = [0]

    def _make(policy_yaml: str = "") -> AuditPolicy:
        _counter[0] += 1
        path = tmp_path / f"policy-{_counter[0]}.yaml"
        path.write_text(policy_yaml, encoding="utf-8")
        return AuditPolicy.from_yaml(path)

    return _make


@pytest.fixture
def write_snapshot_file(tmp_path: Path):
    """Write a snapshot mapping to a YAML file and return its path."""

    def _write(data: dict, name: str = "snapshot.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def vulnerable_host() -> dict:
    """Snapshot of a domain-joined Windows 10 host where every check fires."""
    return {
        "host": "WS-VULN",
        "domain_joined": True,
        "os_version_major": 10,
        "registry": {
            INSTALLER_HKLM: {"AlwaysInstallElevated": 1},
            INSTALLER_HKCU: {"AlwaysInstallElevated": 1},
            WINDOWS_UPDATE: {"WUServer": "http://wsus.corp.local:8530"},
            WINDOWS_UPDATE_AU: {"UseWUServer": 1},
            HARDENED_PATHS: {r"\\*\SYSVOL": "RequireMutualAuthentication=0,RequireIntegrity=1"},
            SESSION_ENVIRONMENT: {"Path": r"C:\Windows\system32;C:\Tools"},
            POINT_AND_PRINT: {"RestrictDriverInstallationToAdministrators": 0, "NoWarningNoElevationOnInstall": 1},
        },
        "services": {"Spooler": "Automatic"},
        "acls": {r"C:\Tools": [{"identity": r"BUILTIN\Users", "permissions": ["WriteData/AddFile"]}]},
        "folders": {CCM_CACHE: {"attributes": ["Directory"], "accessible": True, "entries": ["abc", "def"]}},
    }


@pytest.fixture
def hardened_host() -> dict:
    """Snapshot of a domain-joined Windows 10 host where no check fires."""
    return {
        "host": "WS-SAFE",
        "domain_joined": True,
        "os_version_major": 10,
        "registry": {
            INSTALLER_HKLM: {"AlwaysInstallElevated": 0},
            WINDOWS_UPDATE: {"WUServer": "https://wsus.corp.local:8531"},
            WINDOWS_UPDATE_AU: {"UseWUServer": 1},
            SESSION_ENVIRONMENT: {"Path": r"C:\Windows\system32;C:\Windows"},
            DEVICE_INSTALLER: {"DisableCoInstallers": 1},
        },
        "services": {"Spooler": "Disabled"},
    }
