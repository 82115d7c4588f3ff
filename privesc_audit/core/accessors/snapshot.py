# Copyright 2026 Cisco Systems, Inc.
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
Offline configuration snapshots.

A snapshot is a YAML document holding every fact the checks consume, so a
host can be audited away from the machine and the same input always yields
the same report.

.. code-block:: yaml

    host: WS01
    domain_joined: true
    os_version_major: 10
    registry:
      'HKLM\\SOFTWARE\\Policies\\Microsoft\\Windows\\Installer':
        AlwaysInstallElevated: 1
    services:
      Spooler: Automatic
    acls:
      'C:\\Tools':
        - identity: 'BUILTIN\\Users'
          permissions: [WriteData, AppendData]
      'C:\\Tools\\Missing':
        - identity: 'BUILTIN\\Users'
          permissions: [AppendData/AddSubdirectory]
          parent: 'C:\\Tools'
    acl_errors:
      - 'C:\\Locked'
    folders:
      'C:\\Windows\\ccmcache':
        attributes: [Directory]
        accessible: true
        entries: [abc123]

Registry keys and value names match case-insensitively, as they do on Windows.
:class:`RecordingAccessor` wraps a live accessor and captures what the checks
read into the same format.
"""

from __future__ import annotations

import fnmatch
import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import SnapshotError
from ..models import ConfigValue, ValueType
from .base import FolderInfo, HostAccessor, ServiceInfo, WritableEntry

logger = logging.getLogger(__name__)

_SECTIONS = ("registry", "services", "acls", "acl_errors", "folders")


def _norm_key(path: str) -> str:
    return path.strip().rstrip("\\").lower()


def _norm_path(path: str) -> str:
    return path.strip().rstrip("\\/").lower()


def _infer_type(raw: Any) -> ValueType | None:
    if isinstance(raw, (bool, int)):
        return ValueType.INTEGER
    if isinstance(raw, str):
        return ValueType.STRING
    if isinstance(raw, (list, tuple)):
        return ValueType.LIST
    return None


def _principal_matches(identity: str, principal: str) -> bool:
    identity = identity.lower()
    principal = principal.lower()
    return identity == principal or identity.rsplit("\\", 1)[-1] == principal.rsplit("\\", 1)[-1]


class SnapshotAccessor(HostAccessor):
    """Serve host configuration from an in-memory snapshot.

    Every :meth:`read_value` call is appended to :attr:`read_log`, which lets
    tests assert that a check did or did not query a value.
    """

    def __init__(self, data: dict[str, Any] | None = None):
        data = data or {}
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot must be a mapping")
        for section in _SECTIONS:
            if section in data and data[section] is not None:
                expected = list if section == "acl_errors" else dict
                if not isinstance(data[section], expected):
                    raise SnapshotError(f"Snapshot section '{section}' must be a {expected.__name__}")

        self._host = str(data.get("host") or "snapshot")
        self._domain_joined = bool(data.get("domain_joined", False))
        try:
            self._os_major = int(data.get("os_version_major", 10))
        except (TypeError, ValueError):
            raise SnapshotError(f"Invalid os_version_major: {data.get('os_version_major')!r}") from None

        # key -> value name (lowercase) -> (original name, value)
        self._registry: dict[str, dict[str, tuple[str, Any]]] = {}
        for key, values in (data.get("registry") or {}).items():
            if values is None:
                values = {}
            if not isinstance(values, dict):
                raise SnapshotError(f"Registry key '{key}' must map value names to values")
            bucket = self._registry.setdefault(_norm_key(str(key)), {})
            for name, value in values.items():
                bucket[str(name).lower()] = (str(name), value)

        self._services = [
            ServiceInfo(name=str(name), start_mode=str(mode))
            for name, mode in (data.get("services") or {}).items()
        ]

        self._acls: dict[str, list[WritableEntry]] = {}
        for path, entries in (data.get("acls") or {}).items():
            self._acls[_norm_path(str(path))] = [
                WritableEntry(
                    path=str(path),
                    identity=str(entry.get("identity", "")),
                    permissions=tuple(str(p) for p in entry.get("permissions", [])),
                    parent=str(entry["parent"]) if entry.get("parent") else None,
                )
                for entry in (entries or [])
            ]
        self._acl_errors = {_norm_path(str(p)) for p in (data.get("acl_errors") or [])}

        self._folders: dict[str, dict[str, Any]] = {}
        for path, info in (data.get("folders") or {}).items():
            info = dict(info or {})
            info["path"] = str(path)
            self._folders[_norm_path(str(path))] = info

        self._lock = threading.Lock()
        self.read_log: list[tuple[str, str]] = []

    @classmethod
    def from_yaml(cls, path: str | Path) -> SnapshotAccessor:
        """Load a snapshot from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")
        try:
            with open(path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise SnapshotError(f"Invalid snapshot YAML in {path}: {exc}") from exc
        return cls(data)

    # -- Registry ---------------------------------------------------------

    def read_value(self, path: str, name: str) -> ConfigValue:
        with self._lock:
            self.read_log.append((path, name))
        entry = self._registry.get(_norm_key(path), {}).get(name.lower())
        if entry is None:
            return ConfigValue.absent()
        raw = entry[1]
        return ConfigValue(present=True, raw=raw, value_type=_infer_type(raw))

    def read_count(self, path: str, name: str) -> int:
        """How many times ``path\\name`` has been read."""
        key, value_name = _norm_key(path), name.lower()
        with self._lock:
            return sum(1 for p, n in self.read_log if _norm_key(p) == key and n.lower() == value_name)

    def enumerate_values(self, path: str) -> list[tuple[str, Any]]:
        return list(self._registry.get(_norm_key(path), {}).values())

    # -- Host facts -------------------------------------------------------

    def is_domain_joined(self) -> bool:
        return self._domain_joined

    def os_version_major(self) -> int:
        return self._os_major

    def host_name(self) -> str:
        return self._host

    def list_services(self, name_filter: str | None = None) -> list[ServiceInfo]:
        if not name_filter:
            return list(self._services)
        pattern = name_filter.lower()
        return [s for s in self._services if fnmatch.fnmatchcase(s.name.lower(), pattern)]

    # -- Filesystem -------------------------------------------------------

    def check_writable(self, path: str, principal: str | None = None) -> list[WritableEntry]:
        key = _norm_path(path)
        if key in self._acl_errors:
            raise PermissionError(f"Cannot read ACL of {path}")
        entries = self._acls.get(key, [])
        if principal:
            entries = [e for e in entries if _principal_matches(e.identity, principal)]
        return list(entries)

    def folder_info(self, path: str) -> FolderInfo | None:
        info = self._folders.get(_norm_path(path))
        if info is None:
            return None
        return FolderInfo(path=info["path"], attributes=tuple(str(a) for a in info.get("attributes", [])))

    def list_folder(self, path: str) -> list[str]:
        info = self._folders.get(_norm_path(path))
        if info is None:
            raise FileNotFoundError(f"Folder not found: {path}")
        if not info.get("accessible", True):
            raise PermissionError(f"Access denied: {path}")
        return [str(e) for e in info.get("entries", [])]


class RecordingAccessor(HostAccessor):
    """Proxy another accessor and record every answer as snapshot data.

    Running the checks once through a recorder captures exactly the facts they
    consume; :meth:`to_snapshot` returns a mapping that
    :class:`SnapshotAccessor` accepts.
    """

    def __init__(self, source: HostAccessor):
        self.source = source
        self._lock = threading.Lock()
        self._registry: dict[str, dict[str, Any]] = {}
        self._services: dict[str, str] = {}
        self._acls: dict[str, list[dict[str, Any]]] = {}
        self._acl_errors: list[str] = []
        self._folders: dict[str, dict[str, Any]] = {}
        self._facts: dict[str, Any] = {}

    def read_value(self, path: str, name: str) -> ConfigValue:
        value = self.source.read_value(path, name)
        if value.present:
            with self._lock:
                self._registry.setdefault(path, {})[name] = _plain(value.raw)
        return value

    def enumerate_values(self, path: str) -> list[tuple[str, Any]]:
        values = self.source.enumerate_values(path)
        with self._lock:
            bucket = self._registry.setdefault(path, {})
            for name, raw in values:
                bucket[name] = _plain(raw)
        return values

    def is_domain_joined(self) -> bool:
        joined = self.source.is_domain_joined()
        with self._lock:
            self._facts["domain_joined"] = joined
        return joined

    def os_version_major(self) -> int:
        major = self.source.os_version_major()
        with self._lock:
            self._facts["os_version_major"] = major
        return major

    def host_name(self) -> str:
        name = self.source.host_name()
        with self._lock:
            self._facts["host"] = name
        return name

    def list_services(self, name_filter: str | None = None) -> list[ServiceInfo]:
        services = self.source.list_services(name_filter)
        with self._lock:
            for service in services:
                self._services[service.name] = service.start_mode
        return services

    def check_writable(self, path: str, principal: str | None = None) -> list[WritableEntry]:
        try:
            entries = self.source.check_writable(path, principal)
        except OSError:
            with self._lock:
                self._acl_errors.append(path)
            raise
        with self._lock:
            self._acls[path] = [_acl_entry(e) for e in entries]
        return entries

    def folder_info(self, path: str) -> FolderInfo | None:
        info = self.source.folder_info(path)
        if info is not None:
            with self._lock:
                self._folders.setdefault(path, {})["attributes"] = list(info.attributes)
        return info

    def list_folder(self, path: str) -> list[str]:
        try:
            entries = self.source.list_folder(path)
        except OSError:
            with self._lock:
                self._folders.setdefault(path, {})["accessible"] = False
            raise
        with self._lock:
            folder = self._folders.setdefault(path, {})
            folder["accessible"] = True
            folder["entries"] = list(entries)
        return entries

    def to_snapshot(self) -> dict[str, Any]:
        """Return the recorded facts in snapshot format."""
        with self._lock:
            data: dict[str, Any] = dict(self._facts)
            data["registry"] = {k: dict(v) for k, v in self._registry.items()}
            data["services"] = dict(self._services)
            data["acls"] = {k: list(v) for k, v in self._acls.items()}
            data["acl_errors"] = sorted(set(self._acl_errors))
            data["folders"] = {k: dict(v) for k, v in self._folders.items()}
        return data


def _acl_entry(entry: WritableEntry) -> dict[str, Any]:
    data: dict[str, Any] = {"identity": entry.identity, "permissions": list(entry.permissions)}
    if entry.parent:
        data["parent"] = entry.parent
    return data


def _plain(raw: Any) -> Any:
    """Make a registry value YAML-safe."""
    if isinstance(raw, bytes):
        return raw.hex()
    if isinstance(raw, tuple):
        return list(raw)
    return raw


def write_snapshot(data: dict[str, Any], path: str | Path) -> Path:
    """Write snapshot *data* to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write("# Privesc Audit - host configuration snapshot\n")
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False, width=120)
    return path
