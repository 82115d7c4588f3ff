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
Live Windows accessor.

Reads the registry through ``winreg`` and walks file ACLs through pywin32's
``win32security``.  Both are imported on first use so the package (and the
snapshot workflow) imports cleanly on any platform.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import platform
import stat
from typing import Any

from ..exceptions import AccessorError
from ..models import ConfigValue, ValueType
from .base import FolderInfo, HostAccessor, ServiceInfo, WritableEntry

logger = logging.getLogger(__name__)

_HIVE_NAMES = {
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKEY_LOCAL_MACHINE": "HKEY_LOCAL_MACHINE",
    "HKCU": "HKEY_CURRENT_USER",
    "HKEY_CURRENT_USER": "HKEY_CURRENT_USER",
    "HKU": "HKEY_USERS",
    "HKEY_USERS": "HKEY_USERS",
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKEY_CLASSES_ROOT": "HKEY_CLASSES_ROOT",
}

_SERVICES_KEY = r"HKLM\SYSTEM\CurrentControlSet\Services"
_CURRENT_VERSION_KEY = r"HKLM\SOFTWARE\Microsoft\Windows NT\CurrentVersion"

# Service "Start" value -> start mode
_START_MODES = {0: "Boot", 1: "System", 2: "Automatic", 3: "Manual", 4: "Disabled"}

# Access-mask bits that let a principal create or replace files in a directory
_WRITE_RIGHTS = {
    0x00000002: "WriteData/AddFile",
    0x00000004: "AppendData/AddSubdirectory",
    0x00040000: "WriteDAC",
    0x00080000: "WriteOwner",
    0x10000000: "GenericAll",
    0x40000000: "GenericWrite",
}

# Rights on an existing ancestor that let a principal create a missing directory
_CREATE_DIRECTORY_RIGHTS = frozenset(
    {"AppendData/AddSubdirectory", "WriteDAC", "WriteOwner", "GenericAll", "GenericWrite"}
)

_FILE_ATTRIBUTES = {
    "FILE_ATTRIBUTE_READONLY": "ReadOnly",
    "FILE_ATTRIBUTE_HIDDEN": "Hidden",
    "FILE_ATTRIBUTE_SYSTEM": "System",
    "FILE_ATTRIBUTE_DIRECTORY": "Directory",
    "FILE_ATTRIBUTE_ARCHIVE": "Archive",
    "FILE_ATTRIBUTE_COMPRESSED": "Compressed",
    "FILE_ATTRIBUTE_ENCRYPTED": "Encrypted",
    "FILE_ATTRIBUTE_NOT_CONTENT_INDEXED": "NotContentIndexed",
    "FILE_ATTRIBUTE_REPARSE_POINT": "ReparsePoint",
}


def split_registry_path(path: str) -> tuple[str, str]:
    """Split ``HKLM\\SOFTWARE\\...`` into the canonical hive name and the subkey."""
    hive, _, subkey = path.strip().partition("\\")
    canonical = _HIVE_NAMES.get(hive.upper())
    if canonical is None:
        raise AccessorError(f"Unsupported registry hive in path: {path}")
    return canonical, subkey.strip("\\")


def describe_access_mask(mask: int) -> tuple[str, ...]:
    """Names of the write rights present in *mask*."""
    return tuple(name for bit, name in _WRITE_RIGHTS.items() if mask & bit)


def existing_ancestor(path: str) -> str | None:
    """Nearest existing directory above *path*, or None when there is none."""
    current = os.path.dirname(os.path.normpath(path))
    while current and not os.path.isdir(current):
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent
    return current or None


def _winreg():
    try:
        import winreg
    except ImportError as exc:
        raise AccessorError("The live Windows accessor requires a Windows host; use a snapshot instead") from exc
    return winreg


class WindowsAccessor(HostAccessor):
    """Read configuration from the local Windows host."""

    def __init__(self):
        self._winreg = _winreg()

    # -- Registry ---------------------------------------------------------

    def _open_key(self, path: str):
        hive_name, subkey = split_registry_path(path)
        hive = getattr(self._winreg, hive_name)
        return self._winreg.OpenKey(hive, subkey, 0, self._winreg.KEY_READ)

    def _convert(self, raw: Any, reg_type: int) -> ConfigValue:
        winreg = self._winreg
        if reg_type in (winreg.REG_DWORD, winreg.REG_QWORD):
            return ConfigValue(present=True, raw=int(raw), value_type=ValueType.INTEGER)
        if reg_type == winreg.REG_EXPAND_SZ:
            return ConfigValue(present=True, raw=winreg.ExpandEnvironmentStrings(raw), value_type=ValueType.STRING)
        if reg_type == winreg.REG_SZ:
            return ConfigValue(present=True, raw=raw, value_type=ValueType.STRING)
        if reg_type == winreg.REG_MULTI_SZ:
            return ConfigValue(present=True, raw=list(raw or []), value_type=ValueType.LIST)
        return ConfigValue(present=True, raw=raw, value_type=None)

    def read_value(self, path: str, name: str) -> ConfigValue:
        try:
            with self._open_key(path) as key:
                raw, reg_type = self._winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return ConfigValue.absent()
        except OSError as exc:
            raise AccessorError(f"Error reading registry {path}\\{name}: {exc}") from exc
        return self._convert(raw, reg_type)

    def enumerate_values(self, path: str) -> list[tuple[str, Any]]:
        values: list[tuple[str, Any]] = []
        try:
            with self._open_key(path) as key:
                _, value_count, _ = self._winreg.QueryInfoKey(key)
                for index in range(value_count):
                    name, raw, reg_type = self._winreg.EnumValue(key, index)
                    values.append((name, self._convert(raw, reg_type).raw))
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise AccessorError(f"Error enumerating registry {path}: {exc}") from exc
        return values

    # -- Host facts -------------------------------------------------------

    def is_domain_joined(self) -> bool:
        import pywintypes
        import win32net
        import win32netcon

        try:
            _, join_status = win32net.NetGetJoinInformation(None)
        except pywintypes.error as exc:
            raise AccessorError(f"Cannot query domain membership: {exc}") from exc
        return join_status == win32netcon.NetSetupDomainName

    def os_version_major(self) -> int:
        major = self.read_value(_CURRENT_VERSION_KEY, "CurrentMajorVersionNumber")
        if major.present:
            return int(major.raw)
        # Windows 8.1 and older only record "6.3"-style versions
        legacy = self.read_value(_CURRENT_VERSION_KEY, "CurrentVersion")
        if legacy.present:
            try:
                return int(str(legacy.raw).split(".")[0])
            except ValueError:
                logger.debug("Unparseable CurrentVersion value: %r", legacy.raw)
        return int(platform.version().split(".")[0])

    def host_name(self) -> str:
        return platform.node() or "localhost"

    def list_services(self, name_filter: str | None = None) -> list[ServiceInfo]:
        winreg = self._winreg
        services: list[ServiceInfo] = []
        try:
            with self._open_key(_SERVICES_KEY) as key:
                subkey_count, _, _ = winreg.QueryInfoKey(key)
                names = [winreg.EnumKey(key, index) for index in range(subkey_count)]
        except OSError as exc:
            raise AccessorError(f"Error enumerating services: {exc}") from exc

        pattern = name_filter.lower() if name_filter else None
        for name in names:
            if pattern and not fnmatch.fnmatchcase(name.lower(), pattern):
                continue
            start = self.read_value(f"{_SERVICES_KEY}\\{name}", "Start")
            if not start.present:
                continue
            services.append(ServiceInfo(name=name, start_mode=_START_MODES.get(int(start.raw), "Unknown")))
        return services

    # -- Filesystem -------------------------------------------------------

    def _trustee_sids(self, principal: str | None) -> list:
        import win32api
        import win32con
        import win32security

        if principal:
            sid, _, _ = win32security.LookupAccountName(None, principal)
            return [sid]
        token = win32security.OpenProcessToken(win32api.GetCurrentProcess(), win32con.TOKEN_QUERY)
        user_sid, _ = win32security.GetTokenInformation(token, win32security.TokenUser)
        groups = win32security.GetTokenInformation(token, win32security.TokenGroups)
        return [user_sid] + [sid for sid, _ in groups]

    def check_writable(self, path: str, principal: str | None = None) -> list[WritableEntry]:
        import pywintypes
        import win32security

        parent = None
        if not os.path.isdir(path):
            if os.path.exists(path):
                return []
            parent = existing_ancestor(path)
            if parent is None:
                return []
        target = parent or path
        try:
            descriptor = win32security.GetNamedSecurityInfo(
                target, win32security.SE_FILE_OBJECT, win32security.DACL_SECURITY_INFORMATION
            )
            dacl = descriptor.GetSecurityDescriptorDacl()
            trustees = self._trustee_sids(principal)
        except pywintypes.error as exc:
            raise PermissionError(f"Cannot read ACL of {target}: {exc}") from exc

        if dacl is None:
            # A NULL DACL grants everyone full control
            return [WritableEntry(path=path, identity="Everyone", permissions=("GenericAll",), parent=parent)]

        entries: list[WritableEntry] = []
        for index in range(dacl.GetAceCount()):
            (ace_type, ace_flags), mask, sid = dacl.GetAce(index)
            if ace_type != win32security.ACCESS_ALLOWED_ACE_TYPE or ace_flags & win32security.INHERIT_ONLY_ACE:
                continue
            rights = describe_access_mask(mask)
            if parent is not None:
                rights = tuple(r for r in rights if r in _CREATE_DIRECTORY_RIGHTS)
            if not rights or sid not in trustees:
                continue
            try:
                name, domain, _ = win32security.LookupAccountSid(None, sid)
                identity = f"{domain}\\{name}" if domain else name
            except pywintypes.error:
                identity = win32security.ConvertSidToStringSid(sid)
            entries.append(WritableEntry(path=path, identity=identity, permissions=rights, parent=parent))
        return entries

    def folder_info(self, path: str) -> FolderInfo | None:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return None
        if not stat.S_ISDIR(st.st_mode):
            return None
        flags = getattr(st, "st_file_attributes", 0)
        attributes = tuple(
            label for const, label in _FILE_ATTRIBUTES.items() if flags & getattr(stat, const, 0)
        ) or ("Directory",)
        return FolderInfo(path=path, attributes=attributes)

    def list_folder(self, path: str) -> list[str]:
        return sorted(os.listdir(path))
