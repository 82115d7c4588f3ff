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
Base accessor interface for reading host configuration.

Checks never touch the registry, the service manager or the filesystem
directly; they go through a :class:`HostAccessor`.  Implementations must be
safe for concurrent reads because the auditor runs checks on a thread pool.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..models import ConfigValue


@dataclass(frozen=True)
class ServiceInfo:
    """An installed service and its configured start mode."""

    name: str
    start_mode: str  # Boot / System / Automatic / Manual / Disabled

    @property
    def enabled(self) -> bool:
        return self.start_mode.lower() != "disabled"


@dataclass(frozen=True)
class WritableEntry:
    """An access-control entry that grants write access to a path.

    When *path* does not exist, *parent* names the nearest existing ancestor
    whose ACL lets the principal create it.
    """

    path: str
    identity: str
    permissions: tuple[str, ...]
    parent: str | None = None


@dataclass(frozen=True)
class FolderInfo:
    """Existence and attributes of a folder."""

    path: str
    attributes: tuple[str, ...] = ()


class HostAccessor(ABC):
    """Abstract base class for host configuration sources."""

    @abstractmethod
    def read_value(self, path: str, name: str) -> ConfigValue:
        """
        Read one named value under a registry-style path.

        Args:
            path: Key path, e.g. ``HKLM\\SOFTWARE\\Policies\\Microsoft\\Windows\\Installer``
            name: Value name

        Returns:
            A present ConfigValue, or ``ConfigValue.absent()`` when either the key
            or the value does not exist.

        Raises:
            AccessorError: If the store itself cannot be queried.
        """
        pass

    @abstractmethod
    def enumerate_values(self, path: str) -> list[tuple[str, Any]]:
        """List every ``(name, value)`` pair under *path*; empty when the key is missing."""
        pass

    @abstractmethod
    def is_domain_joined(self) -> bool:
        pass

    @abstractmethod
    def os_version_major(self) -> int:
        pass

    @abstractmethod
    def list_services(self, name_filter: str | None = None) -> list[ServiceInfo]:
        """List installed services, optionally restricted to names matching a glob."""
        pass

    @abstractmethod
    def check_writable(self, path: str, principal: str | None = None) -> list[WritableEntry]:
        """
        Walk the ACL of *path* for entries granting write access.

        A missing *path* is evaluated against its nearest existing ancestor:
        entries are returned when the principal can create the missing
        directory there.

        Args:
            path: Filesystem path
            principal: Account to evaluate; the current user and its groups when None

        Raises:
            OSError: If the ACL cannot be read. Callers treat this as a soft failure.
        """
        pass

    @abstractmethod
    def folder_info(self, path: str) -> FolderInfo | None:
        """Return folder attributes, or None when the folder does not exist."""
        pass

    @abstractmethod
    def list_folder(self, path: str) -> list[str]:
        """
        List the entries of a folder.

        Raises:
            OSError: If the folder cannot be enumerated. Callers treat this as a soft failure.
        """
        pass

    def host_name(self) -> str:
        """Name of the audited host, used in reports."""
        return "localhost"
