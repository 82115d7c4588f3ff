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


"""Tests for the Configuration Manager cache folder checks."""

from __future__ import annotations

from privesc_audit.checks.cache_folder_checks import check_cache_folder, check_cache_folder_access
from privesc_audit.core.accessors.base import FolderInfo
from privesc_audit.core.accessors.snapshot import SnapshotAccessor
from privesc_audit.core.models import Severity

CCM = r"C:\Windows\ccmcache"
ALT = r"D:\ccmcache"


class ProbeCountingAccessor(SnapshotAccessor):
    def __init__(self, data):
        super().__init__(data)
        self.listed: list[str] = []

    def list_folder(self, path: str) -> list[str]:
        self.listed.append(path)
        return super().list_folder(path)


class BrokenStatAccessor(SnapshotAccessor):
    def folder_info(self, path: str) -> FolderInfo | None:
        if path == ALT:
            raise PermissionError("stat denied")
        return super().folder_info(path)


class TestInformationalMode:
    def test_no_folder_is_not_vulnerable(self, make_accessor):
        finding = check_cache_folder(make_accessor(), Severity.LOW)
        assert finding.vulnerable is False
        assert finding.observations == []

    def test_existing_folder_is_reported_with_attributes(self, make_accessor):
        accessor = make_accessor(folders={CCM: {"attributes": ["Directory", "Hidden"]}})
        finding = check_cache_folder(accessor, Severity.LOW)

        assert finding.vulnerable is True
        assert finding.severity is Severity.LOW
        assert finding.observations[0].identity == CCM
        assert finding.observations[0].attributes == {"attributes": ["Directory", "Hidden"]}

    def test_contents_are_never_listed(self):
        accessor = ProbeCountingAccessor({"folders": {CCM: {"entries": ["a"]}}})
        check_cache_folder(accessor, Severity.LOW)
        assert accessor.listed == []

    def test_paths_knob(self, make_accessor):
        accessor = make_accessor(folders={ALT: {}})
        assert check_cache_folder(accessor, Severity.LOW).vulnerable is False
        finding = check_cache_folder(accessor, Severity.LOW, paths=[CCM, ALT])
        assert [o.identity for o in finding.observations] == [ALT]

    def test_stat_failure_is_skipped(self):
        accessor = BrokenStatAccessor({"folders": {CCM: {}, ALT: {}}})
        finding = check_cache_folder(accessor, Severity.LOW, paths=[ALT, CCM])
        assert [o.identity for o in finding.observations] == [CCM]


class TestFullMode:
    def test_accessible_folder_is_vulnerable(self, make_accessor):
        accessor = make_accessor(folders={CCM: {"accessible": True, "entries": ["a1", "b2", "c3"]}})
        finding = check_cache_folder_access(accessor, Severity.MEDIUM)

        assert finding.vulnerable is True
        assert finding.severity is Severity.MEDIUM
        obs = finding.observations[0]
        assert obs.resolved_value == 3
        assert "entries" not in obs.attributes

    def test_include_entries(self, make_accessor):
        accessor = make_accessor(folders={CCM: {"entries": ["a1", "b2"]}})
        finding = check_cache_folder_access(accessor, Severity.MEDIUM, include_entries=True)
        assert finding.observations[0].attributes["entries"] == ["a1", "b2"]

    def test_inaccessible_folder_is_excluded_not_raised(self, make_accessor):
        accessor = make_accessor(folders={CCM: {"accessible": False}})
        finding = check_cache_folder_access(accessor, Severity.MEDIUM)

        assert finding.vulnerable is False
        assert finding.observations == []

    def test_missing_folder_is_not_probed(self):
        accessor = ProbeCountingAccessor({})
        check_cache_folder_access(accessor, Severity.MEDIUM)
        assert accessor.listed == []

    def test_mixed_folders(self, make_accessor):
        accessor = make_accessor(folders={CCM: {"accessible": False}, ALT: {"entries": []}})
        finding = check_cache_folder_access(accessor, Severity.MEDIUM, paths=[CCM, ALT])
        assert [o.identity for o in finding.observations] == [ALT]
        assert finding.observations[0].resolved_value == 0
        assert finding.vulnerable is True
