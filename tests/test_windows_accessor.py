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


"""Tests for the platform-independent parts of the live Windows accessor."""

from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

from privesc_audit.core.accessors.windows import (
    WindowsAccessor,
    describe_access_mask,
    existing_ancestor,
    split_registry_path,
)
from privesc_audit.core.exceptions import AccessorError


class TestSplitRegistryPath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            (r"HKLM\SOFTWARE\Policies", ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Policies")),
            (r"hkcu\Software\X\\", ("HKEY_CURRENT_USER", r"Software\X")),
            (r"HKEY_USERS\S-1-5-18", ("HKEY_USERS", "S-1-5-18")),
            ("HKLM", ("HKEY_LOCAL_MACHINE", "")),
        ],
    )
    def test_split(self, path, expected):
        assert split_registry_path(path) == expected

    def test_unknown_hive(self):
        with pytest.raises(AccessorError, match="Unsupported registry hive"):
            split_registry_path(r"HKXX\SOFTWARE")


class TestDescribeAccessMask:
    def test_read_only_mask_has_no_write_rights(self):
        # FILE_GENERIC_READ | FILE_EXECUTE
        assert describe_access_mask(0x001200A9) == ()

    def test_full_control(self):
        assert describe_access_mask(0x001F01FF) == (
            "WriteData/AddFile",
            "AppendData/AddSubdirectory",
            "WriteDAC",
            "WriteOwner",
        )

    def test_generic_rights(self):
        assert describe_access_mask(0x40000000) == ("GenericWrite",)
        assert describe_access_mask(0x10000000) == ("GenericAll",)


@pytest.mark.skipif(sys.platform == "win32", reason="exercises the non-Windows error path")
def test_live_accessor_requires_windows():
    with pytest.raises(AccessorError, match="Windows host"):
        WindowsAccessor()


class FakeWin32Error(Exception):
    pass


@pytest.fixture
def bare_accessor() -> WindowsAccessor:
    """A WindowsAccessor that skips the winreg import, for pywin32-only paths."""
    return WindowsAccessor.__new__(WindowsAccessor)


@pytest.fixture
def fake_pywintypes(monkeypatch):
    module = SimpleNamespace(error=FakeWin32Error)
    monkeypatch.setitem(sys.modules, "pywintypes", module)
    return module


class TestDomainMembership:
    @pytest.fixture
    def join_status(self, monkeypatch, fake_pywintypes):
        state = {"status": 3}

        def get_join_information(server):
            assert server is None
            if isinstance(state["status"], Exception):
                raise state["status"]
            return ("CORP", state["status"])

        monkeypatch.setitem(sys.modules, "win32net", SimpleNamespace(NetGetJoinInformation=get_join_information))
        monkeypatch.setitem(
            sys.modules,
            "win32netcon",
            SimpleNamespace(NetSetupUnjoined=1, NetSetupWorkgroupName=2, NetSetupDomainName=3),
        )
        return state

    def test_domain_joined(self, bare_accessor, join_status):
        assert bare_accessor.is_domain_joined() is True

    def test_workgroup_with_dns_suffix_is_not_joined(self, bare_accessor, join_status):
        join_status["status"] = 2
        assert bare_accessor.is_domain_joined() is False

    def test_query_failure_is_an_accessor_error(self, bare_accessor, join_status):
        join_status["status"] = FakeWin32Error("RPC server unavailable")
        with pytest.raises(AccessorError, match="domain membership"):
            bare_accessor.is_domain_joined()


class TestExistingAncestor:
    def test_nearest_existing_directory(self, tmp_path):
        assert existing_ancestor(str(tmp_path / "missing" / "deeper")) == str(tmp_path)

    def test_existing_path_reports_its_parent(self, tmp_path):
        (tmp_path / "bin").mkdir()
        assert existing_ancestor(str(tmp_path / "bin")) == str(tmp_path)


class TestMissingPathDirectory:
    ALLOWED = 0
    USERS_SID = "S-1-5-32-545"

    @pytest.fixture
    def fake_security(self, monkeypatch, fake_pywintypes, bare_accessor):
        walked = []
        aces = [
            # Users: AddSubdirectory on the ancestor
            ((self.ALLOWED, 0), 0x00000004, self.USERS_SID),
            # Users: WriteData only, which cannot create a directory
            ((self.ALLOWED, 0), 0x00000002, self.USERS_SID),
        ]
        dacl = SimpleNamespace(GetAceCount=lambda: len(aces), GetAce=lambda index: aces[index])

        def get_named_security_info(path, object_type, info):
            walked.append(path)
            return SimpleNamespace(GetSecurityDescriptorDacl=lambda: dacl)

        monkeypatch.setitem(
            sys.modules,
            "win32security",
            SimpleNamespace(
                SE_FILE_OBJECT=1,
                DACL_SECURITY_INFORMATION=4,
                ACCESS_ALLOWED_ACE_TYPE=self.ALLOWED,
                INHERIT_ONLY_ACE=0x8,
                GetNamedSecurityInfo=get_named_security_info,
                LookupAccountSid=lambda system, sid: ("Users", "BUILTIN", 4),
            ),
        )
        monkeypatch.setattr(bare_accessor, "_trustee_sids", lambda principal: [self.USERS_SID])
        return walked

    def test_missing_directory_is_checked_against_its_ancestor(self, tmp_path, bare_accessor, fake_security):
        missing = str(tmp_path / "tools" / "bin")
        entries = bare_accessor.check_writable(missing)

        assert fake_security == [str(tmp_path)]
        assert len(entries) == 1
        assert entries[0].path == missing
        assert entries[0].parent == str(tmp_path)
        assert entries[0].identity == r"BUILTIN\Users"
        assert entries[0].permissions == ("AppendData/AddSubdirectory",)

    def test_existing_directory_keeps_all_write_rights(self, tmp_path, bare_accessor, fake_security):
        entries = bare_accessor.check_writable(str(tmp_path))

        assert fake_security == [str(tmp_path)]
        assert [e.permissions for e in entries] == [("AppendData/AddSubdirectory",), ("WriteData/AddFile",)]
        assert all(e.parent is None for e in entries)

    def test_existing_file_is_not_walked(self, tmp_path, bare_accessor, fake_security):
        target = tmp_path / "file.txt"
        target.write_text("x", encoding="utf-8")
        assert bare_accessor.check_writable(str(target)) == []
        assert fake_security == []
