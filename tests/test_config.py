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


"""Tests for runtime configuration."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from privesc_audit.config.config import Config
from privesc_audit.config.constants import PrivescAuditConstants

_ENV_NAMES = [f"PRIVESC_AUDIT_{n}" for n in ("SNAPSHOT", "POLICY", "FORMAT", "TIMEOUT", "MAX_WORKERS")]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.snapshot_path is None
        assert config.policy is None
        assert config.timeout_seconds is None
        assert config.max_workers is None
        assert config.output_format == "summary"

    def test_from_environment(self):
        env = {
            "PRIVESC_AUDIT_SNAPSHOT": "host.yaml",
            "PRIVESC_AUDIT_POLICY": "strict",
            "PRIVESC_AUDIT_FORMAT": "Markdown",
            "PRIVESC_AUDIT_TIMEOUT": "45",
            "PRIVESC_AUDIT_MAX_WORKERS": "2",
        }
        with patch.dict(os.environ, env):
            config = Config.from_env()

        assert config.snapshot_path == "host.yaml"
        assert config.policy == "strict"
        assert config.output_format == "markdown"
        assert config.timeout_seconds == 45.0
        assert config.max_workers == 2

    def test_explicit_values_win(self):
        with patch.dict(os.environ, {"PRIVESC_AUDIT_POLICY": "strict", "PRIVESC_AUDIT_FORMAT": "json"}):
            config = Config(policy="permissive", output_format="table")
        assert config.policy == "permissive"
        assert config.output_format == "table"

    def test_unknown_format(self):
        with patch.dict(os.environ, {"PRIVESC_AUDIT_FORMAT": "xml"}):
            with pytest.raises(ValueError, match="Unknown output format"):
                Config()

    def test_from_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PRIVESC_AUDIT_POLICY=permissive\nPRIVESC_AUDIT_MAX_WORKERS=8\n", encoding="utf-8")
        with patch.dict(os.environ, {}):
            config = Config.from_file(env_file)
        assert config.policy == "permissive"
        assert config.max_workers == 8

    def test_from_file_does_not_override_environment(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PRIVESC_AUDIT_POLICY=permissive\n", encoding="utf-8")
        with patch.dict(os.environ, {"PRIVESC_AUDIT_POLICY": "strict"}):
            assert Config.from_file(env_file).policy == "strict"

    def test_missing_file_falls_back_to_environment(self, tmp_path):
        assert Config.from_file(tmp_path / "absent.env").policy is None


class TestConstants:
    def test_data_paths(self):
        assert PrivescAuditConstants.get_checks_manifest_path().name == "checks.yaml"
        assert PrivescAuditConstants.get_checks_manifest_path().exists()
        assert (PrivescAuditConstants.get_data_path() / "default_policy.yaml").exists()

    def test_exit_codes(self):
        assert PrivescAuditConstants.EXIT_OK == 0
        assert PrivescAuditConstants.EXIT_CHECK_FAILED == 2
