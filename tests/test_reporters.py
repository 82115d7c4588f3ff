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


"""Tests for the JSON, Markdown and table reporters."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from privesc_audit.core.models import AuditReport, Finding, Observation, Severity
from privesc_audit.core.reporters.json_reporter import JSONReporter
from privesc_audit.core.reporters.markdown_reporter import MarkdownReporter
from privesc_audit.core.reporters.table_reporter import TableReporter


@pytest.fixture
def report() -> AuditReport:
    elevated = Finding(
        check_id="ALWAYS_INSTALL_ELEVATED",
        title="MSI packages install with elevated privileges",
        severity=Severity.HIGH,
        vulnerable=True,
        observations=[
            Observation(
                identity=r"HKLM\SOFTWARE\Policies\Microsoft\Windows\Installer\AlwaysInstallElevated",
                resolved_value=1,
                description="AlwaysInstallElevated is enabled for the machine",
            ),
        ],
    )
    printing = Finding(
        check_id="POINT_AND_PRINT",
        title="Point and Print allows unprivileged driver installation",
        severity=Severity.NONE,
        vulnerable=False,
        observations=[
            Observation(
                identity="ServerList",
                resolved_value=[],
                description="No trusted print servers are listed",
                compliant=False,
            ),
            Observation(identity="Server|Pipe", resolved_value=None, description="pipe", compliant=True),
        ],
    )
    return AuditReport(
        host="WS01",
        findings={elevated.check_id: elevated, printing.check_id: printing},
        failures={"DLL_SEARCH_PATH_HIJACK": "AccessorError: registry unavailable"},
        started_at=datetime(2026, 1, 2, 3, 4, 5),
        duration_seconds=0.25,
        policy_name="balanced",
    )


@pytest.fixture
def clean_report() -> AuditReport:
    finding = Finding("DRIVER_CO_INSTALLERS", "Driver co-installers", Severity.NONE, False)
    return AuditReport(host="WS02", findings={finding.check_id: finding})


class TestJSONReporter:
    def test_structure(self, report):
        data = json.loads(JSONReporter().generate_report(report))

        assert data["summary"]["host"] == "WS01"
        assert data["summary"]["checks_run"] == 2
        assert data["summary"]["checks_failed"] == 1
        assert data["summary"]["vulnerable"] == 1
        assert data["summary"]["max_severity"] == "HIGH"
        assert data["summary"]["findings_by_severity"] == {"critical": 0, "high": 1, "medium": 0, "low": 0}
        assert data["summary"]["timestamp"] == "2026-01-02T03:04:05"
        assert list(data["findings"]) == ["ALWAYS_INSTALL_ELEVATED", "POINT_AND_PRINT"]
        assert data["failures"] == {"DLL_SEARCH_PATH_HIJACK": "AccessorError: registry unavailable"}

    def test_observation_fields(self, report):
        data = json.loads(JSONReporter().generate_report(report))
        elevated = data["findings"]["ALWAYS_INSTALL_ELEVATED"]["observations"][0]
        server_list = data["findings"]["POINT_AND_PRINT"]["observations"][0]

        assert elevated["value"] == 1
        assert "compliant" not in elevated
        assert server_list["compliant"] is False
        assert server_list["value"] == []

    def test_compact(self, report):
        output = JSONReporter(pretty=False).generate_report(report)
        assert "\n" not in output
        assert json.loads(output) == json.loads(JSONReporter().generate_report(report))

    def test_save_report(self, report, tmp_path):
        path = tmp_path / "report.json"
        JSONReporter().save_report(report, str(path))
        assert json.loads(path.read_text(encoding="utf-8"))["summary"]["host"] == "WS01"


class TestMarkdownReporter:
    def test_header_and_summary(self, report):
        output = MarkdownReporter().generate_report(report)

        assert output.startswith("# Local Privilege Escalation Audit Report")
        assert "**Host:** WS01" in output
        assert "**Status:** [FAIL] ISSUES FOUND" in output
        assert "- **High:** 1" in output
        assert "### HIGH Severity" in output

    def test_compliance_column_only_when_judged(self, report):
        output = MarkdownReporter(detailed=True).generate_report(report)

        assert "| Identity | Value | Description |" in output
        assert "| Identity | Value | Compliant | Description |" in output
        assert "| ServerList | (empty) | no | No trusted print servers are listed |" in output
        assert "| Server\\|Pipe | (not set) | yes | pipe |" in output

    def test_passed_checks_hidden_unless_detailed(self, report):
        assert "## Passed Checks" not in MarkdownReporter(detailed=False).generate_report(report)
        assert "## Passed Checks" in MarkdownReporter(detailed=True).generate_report(report)

    def test_failures_listed(self, report):
        output = MarkdownReporter().generate_report(report)
        assert "## Failed Checks" in output
        assert "- **DLL_SEARCH_PATH_HIJACK:** AccessorError: registry unavailable" in output

    def test_remediation_only_for_vulnerable_checks(self, report):
        reporter = MarkdownReporter(
            remediation={"ALWAYS_INSTALL_ELEVATED": "Set it to 0", "POINT_AND_PRINT": "Restrict drivers"}
        )
        output = reporter.generate_report(report)
        assert "**Remediation:** Set it to 0" in output
        assert "Restrict drivers" not in output

    def test_clean_report(self, clean_report):
        output = MarkdownReporter().generate_report(clean_report)
        assert "**Status:** [OK] CLEAN" in output
        assert "## [OK] No Issues Found" in output
        assert "_No observations._" in output


class TestTableReporter:
    def test_checks_table(self, report):
        output = TableReporter().generate_report(report)

        assert "Privilege Escalation Audit: WS01" in output
        assert "[FAIL] VULNERABLE" in output
        assert "[ERROR]" in output
        assert "ALWAYS_INSTALL_ELEVATED observations:" in output
        assert "POINT_AND_PRINT observations:" not in output

    def test_observations_can_be_hidden(self, report):
        output = TableReporter(show_observations=False).generate_report(report)
        assert "observations:" not in output

    def test_truncation(self, report):
        output = TableReporter(format_style="plain", max_width=20).generate_report(report)
        assert "MSI packages inst..." in output

    def test_save_report(self, clean_report, tmp_path):
        path = tmp_path / "report.txt"
        TableReporter(format_style="simple").save_report(clean_report, str(path))
        assert "[OK] CLEAN" in path.read_text(encoding="utf-8")
