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


"""Tests for the severity, observation, finding and report models."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from privesc_audit.core.models import AuditReport, ConfigValue, Finding, Observation, Severity


class TestSeverity:
    def test_ordering_is_by_rank_not_alphabet(self):
        assert Severity.NONE < Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL
        # Alphabetically "CRITICAL" < "HIGH"; by rank it is the other way round
        assert Severity.CRITICAL > Severity.HIGH
        assert max([Severity.LOW, Severity.CRITICAL, Severity.MEDIUM]) is Severity.CRITICAL

    @pytest.mark.parametrize("text", ["high", "HIGH", " High ", Severity.HIGH])
    def test_parse_accepts_any_case(self, text):
        assert Severity.parse(text) is Severity.HIGH

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="Valid values"):
            Severity.parse("severe")

    def test_for_verdict_reports_base_only_when_vulnerable(self):
        assert Severity.for_verdict(Severity.MEDIUM, True) is Severity.MEDIUM
        assert Severity.for_verdict(Severity.CRITICAL, False) is Severity.NONE

    def test_value_is_string(self):
        assert Severity.HIGH.value == "HIGH"
        assert Severity.HIGH == "HIGH"


class TestConfigValue:
    def test_absent_is_distinct_from_zero(self):
        absent = ConfigValue.absent()
        zero = ConfigValue(present=True, raw=0)
        assert absent.present is False
        assert zero.present is True
        assert absent != zero


class TestObservation:
    def test_to_dict_omits_unset_optional_fields(self):
        obs = Observation(identity="X", resolved_value=0, description="d")
        assert obs.to_dict() == {"identity": "X", "value": 0, "description": "d"}

    def test_to_dict_includes_compliance_and_sorted_attributes(self):
        obs = Observation(
            identity="X",
            resolved_value=[],
            description="d",
            compliant=False,
            attributes={"z": 1, "a": 2},
        )
        data = obs.to_dict()
        assert data["compliant"] is False
        assert list(data["attributes"]) == ["a", "z"]


class TestFinding:
    def test_to_dict_shape(self):
        finding = Finding(
            check_id="DRIVER_CO_INSTALLERS",
            title="t",
            severity=Severity.LOW,
            vulnerable=True,
            observations=[Observation(identity="X", resolved_value=0, description="d")],
        )
        data = finding.to_dict()
        assert list(data) == ["check_id", "title", "vulnerable", "severity", "observations"]
        assert data["severity"] == "LOW"
        assert len(data["observations"]) == 1


def _report() -> AuditReport:
    return AuditReport(
        host="WS01",
        findings={
            "A": Finding(check_id="A", title="a", severity=Severity.HIGH, vulnerable=True),
            "B": Finding(check_id="B", title="b", severity=Severity.NONE, vulnerable=False),
            "C": Finding(check_id="C", title="c", severity=Severity.LOW, vulnerable=True),
        },
        failures={"D": "timed out after 1.0s"},
        started_at=datetime(2026, 1, 2, 3, 4, 5),
        duration_seconds=0.5,
    )


class TestAuditReport:
    def test_max_severity(self):
        assert _report().max_severity is Severity.HIGH

    def test_max_severity_of_empty_report_is_none(self):
        assert AuditReport(host="h").max_severity is Severity.NONE

    def test_is_clean(self):
        assert _report().is_clean is False
        clean = AuditReport(
            host="h", findings={"B": Finding(check_id="B", title="b", severity=Severity.NONE, vulnerable=False)}
        )
        assert clean.is_clean is True

    def test_failures_make_report_unclean(self):
        assert AuditReport(host="h", failures={"A": "boom"}).is_clean is False

    def test_vulnerable_findings(self):
        assert [f.check_id for f in _report().vulnerable_findings()] == ["A", "C"]

    def test_to_dict_summary(self):
        data = _report().to_dict()
        summary = data["summary"]
        assert summary["host"] == "WS01"
        assert summary["checks_run"] == 3
        assert summary["checks_failed"] == 1
        assert summary["vulnerable"] == 2
        assert summary["max_severity"] == "HIGH"
        assert summary["findings_by_severity"] == {"critical": 0, "high": 1, "medium": 0, "low": 1}
        assert summary["timestamp"] == "2026-01-02T03:04:05"
        assert data["failures"] == {"D": "timed out after 1.0s"}
        json.dumps(data)
