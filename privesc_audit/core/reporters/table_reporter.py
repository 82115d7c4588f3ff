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
Table format reporter for audit reports.
"""

from tabulate import tabulate

from ...core.models import AuditReport, Severity


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


class TableReporter:
    """Generates plain-text table reports."""

    def __init__(self, format_style: str = "grid", show_observations: bool = True, max_width: int = 60):
        """
        Initialize table reporter.

        Args:
            format_style: tabulate table format (grid, simple, plain, ...)
            show_observations: If True, list the observations of vulnerable checks
            max_width: Column width above which text is truncated
        """
        self.format_style = format_style
        self.show_observations = show_observations
        self.max_width = max_width

    def generate_report(self, report: AuditReport) -> str:
        """
        Generate table report.

        Args:
            report: AuditReport object

        Returns:
            Table string
        """
        lines = []
        lines.append("=" * 80)
        lines.append(f"Privilege Escalation Audit: {report.host}")
        lines.append("=" * 80)
        lines.append("")

        summary = [
            ["Status", "[OK] CLEAN" if report.is_clean else "[FAIL] ISSUES FOUND"],
            ["Policy", report.policy_name],
            ["Max Severity", report.max_severity.value],
            ["Checks Run", len(report.findings)],
            ["Vulnerable", len(report.vulnerable_findings())],
            ["Failed", len(report.failures)],
            ["Duration", f"{report.duration_seconds:.2f}s"],
        ]
        lines.append(tabulate(summary, tablefmt=self.format_style))
        lines.append("")

        rows = []
        for finding in report.findings.values():
            rows.append(
                [
                    finding.check_id,
                    _truncate(finding.title, self.max_width),
                    "[FAIL] VULNERABLE" if finding.vulnerable else "[OK]",
                    finding.severity.value,
                ]
            )
        for check_id, reason in report.failures.items():
            rows.append([check_id, _truncate(reason, self.max_width), "[ERROR]", Severity.NONE.value])
        lines.append("Checks:")
        lines.append(tabulate(rows, headers=["Check", "Title", "Result", "Severity"], tablefmt=self.format_style))

        if self.show_observations:
            for finding in report.vulnerable_findings():
                lines.append("")
                lines.append(f"{finding.check_id} observations:")
                obs_rows = [
                    [
                        _truncate(obs.identity, self.max_width),
                        _truncate(str(obs.resolved_value), 30),
                        _truncate(obs.description, self.max_width),
                    ]
                    for obs in finding.observations
                ]
                lines.append(tabulate(obs_rows, headers=["Identity", "Value", "Description"], tablefmt=self.format_style))

        return "\n".join(lines)

    def save_report(self, report: AuditReport, output_path: str):
        """Save report to file."""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.generate_report(report))
