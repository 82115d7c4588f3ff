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
Markdown format reporter for audit reports.
"""

from ...core.models import AuditReport, Finding, Severity

_SEVERITY_ORDER = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]


def _cell(value) -> str:
    """Render a value for a Markdown table cell."""
    if isinstance(value, list):
        text = ", ".join(str(v) for v in value) or "(empty)"
    elif value is None:
        text = "(not set)"
    else:
        text = str(value)
    return text.replace("|", "\\|")


class MarkdownReporter:
    """Generates Markdown format reports."""

    def __init__(self, detailed: bool = True, remediation: dict[str, str] | None = None):
        """
        Initialize Markdown reporter.

        Args:
            detailed: If True, include observation tables for checks that are not vulnerable
            remediation: Optional check ID -> remediation text
        """
        self.detailed = detailed
        self.remediation = remediation or {}

    def generate_report(self, report: AuditReport) -> str:
        """
        Generate Markdown report.

        Args:
            report: AuditReport object

        Returns:
            Markdown string
        """
        lines = []

        # Header
        lines.append("# Local Privilege Escalation Audit Report")
        lines.append("")
        lines.append(f"**Host:** {report.host}")
        lines.append(f"**Policy:** {report.policy_name}")
        lines.append(f"**Status:** {'[OK] CLEAN' if report.is_clean else '[FAIL] ISSUES FOUND'}")
        lines.append(f"**Max Severity:** {report.max_severity.value}")
        lines.append(f"**Audit Duration:** {report.duration_seconds:.2f}s")
        lines.append(f"**Timestamp:** {report.started_at.isoformat()}")
        lines.append("")

        # Summary
        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Checks Run:** {len(report.findings)}")
        lines.append(f"- **Vulnerable:** {len(report.vulnerable_findings())}")
        for severity in _SEVERITY_ORDER:
            lines.append(f"- **{severity.value.title()}:** {len(report.get_findings_by_severity(severity))}")
        lines.append("")

        vulnerable = report.vulnerable_findings()
        if vulnerable:
            lines.append("## Findings")
            lines.append("")
            for severity in _SEVERITY_ORDER:
                group = [f for f in vulnerable if f.severity == severity]
                if not group:
                    continue
                lines.append(f"### {severity.value} Severity")
                lines.append("")
                for finding in group:
                    lines.extend(self._format_finding(finding))
                    lines.append("")
        else:
            lines.append("## [OK] No Issues Found")
            lines.append("")

        if self.detailed:
            passed = [f for f in report.findings.values() if not f.vulnerable]
            if passed:
                lines.append("## Passed Checks")
                lines.append("")
                for finding in passed:
                    lines.extend(self._format_finding(finding))
                    lines.append("")

        if report.failures:
            lines.append("## Failed Checks")
            lines.append("")
            for check_id, reason in report.failures.items():
                lines.append(f"- **{check_id}:** {reason}")
            lines.append("")

        return "\n".join(lines)

    def _format_finding(self, finding: Finding) -> list[str]:
        """Format a single finding with its observation table."""
        lines = [f"#### {finding.check_id}: {finding.title}", ""]
        lines.append(f"**Severity:** {finding.severity.value}")
        if finding.vulnerable and finding.check_id in self.remediation:
            lines.append(f"**Remediation:** {self.remediation[finding.check_id]}")
        lines.append("")

        if not finding.observations:
            lines.append("_No observations._")
            return lines

        # The compliance column only appears for checks that judge each value
        with_compliance = any(o.compliant is not None for o in finding.observations)
        if with_compliance:
            lines.append("| Identity | Value | Compliant | Description |")
            lines.append("|---|---|---|---|")
        else:
            lines.append("| Identity | Value | Description |")
            lines.append("|---|---|---|")
        for obs in finding.observations:
            row = [_cell(obs.identity), _cell(obs.resolved_value)]
            if with_compliance:
                row.append("-" if obs.compliant is None else ("yes" if obs.compliant else "no"))
            row.append(_cell(obs.description))
            lines.append("| " + " | ".join(row) + " |")
        return lines

    def save_report(self, report: AuditReport, output_path: str):
        """Save report to file."""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.generate_report(report))
