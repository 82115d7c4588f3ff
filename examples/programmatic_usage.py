#!/usr/bin/env python3
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
Programmatic usage example - using Privesc Audit as a Python library.

This example demonstrates:
1. Loading a host snapshot and a policy preset
2. Overriding base severities for a single run
3. Processing findings programmatically
"""

from pathlib import Path

from privesc_audit import AuditPolicy, Auditor, Severity, SnapshotAccessor
from privesc_audit.core.reporters.json_reporter import JSONReporter


def group_by_severity(findings):
    """Group vulnerable findings by severity."""
    by_severity = {}
    for finding in findings:
        by_severity.setdefault(finding.severity.value, []).append(finding)
    return by_severity


def main():
    snapshot_path = Path(__file__).parent / "sample_snapshot.yaml"
    accessor = SnapshotAccessor.from_yaml(snapshot_path)

    print("=" * 60)
    print("Example 1: Default policy")
    print("=" * 60)
    report = Auditor(accessor).audit()
    print(f"Host: {report.host}")
    print(f"Vulnerable checks: {len(report.vulnerable_findings())}")
    for severity, findings in group_by_severity(report.vulnerable_findings()).items():
        print(f"  {severity}: {', '.join(f.check_id for f in findings)}")

    print()
    print("=" * 60)
    print("Example 2: Strict preset with an explicit base severity")
    print("=" * 60)
    auditor = Auditor(accessor, policy=AuditPolicy.from_preset("strict"))
    report = auditor.audit({"POINT_AND_PRINT": Severity.CRITICAL})
    finding = report.findings["POINT_AND_PRINT"]
    print(f"{finding.check_id}: {finding.severity.value}")
    for obs in finding.observations:
        state = "-" if obs.compliant is None else ("ok" if obs.compliant else "not ok")
        print(f"  [{state}] {obs.identity} = {obs.resolved_value!r}")

    print()
    print("=" * 60)
    print("Example 3: JSON export")
    print("=" * 60)
    print(JSONReporter(pretty=False).generate_report(report)[:200] + "...")


if __name__ == "__main__":
    main()
