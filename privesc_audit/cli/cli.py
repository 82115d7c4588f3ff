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


"""Command-line interface for Privesc Audit."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config.config import Config
from ..config.constants import PrivescAuditConstants
from ..core.accessors.base import HostAccessor
from ..core.accessors.snapshot import RecordingAccessor, SnapshotAccessor, write_snapshot
from ..core.accessors.windows import WindowsAccessor
from ..core.audit_policy import AuditPolicy
from ..core.auditor import Auditor
from ..core.check_registry import get_default_registry
from ..core.exceptions import PrivescAuditError
from ..core.models import AuditReport, Severity
from ..core.reporters.json_reporter import JSONReporter
from ..core.reporters.markdown_reporter import MarkdownReporter
from ..core.reporters.table_reporter import TableReporter

logger = logging.getLogger("privesc_audit.cli")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _load_config(args: argparse.Namespace) -> Config:
    env_file = getattr(args, "env_file", None)
    if env_file:
        return Config.from_file(Path(env_file))
    return Config.from_env()


def _load_policy(args: argparse.Namespace, config: Config) -> AuditPolicy:
    """Load the audit policy from ``--policy``, the environment, or the default."""
    policy_value = getattr(args, "policy", None) or config.policy
    policy = AuditPolicy.load(policy_value)
    logger.info("Using audit policy: %s", policy.policy_name)

    timeout = getattr(args, "timeout", None) or config.timeout_seconds
    if timeout:
        policy.execution.timeout_seconds = float(timeout)
    max_workers = getattr(args, "max_workers", None) or config.max_workers
    if max_workers:
        policy.execution.max_workers = int(max_workers)
    return policy


def _open_accessor(snapshot_path: str | None) -> HostAccessor:
    if snapshot_path:
        return SnapshotAccessor.from_yaml(snapshot_path)
    return WindowsAccessor()


def _parse_severities(values: list[str] | None) -> dict[str, Severity]:
    """Parse repeated ``CHECK_ID=LEVEL`` flags."""
    severities: dict[str, Severity] = {}
    for item in values or []:
        check_id, sep, level = item.partition("=")
        if not sep or not check_id.strip():
            raise ValueError(f"Expected CHECK_ID=LEVEL, got '{item}'")
        severities[check_id.strip()] = Severity.parse(level)
    return severities


def _format_output(fmt: str, args: argparse.Namespace, report: AuditReport) -> str:
    """Generate the formatted output string for an audit report."""
    if fmt == "json":
        return JSONReporter(pretty=not args.compact).generate_report(report)
    if fmt == "markdown":
        remediation = {d.id: d.remediation for d in get_default_registry().all_checks()}
        return MarkdownReporter(detailed=args.detailed, remediation=remediation).generate_report(report)
    if fmt == "table":
        return TableReporter().generate_report(report)
    return _generate_summary(report)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(output)


def _exit_code(report: AuditReport, fail_on_findings: bool) -> int:
    if report.failures:
        return PrivescAuditConstants.EXIT_CHECK_FAILED
    if fail_on_findings and any(f.severity >= Severity.HIGH for f in report.vulnerable_findings()):
        return PrivescAuditConstants.EXIT_FINDINGS
    return PrivescAuditConstants.EXIT_OK


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def audit_command(args: argparse.Namespace) -> int:
    """Handle the ``audit`` command."""
    try:
        config = _load_config(args)
        policy = _load_policy(args, config)
        base_severities = _parse_severities(args.severity)
        accessor = _open_accessor(args.snapshot or config.snapshot_path)
    except (FileNotFoundError, PrivescAuditError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return PrivescAuditConstants.EXIT_ERROR

    try:
        report = Auditor(accessor, policy=policy).audit(base_severities)
    except PrivescAuditError as e:
        print(f"Audit failed: {e}", file=sys.stderr)
        return PrivescAuditConstants.EXIT_ERROR

    fmt = args.format or config.output_format
    _write_output(args, _format_output(fmt, args, report))

    for check_id, reason in report.failures.items():
        print(f"[ERROR] {check_id}: {reason}", file=sys.stderr)
    return _exit_code(report, args.fail_on_findings)


def list_checks_command(_args: argparse.Namespace) -> int:
    """Handle the ``list-checks`` command."""
    registry = get_default_registry()
    print("Available Checks:\n")
    for i, definition in enumerate(registry.all_checks(), 1):
        print(f"  {i}. {definition.id} [{definition.default_severity.value}]")
        print(f"     {definition.title}")
        if definition.knobs:
            knobs = ", ".join(f"{k}={v!r}" for k, v in definition.knobs.items())
            print(f"     Knobs: {knobs}")
        print()
    return 0


def generate_policy_command(args: argparse.Namespace) -> int:
    """Handle the ``generate-policy`` command."""
    output_path = Path(args.output)
    preset = getattr(args, "preset", "balanced")
    try:
        policy = AuditPolicy.from_preset(preset)
        policy.to_yaml(output_path)
        print(f"Generated {preset} audit policy: {output_path}\n")
        print("Edit the file to customise, then use:")
        print(f"  privesc-audit audit --policy {output_path}\n")
        print("Available presets: strict | balanced (default) | permissive")
        return 0
    except Exception as e:
        print(f"Error generating policy: {e}", file=sys.stderr)
        return PrivescAuditConstants.EXIT_ERROR


def snapshot_command(args: argparse.Namespace) -> int:
    """Handle the ``snapshot`` command: record the facts every check reads."""
    try:
        source = _open_accessor(args.source)
    except (FileNotFoundError, PrivescAuditError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return PrivescAuditConstants.EXIT_ERROR

    recorder = RecordingAccessor(source)
    try:
        recorder.host_name()
        recorder.is_domain_joined()
        recorder.os_version_major()
        # Record with every check enabled so the snapshot serves any policy
        report = Auditor(recorder, policy=AuditPolicy(policy_name="snapshot")).audit()
    except PrivescAuditError as e:
        print(f"Error: {e}", file=sys.stderr)
        return PrivescAuditConstants.EXIT_ERROR

    path = write_snapshot(recorder.to_snapshot(), args.output)
    print(f"Snapshot saved to: {path}")
    for check_id, reason in report.failures.items():
        print(f"[WARNING] {check_id} could not be recorded: {reason}", file=sys.stderr)
    return PrivescAuditConstants.EXIT_CHECK_FAILED if report.failures else 0


# ---------------------------------------------------------------------------
# Summary formatter
# ---------------------------------------------------------------------------


def _generate_summary(report: AuditReport) -> str:
    lines = [
        "=" * 60,
        f"Host: {report.host}",
        "=" * 60,
        f"Status: {'[OK] CLEAN' if report.is_clean else '[FAIL] ISSUES FOUND'}",
        f"Max Severity: {report.max_severity.value}",
        f"Checks Run: {len(report.findings)}",
        f"Audit Duration: {report.duration_seconds:.2f}s",
        "",
    ]
    for finding in report.findings.values():
        tag = "[FAIL]" if finding.vulnerable else "[OK]"
        lines.append(f"  {tag} {finding.check_id} ({finding.severity.value})")
    for check_id, reason in report.failures.items():
        lines.append(f"  [ERROR] {check_id}: {reason}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Privesc Audit - Windows local privilege escalation configuration auditor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  privesc-audit audit
  privesc-audit audit --snapshot host.yaml --format json
  privesc-audit audit --policy strict --severity POINT_AND_PRINT=CRITICAL
  privesc-audit snapshot -o host.yaml
  privesc-audit generate-policy -o my_policy.yaml
  privesc-audit list-checks
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- audit -------------------------------------------------------------
    audit_p = subparsers.add_parser("audit", help="Audit the local host or a snapshot")
    audit_p.add_argument("--snapshot", metavar="PATH", help="Audit a YAML snapshot instead of the live host")
    audit_p.add_argument(
        "--policy",
        metavar="PRESET_OR_PATH",
        help="Audit policy: preset name (strict, balanced, permissive) or path to custom YAML",
    )
    audit_p.add_argument(
        "--format",
        choices=list(PrivescAuditConstants.OUTPUT_FORMATS),
        default=None,
        help="Output format (default: summary)",
    )
    audit_p.add_argument("--output", "-o", help="Output file path")
    audit_p.add_argument("--compact", action="store_true", help="Compact JSON output")
    audit_p.add_argument("--detailed", action="store_true", help="Include passed checks (Markdown output only)")
    audit_p.add_argument(
        "--severity",
        action="append",
        metavar="CHECK=LEVEL",
        help="Base severity for a check, e.g. POINT_AND_PRINT=CRITICAL (repeatable)",
    )
    audit_p.add_argument("--timeout", type=float, metavar="SECONDS", help="Deadline for the whole audit run")
    audit_p.add_argument("--max-workers", type=int, metavar="N", help="Number of checks run in parallel")
    audit_p.add_argument("--env-file", metavar="PATH", help="Load PRIVESC_AUDIT_* settings from a .env file")
    audit_p.add_argument(
        "--fail-on-findings", action="store_true", help="Exit with error if high/critical findings"
    )
    audit_p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # -- list-checks -------------------------------------------------------
    subparsers.add_parser("list-checks", help="List available checks")

    # -- generate-policy ---------------------------------------------------
    gp_p = subparsers.add_parser("generate-policy", help="Generate a default audit policy YAML")
    gp_p.add_argument("--output", "-o", default="audit_policy.yaml", help="Output file path")
    gp_p.add_argument("--preset", choices=AuditPolicy.preset_names(), default="balanced", help="Base preset")

    # -- snapshot ----------------------------------------------------------
    snap_p = subparsers.add_parser("snapshot", help="Record the host facts the checks read into a YAML snapshot")
    snap_p.add_argument("--output", "-o", required=True, help="Output file path")
    snap_p.add_argument("--source", metavar="PATH", help="Re-record from an existing snapshot instead of the live host")
    snap_p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # -- dispatch ----------------------------------------------------------
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return PrivescAuditConstants.EXIT_ERROR

    _configure_logging(args)

    dispatch = {
        "audit": audit_command,
        "list-checks": list_checks_command,
        "generate-policy": generate_policy_command,
        "snapshot": snapshot_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return PrivescAuditConstants.EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
