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
Audit engine: runs every enabled check against one host and collects the
findings into an :class:`AuditReport`.

Checks are independent and read-only, so they are fanned out over a thread
pool.  The only synchronisation is the fan-in of finished futures.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Any

from .accessors.base import HostAccessor
from .audit_policy import AuditPolicy
from .check_registry import CheckDefinition, CheckRegistry, get_default_registry
from .exceptions import AuditError, PolicyError
from .models import AuditReport, Finding, Severity

logger = logging.getLogger(__name__)


class Auditor:
    """Runs the check catalog against a host accessor."""

    def __init__(
        self,
        accessor: HostAccessor,
        policy: AuditPolicy | None = None,
        registry: CheckRegistry | None = None,
    ):
        """
        Initialize the auditor.

        Args:
            accessor: Source of host configuration (live host or snapshot)
            policy: Audit policy. If None, the built-in default policy is used.
            registry: Check catalog. If None, the built-in manifest is used.
        """
        self.accessor = accessor
        self.policy = policy or AuditPolicy.default()
        self.registry = registry or get_default_registry()

    # ------------------------------------------------------------------
    # Configuration resolution
    # ------------------------------------------------------------------

    def enabled_checks(self) -> list[CheckDefinition]:
        return [d for d in self.registry if self.policy.is_enabled(d.id)]

    def resolve_severity(
        self,
        definition: CheckDefinition,
        base_severities: dict[str, Severity | str] | None = None,
    ) -> Severity:
        """Base severity for a check: explicit argument, then policy override, then manifest default."""
        if base_severities and definition.id in base_severities:
            return Severity.parse(base_severities[definition.id])
        override = self.policy.get_severity_override(definition.id)
        if override is not None:
            return override
        return definition.default_severity

    # ------------------------------------------------------------------
    # Running checks
    # ------------------------------------------------------------------

    def run_check(self, check_id: str, base_severity: Severity | str | None = None) -> Finding:
        """Run a single check synchronously, in the calling thread.

        Raises:
            PolicyError: If *check_id* is not in the catalog or one of its knobs is invalid.
        """
        definition = self.registry.get(check_id)
        if definition is None:
            raise PolicyError(f"Unknown check: {check_id}")
        severities = {check_id: base_severity} if base_severity is not None else None
        knobs = self.policy.knobs_for(definition.id, definition.knobs)
        return self._execute(definition, self.resolve_severity(definition, severities), knobs)

    def _execute(self, definition: CheckDefinition, base_severity: Severity, knobs: dict[str, Any]) -> Finding:
        func = self.registry.resolve(definition.id)
        logger.debug("Running %s (base severity %s)", definition.id, base_severity.value)
        return func(self.accessor, base_severity, **knobs)

    def audit(self, base_severities: dict[str, Severity | str] | None = None) -> AuditReport:
        """
        Run every enabled check and return the full report.

        Failed or timed-out checks are recorded in ``report.failures``; they
        never abort the other checks.

        Args:
            base_severities: Optional check ID -> base severity map that takes
                precedence over the policy and the manifest.
        """
        started_at = datetime.now()
        start_time = time.time()
        host = self.accessor.host_name()
        definitions = self.enabled_checks()
        execution = self.policy.execution

        for check_id in base_severities or {}:
            if check_id not in self.registry:
                logger.warning("Ignoring base severity for unknown check %s", check_id)

        logger.info(
            "Auditing %s with %d checks (policy: %s v%s, preset %s)",
            host,
            len(definitions),
            self.policy.policy_name,
            self.policy.policy_version,
            self.policy.preset_base,
        )

        results: dict[str, Finding] = {}
        failures: dict[str, str] = {}
        futures: dict[Future, CheckDefinition] = {}

        executor = ThreadPoolExecutor(max_workers=execution.max_workers, thread_name_prefix="privesc-audit")
        try:
            for definition in definitions:
                try:
                    severity = self.resolve_severity(definition, base_severities)
                    knobs = self.policy.knobs_for(definition.id, definition.knobs)
                except (ValueError, PolicyError) as e:
                    failures[definition.id] = str(e)
                    continue
                futures[executor.submit(self._execute, definition, severity, knobs)] = definition

            done, not_done = wait(futures, timeout=execution.timeout_seconds)
            for future in done:
                definition = futures[future]
                try:
                    results[definition.id] = future.result()
                except Exception as e:
                    logger.warning("Check %s failed: %s", definition.id, e)
                    failures[definition.id] = f"{type(e).__name__}: {e}"
            for future in not_done:
                definition = futures[future]
                logger.warning("Check %s timed out after %ss", definition.id, execution.timeout_seconds)
                failures[definition.id] = f"timed out after {execution.timeout_seconds}s"
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        # Report order is manifest order, not completion order
        findings = {d.id: results[d.id] for d in definitions if d.id in results}
        ordered_failures = {d.id: failures[d.id] for d in definitions if d.id in failures}

        report = AuditReport(
            host=host,
            findings=findings,
            failures=ordered_failures,
            started_at=started_at,
            duration_seconds=time.time() - start_time,
            policy_name=self.policy.policy_name,
        )
        logger.info(
            "Audit of %s finished: %d vulnerable, %d failed",
            host,
            len(report.vulnerable_findings()),
            len(report.failures),
        )
        return report

    def run_all(self, base_severities: dict[str, Severity | str] | None = None) -> dict[str, Finding]:
        """
        Run every enabled check and return findings keyed by check ID.

        Raises:
            AuditError: If any check failed or timed out.
        """
        report = self.audit(base_severities)
        if report.failures:
            raise AuditError(
                f"{len(report.failures)} check(s) did not complete: {', '.join(report.failures)}",
                failures=report.failures,
            )
        return report.findings


def audit_host(
    accessor: HostAccessor,
    policy: AuditPolicy | None = None,
    base_severities: dict[str, Any] | None = None,
) -> AuditReport:
    """
    Convenience function to audit a host.

    Args:
        accessor: Host configuration source
        policy: Optional audit policy
        base_severities: Optional per-check base severities

    Returns:
        AuditReport
    """
    return Auditor(accessor, policy=policy).audit(base_severities)
