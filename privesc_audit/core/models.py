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
Data models for configuration reads and audit findings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """Severity levels for audit findings, ordered NONE < LOW < ... < CRITICAL."""

    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    # str comparison would order these alphabetically, so compare by rank.
    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Parse a severity name in any case (``"high"``, ``"HIGH"``, ``Severity.HIGH``)."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity '{value}'. Valid values: {valid}") from None

    @classmethod
    def for_verdict(cls, base_severity: Severity, vulnerable: bool) -> Severity:
        """A check reports the caller's base severity when vulnerable, NONE otherwise."""
        return base_severity if vulnerable else cls.NONE


_SEVERITY_RANK = {
    Severity.NONE: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class ValueType(str, Enum):
    """Semantic type of a configuration value."""

    INTEGER = "integer"
    STRING = "string"
    LIST = "list"


@dataclass(frozen=True)
class ConfigValue:
    """Result of a single configuration read.

    ``present=False`` means the value does not exist, which is different from
    a value that exists and is ``0`` or an empty string.
    """

    present: bool
    raw: Any = None
    value_type: ValueType | None = None

    @classmethod
    def absent(cls) -> ConfigValue:
        return cls(present=False)


@dataclass
class Observation:
    """One reported configuration fact inside a finding."""

    identity: str  # Registry path + value name, or an abstract label
    resolved_value: Any  # Raw value, or the default substituted for an absent one
    description: str
    compliant: bool | None = None  # Only set by checks that judge each item on its own
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "identity": self.identity,
            "value": self.resolved_value,
            "description": self.description,
        }
        if self.compliant is not None:
            data["compliant"] = self.compliant
        if self.attributes:
            data["attributes"] = dict(sorted(self.attributes.items()))
        return data


@dataclass
class Finding:
    """The outcome of one check: its observations plus an overall severity.

    The severity is the result of the check's own decision procedure, which
    can disagree with the per-observation ``compliant`` flags.
    """

    check_id: str
    title: str
    severity: Severity
    vulnerable: bool
    observations: list[Observation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to dictionary. Output is deterministic for a given input."""
        return {
            "check_id": self.check_id,
            "title": self.title,
            "vulnerable": self.vulnerable,
            "severity": self.severity.value,
            "observations": [o.to_dict() for o in self.observations],
        }


@dataclass
class AuditReport:
    """Aggregated result of one audit run against one host."""

    host: str
    findings: dict[str, Finding] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    policy_name: str = "default"

    @property
    def is_clean(self) -> bool:
        """True when no check reported a vulnerability and none failed."""
        return not self.failures and not any(f.vulnerable for f in self.findings.values())

    @property
    def max_severity(self) -> Severity:
        """Get the highest severity reported by any finding."""
        return max((f.severity for f in self.findings.values()), default=Severity.NONE)

    def vulnerable_findings(self) -> list[Finding]:
        return [f for f in self.findings.values() if f.vulnerable]

    def get_findings_by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self.findings.values() if f.severity == severity]

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        by_severity = {
            severity.value.lower(): len(self.get_findings_by_severity(severity))
            for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)
        }
        return {
            "summary": {
                "host": self.host,
                "policy": self.policy_name,
                "checks_run": len(self.findings),
                "checks_failed": len(self.failures),
                "vulnerable": len(self.vulnerable_findings()),
                "max_severity": self.max_severity.value,
                "findings_by_severity": by_severity,
                "timestamp": self.started_at.isoformat(),
                "duration_seconds": round(self.duration_seconds, 3),
            },
            "findings": {check_id: finding.to_dict() for check_id, finding in self.findings.items()},
            "failures": dict(self.failures),
        }
