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
Audit policy: per-organisation severities, disabled checks, check knobs and
execution limits.

Usage
-----
    from privesc_audit.core.audit_policy import AuditPolicy

    # Load built-in defaults
    policy = AuditPolicy.default()

    # Load an org policy (merges on top of defaults)
    policy = AuditPolicy.from_yaml("my_policy.yaml")

    # Dump the current (including default) policy for editing
    policy.to_yaml("generated_policy.yaml")

The auditor receives the policy at construction time.  A base severity passed
explicitly to :meth:`Auditor.run_all` still wins over the policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import PrivescAuditConstants
from .exceptions import PolicyError
from .models import Severity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Where the built-in default policy lives (ships with the package)
# ---------------------------------------------------------------------------
_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_DEFAULT_POLICY_PATH = _DATA_DIR / "default_policy.yaml"

# Named preset policies
_PRESET_POLICIES: dict[str, Path] = {
    "strict": _DATA_DIR / "strict_policy.yaml",
    "balanced": _DEFAULT_POLICY_PATH,
    "permissive": _DATA_DIR / "permissive_policy.yaml",
}


# ---------------------------------------------------------------------------
# Policy sections
# ---------------------------------------------------------------------------


@dataclass
class ExecutionPolicy:
    """Limits for one audit run."""

    max_workers: int = PrivescAuditConstants.DEFAULT_MAX_WORKERS
    # Whole-run deadline; checks still running at the deadline are failures
    timeout_seconds: float = float(PrivescAuditConstants.DEFAULT_TIMEOUT_SECONDS)


@dataclass
class SeverityOverride:
    """A per-check base severity override."""

    check_id: str
    severity: Severity
    reason: str = ""


# ---------------------------------------------------------------------------
# Knob validation
# ---------------------------------------------------------------------------


def _coerce_knob(check_id: str, name: str, value: Any, default: Any) -> Any:
    """Check *value* against the type of the knob's declared *default*."""
    if default is None:
        return value
    if isinstance(default, (list, tuple)):
        if isinstance(value, str):
            logger.warning("Knob '%s' for check %s expects a list; using [%r]", name, check_id, value)
            return [value]
        if not isinstance(value, (list, tuple)):
            raise PolicyError(f"Knob '{name}' for check {check_id} must be a list, got {value!r}")
        return list(value)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise PolicyError(f"Knob '{name}' for check {check_id} must be true or false, got {value!r}")
        return value
    if not isinstance(value, type(default)):
        raise PolicyError(
            f"Knob '{name}' for check {check_id} must be {type(default).__name__}, got {value!r}"
        )
    return value


# ---------------------------------------------------------------------------
# The top-level policy object
# ---------------------------------------------------------------------------


@dataclass
class AuditPolicy:
    """Organisational audit policy."""

    policy_name: str = "default"
    policy_version: str = "1.0"
    preset_base: str = "balanced"

    execution: ExecutionPolicy = field(default_factory=ExecutionPolicy)
    severity_overrides: list[SeverityOverride] = field(default_factory=list)
    disabled_checks: set[str] = field(default_factory=set)
    # check ID -> knob overrides merged over the manifest defaults
    check_knobs: dict[str, dict[str, Any]] = field(default_factory=dict)

    # -----------------------------------------------------------------------
    # Convenience helpers
    # -----------------------------------------------------------------------

    def get_severity_override(self, check_id: str) -> Severity | None:
        """Return the overridden base severity for *check_id*, or ``None``."""
        for ovr in self.severity_overrides:
            if ovr.check_id == check_id:
                return ovr.severity
        return None

    def is_enabled(self, check_id: str) -> bool:
        return check_id not in self.disabled_checks

    def knobs_for(self, check_id: str, defaults: dict[str, Any] | None = None) -> dict[str, Any]:
        """Merge this policy's knob overrides for *check_id* over *defaults*.

        Knobs the check does not declare are dropped with a warning.  A value
        must match the type of the declared default; a bare string given for a
        list knob is taken as a one-element list.

        Raises:
            PolicyError: If a knob value has the wrong type.
        """
        knobs = dict(defaults or {})
        for name, value in self.check_knobs.get(check_id, {}).items():
            if defaults is not None and name not in defaults:
                logger.warning("Ignoring unknown knob '%s' for check %s", name, check_id)
                continue
            knobs[name] = _coerce_knob(check_id, name, value, (defaults or {}).get(name))
        return knobs

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> AuditPolicy:
        """Load the built-in default policy that ships with the package."""
        return cls.from_yaml(_DEFAULT_POLICY_PATH)

    @classmethod
    def from_preset(cls, name: str) -> AuditPolicy:
        """Load a named preset policy: ``strict``, ``balanced``, or ``permissive``."""
        name_lower = name.lower()
        if name_lower not in _PRESET_POLICIES:
            raise ValueError(f"Unknown preset '{name}'. Available: {', '.join(sorted(_PRESET_POLICIES))}")
        return cls.from_yaml(_PRESET_POLICIES[name_lower])

    @classmethod
    def preset_names(cls) -> list[str]:
        """Return available preset policy names."""
        return sorted(_PRESET_POLICIES.keys())

    @classmethod
    def load(cls, name_or_path: str | Path | None) -> AuditPolicy:
        """Resolve a preset name or a policy file path; ``None`` means the default."""
        if name_or_path is None:
            return cls.default()
        if str(name_or_path).lower() in _PRESET_POLICIES:
            return cls.from_preset(str(name_or_path))
        return cls.from_yaml(name_or_path)

    @classmethod
    def from_yaml(cls, path: str | Path) -> AuditPolicy:
        """
        Load a policy from a YAML file.

        The YAML is first merged on top of the built-in defaults so that
        users only need to specify the sections they want to override.

        Raises:
            FileNotFoundError: If *path* does not exist.
            PolicyError: If the file is not valid YAML or holds invalid values.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise PolicyError(f"Invalid policy YAML in {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise PolicyError(f"Policy file {path} must contain a mapping")

        # If this IS the default file, just parse directly
        if path.resolve() == _DEFAULT_POLICY_PATH.resolve():
            return cls._from_dict(raw)
        merged = cls._deep_merge(cls._load_default_raw(), raw)
        return cls._from_dict(merged)

    def to_yaml(self, path: str | Path) -> None:
        """Dump the full policy to a YAML file for editing."""
        data = self._to_dict()
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("# Privesc Audit - Audit Policy\n")
            fh.write("# Customise this file to match your organisation's risk appetite.\n")
            fh.write("# Only include sections you want to override; omitted sections\n")
            fh.write("# will use the built-in defaults.\n\n")
            yaml.dump(data, fh, default_flow_style=False, sort_keys=False, width=120)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @classmethod
    def _load_default_raw(cls) -> dict[str, Any]:
        if _DEFAULT_POLICY_PATH.exists():
            with open(_DEFAULT_POLICY_PATH, encoding="utf-8") as fh:
                return yaml.safe_load(fh) or {}
        return {}

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*.

        Lists in the override replace the base list.
        """
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = AuditPolicy._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> AuditPolicy:
        ex = d.get("execution") or {}
        try:
            execution = ExecutionPolicy(
                max_workers=int(ex.get("max_workers", PrivescAuditConstants.DEFAULT_MAX_WORKERS)),
                timeout_seconds=float(ex.get("timeout_seconds", PrivescAuditConstants.DEFAULT_TIMEOUT_SECONDS)),
            )
        except (TypeError, ValueError) as exc:
            raise PolicyError(f"Invalid execution settings: {exc}") from exc
        if execution.max_workers < 1:
            raise PolicyError("execution.max_workers must be at least 1")
        if execution.timeout_seconds <= 0:
            raise PolicyError("execution.timeout_seconds must be positive")

        severity_overrides = []
        for entry in d.get("severity_overrides") or []:
            try:
                severity_overrides.append(
                    SeverityOverride(
                        check_id=str(entry["check_id"]),
                        severity=Severity.parse(entry["severity"]),
                        reason=entry.get("reason", ""),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise PolicyError(f"Invalid severity override {entry!r}: {exc}") from exc

        check_knobs = d.get("check_knobs") or {}
        if not isinstance(check_knobs, dict) or not all(isinstance(v, dict) for v in check_knobs.values()):
            raise PolicyError("check_knobs must map check IDs to knob mappings")

        disabled_checks = d.get("disabled_checks") or []
        if not isinstance(disabled_checks, list):
            raise PolicyError(f"disabled_checks must be a list of check IDs, got {disabled_checks!r}")

        return cls(
            policy_name=d.get("policy_name", "default"),
            policy_version=str(d.get("policy_version", "1.0")),
            preset_base=d.get("preset_base", "balanced"),
            execution=execution,
            severity_overrides=severity_overrides,
            disabled_checks={str(c) for c in disabled_checks},
            check_knobs={str(k): dict(v) for k, v in check_knobs.items()},
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "policy_version": self.policy_version,
            "preset_base": self.preset_base,
            "execution": {
                "max_workers": self.execution.max_workers,
                "timeout_seconds": self.execution.timeout_seconds,
            },
            "severity_overrides": [
                {"check_id": o.check_id, "severity": o.severity.value, "reason": o.reason}
                for o in self.severity_overrides
            ],
            "disabled_checks": sorted(self.disabled_checks),
            "check_knobs": {k: dict(v) for k, v in self.check_knobs.items()},
        }
