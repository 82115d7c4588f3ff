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
Check registry: self-describing checks loaded from a YAML manifest.

The manifest (``privesc_audit/data/checks.yaml``) is the catalog of every
check: its identity, title, default base severity, remediation text, default
knobs and the function that implements it.

.. code-block:: yaml

    checks:
      ALWAYS_INSTALL_ELEVATED:
        title: MSI packages install with elevated privileges
        severity: HIGH
        entry_point: privesc_audit.checks.msi_checks:check_always_install_elevated
        knobs: {}

Entry points are imported lazily on first use, so listing the catalog never
imports check code.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..data import CHECKS_MANIFEST
from .exceptions import PolicyError
from .models import Severity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckDefinition:
    """Metadata for a single check."""

    id: str
    """Stable check identifier, e.g. ``POINT_AND_PRINT``."""

    title: str
    entry_point: str
    """``module:function`` implementing the check."""

    default_severity: Severity = Severity.HIGH
    """Base severity reported when the check is vulnerable and the caller supplies none."""

    category: str = ""
    description: str = ""
    remediation: str = ""

    knobs: dict[str, Any] = field(default_factory=dict)
    """Default keyword arguments passed to the check function."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class CheckRegistry:
    """Ordered catalog of check definitions.

    Iteration follows manifest order, which is also report order.
    """

    def __init__(self) -> None:
        self._checks: dict[str, CheckDefinition] = {}
        self._resolved: dict[str, Callable[..., Any]] = {}

    @classmethod
    def load(cls, manifest_path: str | Path | None = None) -> CheckRegistry:
        """Build a registry from a manifest file (default: the built-in one).

        Raises:
            FileNotFoundError: If the manifest does not exist.
            PolicyError: On malformed manifest data.
        """
        path = Path(manifest_path) if manifest_path else CHECKS_MANIFEST
        if not path.exists():
            raise FileNotFoundError(f"Check manifest not found: {path}")
        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise PolicyError(f"Invalid check manifest {path}: {exc}") from exc

        registry = cls()
        checks = raw.get("checks") or {}
        if not isinstance(checks, dict):
            raise PolicyError(f"'checks' in {path} must be a mapping")
        for check_id, data in checks.items():
            registry.register(_definition_from_dict(str(check_id), data))
        logger.debug("Loaded %d checks from %s", len(registry), path)
        return registry

    def register(self, definition: CheckDefinition) -> None:
        """Register a check. Re-registering an ID is an error."""
        if definition.id in self._checks:
            raise PolicyError(f"Duplicate check ID: {definition.id}")
        self._checks[definition.id] = definition

    def get(self, check_id: str) -> CheckDefinition | None:
        return self._checks.get(check_id)

    def all_checks(self) -> list[CheckDefinition]:
        return list(self._checks.values())

    def check_ids(self) -> list[str]:
        return list(self._checks)

    def get_default_knobs(self) -> dict[str, dict[str, Any]]:
        """Return a mapping of check ID → default knobs from the manifest."""
        return {check_id: dict(d.knobs) for check_id, d in self._checks.items()}

    def resolve(self, check_id: str) -> Callable[..., Any]:
        """Import and return the function implementing *check_id*.

        Raises:
            KeyError: If the check is unknown.
            PolicyError: If the entry point cannot be imported.
        """
        if check_id in self._resolved:
            return self._resolved[check_id]
        definition = self._checks[check_id]
        module_name, _, func_name = definition.entry_point.partition(":")
        try:
            module = importlib.import_module(module_name)
            func = getattr(module, func_name)
        except (ImportError, AttributeError) as exc:
            raise PolicyError(f"Cannot load entry point '{definition.entry_point}' for {check_id}: {exc}") from exc
        self._resolved[check_id] = func
        return func

    def __iter__(self) -> Iterator[CheckDefinition]:
        return iter(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, check_id: object) -> bool:
        return check_id in self._checks


def _definition_from_dict(check_id: str, data: Any) -> CheckDefinition:
    if not isinstance(data, dict):
        raise PolicyError(f"Check '{check_id}' must be a mapping")
    entry_point = data.get("entry_point", "")
    if ":" not in entry_point:
        raise PolicyError(f"Check '{check_id}' needs an entry_point of the form 'module:function'")
    try:
        severity = Severity.parse(data.get("severity", "HIGH"))
    except ValueError as exc:
        raise PolicyError(f"Check '{check_id}': {exc}") from exc
    knobs = data.get("knobs") or {}
    if not isinstance(knobs, dict):
        raise PolicyError(f"Knobs of check '{check_id}' must be a mapping")

    return CheckDefinition(
        id=check_id,
        title=data.get("title", check_id),
        entry_point=entry_point,
        default_severity=severity,
        category=data.get("category", ""),
        description=data.get("description", ""),
        remediation=data.get("remediation", ""),
        knobs=dict(knobs),
    )


_default_registry: CheckRegistry | None = None


def get_default_registry() -> CheckRegistry:
    """The built-in registry, loaded once."""
    global _default_registry
    if _default_registry is None:
        _default_registry = CheckRegistry.load()
    return _default_registry
