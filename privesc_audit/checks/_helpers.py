# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""Shared helper utilities for check modules."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from privesc_audit.core.defaults import ResolvedValue
from privesc_audit.core.models import Finding, Observation, Severity


def describe(table: Mapping[Any, str], value: Any, fallback: str = "Unknown value") -> str:
    """Look up the description for *value*; unknown values render as ``fallback (value)``."""
    if value in table:
        return table[value]
    return f"{fallback} ({value!r})"


def observe(
    resolved: ResolvedValue,
    description: str | Callable[[Any], str],
    *,
    compliant: bool | None = None,
) -> Observation:
    """Build an observation for a resolved registry value.

    *description* is either fixed text or a function of the resolved value, so
    the same value always yields the same text.
    """
    text = description(resolved.value) if callable(description) else description
    attributes: dict[str, Any] = {}
    if resolved.default_applied:
        attributes["default_applied"] = True
    return Observation(
        identity=resolved.spec.identity,
        resolved_value=resolved.value,
        description=text,
        compliant=compliant,
        attributes=attributes,
    )


def make_finding(
    check_id: str,
    title: str,
    base_severity: Severity,
    vulnerable: bool,
    observations: list[Observation],
) -> Finding:
    return Finding(
        check_id=check_id,
        title=title,
        severity=Severity.for_verdict(base_severity, vulnerable),
        vulnerable=vulnerable,
        observations=observations,
    )


def not_applicable(check_id: str, title: str, identity: str, value: Any, description: str) -> Finding:
    """Single informational observation for a check whose precondition failed."""
    return Finding(
        check_id=check_id,
        title=title,
        severity=Severity.NONE,
        vulnerable=False,
        observations=[Observation(identity=identity, resolved_value=value, description=description)],
    )
