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
Default substitution for absent configuration values.

Windows applies a built-in behaviour when a policy value is not set, and that
behaviour is what a check must judge.  Each check module therefore declares
its values as a table of :class:`ValueSpec` records, and
:func:`resolve_value` is the single place where an absent value is replaced
by its documented default::

    ALWAYS_INSTALL_ELEVATED_HKLM = ValueSpec(
        path=r"HKLM\\SOFTWARE\\Policies\\Microsoft\\Windows\\Installer",
        name="AlwaysInstallElevated",
        value_type=ValueType.INTEGER,
        default=0,
    )

    resolved = resolve_value(accessor, ALWAYS_INSTALL_ELEVATED_HKLM)
    if resolved.value >= 1:
        ...

Substitution happens once, immediately after the read, before any comparison
or description lookup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import ValueParseError
from .models import ConfigValue, ValueType

if TYPE_CHECKING:
    from .accessors.base import HostAccessor

_LIST_SEPARATORS = re.compile(r"[;,]")


@dataclass(frozen=True)
class ValueSpec:
    """Where a value lives, what type it has, and what it means when absent."""

    path: str
    name: str
    value_type: ValueType
    default: Any

    @property
    def identity(self) -> str:
        """Full registry identity, e.g. ``HKLM\\...\\Installer\\AlwaysInstallElevated``."""
        return f"{self.path}\\{self.name}"


@dataclass(frozen=True)
class ResolvedValue:
    """A configuration read after default substitution."""

    spec: ValueSpec
    source: ConfigValue
    value: Any

    @property
    def default_applied(self) -> bool:
        return not self.source.present


def parse_list(raw: Any) -> list[str]:
    """Split a delimited list value into trimmed, non-empty items.

    Accepts a ``REG_MULTI_SZ`` style list or a string joined with ``;`` or ``,``.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        items = _LIST_SEPARATORS.split(str(raw))
    return [item.strip() for item in items if item and item.strip()]


def coerce_value(raw: Any, value_type: ValueType, identity: str = "") -> Any:
    """Convert a present raw value to *value_type*.

    Raises:
        ValueParseError: If the raw value cannot represent *value_type*.
    """
    if value_type is ValueType.INTEGER:
        if isinstance(raw, bool):
            return int(raw)
        if isinstance(raw, int):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            try:
                if text.lower().startswith("0x"):
                    return int(text, 16)
                return int(text)
            except ValueError:
                pass
        raise ValueParseError(f"Expected an integer for {identity or 'value'}, got {raw!r}")

    if value_type is ValueType.STRING:
        if isinstance(raw, (list, tuple)):
            return ";".join(str(item) for item in raw)
        if isinstance(raw, bytes):
            raise ValueParseError(f"Expected a string for {identity or 'value'}, got binary data")
        return str(raw)

    if value_type is ValueType.LIST:
        if isinstance(raw, bytes):
            raise ValueParseError(f"Expected a list for {identity or 'value'}, got binary data")
        return parse_list(raw)

    raise ValueParseError(f"Unsupported value type {value_type!r}")


def apply_default(spec: ValueSpec, value: ConfigValue) -> ResolvedValue:
    """Substitute the declared default for an absent value, or coerce a present one."""
    if not value.present:
        default = list(spec.default) if isinstance(spec.default, (list, tuple)) else spec.default
        return ResolvedValue(spec=spec, source=value, value=default)
    return ResolvedValue(spec=spec, source=value, value=coerce_value(value.raw, spec.value_type, spec.identity))


def resolve_value(accessor: HostAccessor, spec: ValueSpec) -> ResolvedValue:
    """Read *spec* once through *accessor* and apply its default."""
    return apply_default(spec, accessor.read_value(spec.path, spec.name))
