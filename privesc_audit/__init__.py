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
Privesc Audit - Windows local privilege escalation configuration auditor.
"""

from ._version import __version__

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m privesc_audit.cli.cli`` from importing every check
    module (and, on Windows, the registry bindings) before argument parsing.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "PrivescAuditConstants": (".config.constants", "PrivescAuditConstants"),
        "AuditPolicy": (".core.audit_policy", "AuditPolicy"),
        "Auditor": (".core.auditor", "Auditor"),
        "audit_host": (".core.auditor", "audit_host"),
        "CheckRegistry": (".core.check_registry", "CheckRegistry"),
        "AuditReport": (".core.models", "AuditReport"),
        "ConfigValue": (".core.models", "ConfigValue"),
        "Finding": (".core.models", "Finding"),
        "Observation": (".core.models", "Observation"),
        "Severity": (".core.models", "Severity"),
        "HostAccessor": (".core.accessors.base", "HostAccessor"),
        "SnapshotAccessor": (".core.accessors.snapshot", "SnapshotAccessor"),
        "WindowsAccessor": (".core.accessors.windows", "WindowsAccessor"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Auditor",
    "audit_host",
    "AuditPolicy",
    "AuditReport",
    "CheckRegistry",
    "ConfigValue",
    "Finding",
    "Observation",
    "Severity",
    "HostAccessor",
    "SnapshotAccessor",
    "WindowsAccessor",
    "Config",
    "PrivescAuditConstants",
]
