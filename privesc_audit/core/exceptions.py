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

"""Privesc Audit exceptions.

All exceptions inherit from PrivescAuditError for easy catching.

Absent configuration values and failed soft probes (an unreadable folder, an
ACL that cannot be walked) are *not* errors: checks substitute defaults or
drop the item.  The exceptions below are reserved for conditions that keep a
check from producing a meaningful verdict.

Example:
    >>> from privesc_audit.core.auditor import Auditor
    >>> from privesc_audit.core.exceptions import AuditError
    >>>
    >>> try:
    ...     findings = Auditor(accessor).run_all()
    ... except AuditError as e:
    ...     print(f"Audit incomplete: {e.failures}")
"""


class PrivescAuditError(Exception):
    """Base exception for all Privesc Audit errors."""

    pass


class AccessorError(PrivescAuditError):
    """Raised when the underlying configuration store cannot be queried.

    This indicates:
    - Registry access denied or the hive is unavailable
    - Platform bindings missing (live accessor on a non-Windows host)
    """

    pass


class ValueParseError(PrivescAuditError):
    """Raised when a present configuration value has the wrong type.

    A value that exists but cannot be interpreted is never silently replaced
    by its default.
    """

    pass


class SnapshotError(PrivescAuditError):
    """Raised when a configuration snapshot file is malformed."""

    pass


class PolicyError(PrivescAuditError):
    """Raised when an audit policy or check manifest is invalid."""

    pass


class AuditError(PrivescAuditError):
    """Raised when one or more checks failed or timed out during an audit run.

    Attributes:
        failures: Mapping of check ID to a short failure reason.
    """

    def __init__(self, message: str, failures: dict[str, str] | None = None):
        super().__init__(message)
        self.failures = dict(failures or {})
