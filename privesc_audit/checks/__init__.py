# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""
Check procedures for local privilege escalation conditions.

Each module groups the checks for one concern.  Every public function follows
the pattern::

    def check_<aspect>(
        accessor: HostAccessor,
        base_severity: Severity,
        *,
        <knobs>,
    ) -> Finding:
        ...

A check only reads through the accessor, never mutates shared state, and
returns exactly one :class:`~privesc_audit.core.models.Finding`.  The caller
(:class:`~privesc_audit.core.auditor.Auditor`) decides which checks run, with
which base severity and knobs, and collects the results.

Values a check reads are declared in a module-level table of
:class:`~privesc_audit.core.defaults.ValueSpec` records so that their defaults
can be tested independently of the decision logic.
"""
