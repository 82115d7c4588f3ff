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
Constants for Privesc Audit.
"""

from pathlib import Path

try:
    from .._version import __version__ as PACKAGE_VERSION
except Exception:  # pragma: no cover
    PACKAGE_VERSION = "0.0.0-dev"


class PrivescAuditConstants:
    """Constants used throughout the auditor."""

    VERSION = PACKAGE_VERSION

    # Project paths
    PACKAGE_ROOT = Path(__file__).parent.parent

    # Resource paths
    DATA_DIR = PACKAGE_ROOT / "data"
    CHECKS_MANIFEST = DATA_DIR / "checks.yaml"

    # Default values
    DEFAULT_MAX_WORKERS = 4
    DEFAULT_TIMEOUT_SECONDS = 120
    DEFAULT_OUTPUT_FORMAT = "summary"

    # Environment variable prefix
    ENV_PREFIX = "PRIVESC_AUDIT_"

    # Output formats understood by the CLI
    OUTPUT_FORMATS = ("summary", "json", "markdown", "table")

    # Exit codes
    EXIT_OK = 0
    EXIT_FINDINGS = 1
    EXIT_ERROR = 1
    EXIT_CHECK_FAILED = 2

    @classmethod
    def get_data_path(cls) -> Path:
        """Get path to data directory."""
        return cls.DATA_DIR

    @classmethod
    def get_checks_manifest_path(cls) -> Path:
        """Get path to the built-in check manifest."""
        return cls.CHECKS_MANIFEST
