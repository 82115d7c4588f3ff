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
Configuration class for Privesc Audit.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .constants import PrivescAuditConstants

_PREFIX = PrivescAuditConstants.ENV_PREFIX


@dataclass
class Config:
    """
    Runtime configuration for Privesc Audit.

    Explicit values win; anything left at its default is filled from
    ``PRIVESC_AUDIT_*`` environment variables.
    """

    # Input
    snapshot_path: str | None = None
    policy: str | None = None

    # Execution
    timeout_seconds: float | None = None
    max_workers: int | None = None

    # Output Options
    output_format: str = PrivescAuditConstants.DEFAULT_OUTPUT_FORMAT

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""
        if self.snapshot_path is None:
            self.snapshot_path = os.getenv(f"{_PREFIX}SNAPSHOT")

        if self.policy is None:
            self.policy = os.getenv(f"{_PREFIX}POLICY")

        if self.output_format == PrivescAuditConstants.DEFAULT_OUTPUT_FORMAT:
            if env_format := os.getenv(f"{_PREFIX}FORMAT"):
                self.output_format = env_format.lower()

        if self.timeout_seconds is None:
            if env_timeout := os.getenv(f"{_PREFIX}TIMEOUT"):
                self.timeout_seconds = float(env_timeout)

        if self.max_workers is None:
            if env_workers := os.getenv(f"{_PREFIX}MAX_WORKERS"):
                self.max_workers = int(env_workers)

        if self.output_format not in PrivescAuditConstants.OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format '{self.output_format}'. "
                f"Valid values: {', '.join(PrivescAuditConstants.OUTPUT_FORMATS)}"
            )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> "Config":
        """
        Load configuration from .env file.

        Variables already set in the environment are not overridden.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if config_file.exists():
            load_dotenv(config_file, override=False)

        return cls.from_env()
