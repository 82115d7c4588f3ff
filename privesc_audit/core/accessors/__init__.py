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
Host accessors: the configuration sources checks read from.
"""

from .base import FolderInfo, HostAccessor, ServiceInfo, WritableEntry
from .snapshot import RecordingAccessor, SnapshotAccessor, write_snapshot
from .windows import WindowsAccessor

__all__ = [
    "FolderInfo",
    "HostAccessor",
    "RecordingAccessor",
    "ServiceInfo",
    "SnapshotAccessor",
    "WindowsAccessor",
    "WritableEntry",
    "write_snapshot",
]
