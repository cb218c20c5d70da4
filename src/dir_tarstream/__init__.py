# Copyright 2025 TIER IV, INC. All rights reserved.
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
"""Lazily stream the regular files of a directory as a GNU tar archive."""

from .config import TarStreamConfig
from .enumerator import FileEntry, FileEnumerator, list_regular_files
from .errors import (
    ClockError,
    EncodingError,
    EnumerationError,
    MetadataError,
    OpenError,
    ReadError,
    TarStreamError,
)
from .header import build_header, calc_checksum, padded_size
from .stream import PollResult, TarStream, tar_dir, tar_dir_async

version = "0.1.0"

__all__ = [
    "ClockError",
    "EncodingError",
    "EnumerationError",
    "FileEntry",
    "FileEnumerator",
    "MetadataError",
    "OpenError",
    "PollResult",
    "ReadError",
    "TarStream",
    "TarStreamConfig",
    "TarStreamError",
    "build_header",
    "calc_checksum",
    "list_regular_files",
    "padded_size",
    "tar_dir",
    "tar_dir_async",
    "version",
]
