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
"""List the files that go into the tar stream.

The stream core only depends on the FileEnumerator protocol, the default
    implementation here lists the top-level regular files of one directory.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from typing_extensions import Protocol, Self

from .errors import EnumerationError, StrOrPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A file to be archived, <name> is the member name in the tar archive."""

    path: Path
    name: str

    @classmethod
    def from_path(cls, _path: StrOrPath) -> Self:
        _path = Path(_path)
        return cls(path=_path, name=_path.name)


class FileEnumerator(Protocol):
    def __call__(self, dir_path: StrOrPath) -> Iterable[FileEntry]: ...


def list_regular_files(dir_path: StrOrPath) -> list[FileEntry]:
    """List the regular files directly under <dir_path>, sorted by name.

    Symlinks(even the ones pointing to regular files), sub directories and
        special files are silently skipped.

    Raises:
        EnumerationError if the directory cannot be listed or any entry's
            type cannot be determined.
    """
    _res: list[FileEntry] = []
    try:
        with os.scandir(dir_path) as it:
            for _entry in it:
                if _entry.is_file(follow_symlinks=False):
                    _res.append(FileEntry(path=Path(_entry.path), name=_entry.name))
    except OSError as e:
        raise EnumerationError(
            f"failed to list regular files under {dir_path}: {e!r}", dir_path
        ) from e

    _res.sort(key=lambda _entry: _entry.name)
    logger.debug(f"found {len(_res)} regular files under {dir_path}")
    return _res
