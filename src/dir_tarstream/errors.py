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
"""Errors raised while building the tar stream.

Any of these errors ends the stream it is raised from. Chunks emitted before
    the error are not retracted, but no chunk will follow it.
"""

from __future__ import annotations

import os
from typing import Union

StrOrPath = Union[str, os.PathLike]


class TarStreamError(Exception):
    """Base class of all dir_tarstream errors."""


class _PathError(TarStreamError):
    def __init__(self, msg: str, path: StrOrPath | None = None) -> None:
        super().__init__(msg)
        self.path = path


class EnumerationError(_PathError):
    """The directory cannot be listed, or an entry's type cannot be determined."""


class OpenError(_PathError):
    """A file cannot be opened."""


class MetadataError(_PathError):
    """The size(or other metadata) of an opened file cannot be determined."""


class ReadError(_PathError):
    """Content of an opened file cannot be read."""


class EncodingError(TarStreamError):
    """A file name cannot be represented in the header's name field."""


class ClockError(TarStreamError):
    """The current wall-clock time cannot be used as the entry mtime."""
