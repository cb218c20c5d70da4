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
"""Configuration of a tar stream."""

from __future__ import annotations

import codecs

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .consts import BLOCK_SIZE, DEFAULT_CHUNK_SIZE, DEFAULT_FILE_MODE


class TarStreamConfig(BaseModel):
    """Tunables of the TarStream.

    By default, the entries are written with the fixed 0o644 mode and the
        archiving time as mtime, the source file's own permission and timestamp
        are not carried over. Set `preserve_mtime` to use the source file's mtime.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    file_mode: int = Field(default=DEFAULT_FILE_MODE, ge=0, le=0o7777)
    preserve_mtime: bool = False
    name_encoding: str = "utf-8"

    @field_validator("chunk_size")
    @classmethod
    def _chunk_size_block_aligned(cls, v: int) -> int:
        # a full buffer flush must always be block aligned
        if v % BLOCK_SIZE:
            raise ValueError(f"{v=} is not a multiple of {BLOCK_SIZE}")
        return v

    @field_validator("name_encoding")
    @classmethod
    def _known_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding {v!r}") from None
        return v


DEFAULT_CONFIG = TarStreamConfig()
