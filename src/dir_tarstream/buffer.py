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
"""Fixed-size staging buffer for streaming file content."""

from __future__ import annotations

from .consts import BLOCK_SIZE, DEFAULT_CHUNK_SIZE
from .header import padded_size


class ChunkBuffer:
    """A reusable buffer that stages file content until it can be emitted.

    The buffer is allocated once and reused for all the files of a stream.
        Emitted chunks are copies, a chunk handed out will not be changed by
        later reads into the buffer.

    The capacity MUST be a multiple of BLOCK_SIZE, so that a full buffer flush
        is always block aligned, and zero padding is only needed at the
        final flush of each file.
    """

    def __init__(self, capacity: int = DEFAULT_CHUNK_SIZE) -> None:
        if capacity <= 0 or capacity % BLOCK_SIZE:
            raise ValueError(f"{capacity=} must be a positive multiple of {BLOCK_SIZE}")
        self._buf = bytearray(capacity)
        self._view = memoryview(self._buf)
        self._capacity = capacity
        self.position = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def writable(self) -> memoryview:
        """The free region of the buffer, for readinto call."""
        return self._view[self.position :]

    def advance(self, n: int) -> bytes | None:
        """Account <n> bytes written into the free region.

        Returns the whole buffer as a chunk if it is full, otherwise None.
        """
        if n < 0 or self.position + n > self._capacity:
            raise ValueError(f"invalid {n=} at {self.position=}")
        self.position += n
        if self.position == self._capacity:
            _chunk = bytes(self._view)
            self.position = 0
            return _chunk

    def flush_padded(self) -> bytes | None:
        """Flush the staged bytes, zero padded to the next block boundary.

        Returns None if nothing is staged.
        """
        if self.position == 0:
            return
        _end = padded_size(self.position)
        self._view[self.position : _end] = bytes(_end - self.position)
        _chunk = bytes(self._view[:_end])
        self.position = 0
        return _chunk

    def reset(self) -> None:
        self.position = 0
