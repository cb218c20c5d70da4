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
"""Tests for the content staging buffer."""

from __future__ import annotations

import pytest

from dir_tarstream.buffer import ChunkBuffer


def _fill(buffer: ChunkBuffer, data: bytes) -> bytes | None:
    _view = buffer.writable()
    _view[: len(data)] = data
    return buffer.advance(len(data))


class TestChunkBuffer:
    @pytest.mark.parametrize("capacity", (0, -512, 1000, 513))
    def test_invalid_capacity(self, capacity: int):
        with pytest.raises(ValueError):
            ChunkBuffer(capacity)

    def test_partial_fill_emits_nothing(self):
        buffer = ChunkBuffer(1024)
        assert _fill(buffer, b"a" * 100) is None
        assert buffer.position == 100
        assert len(buffer.writable()) == 924

    def test_full_fill_emits_whole_buffer(self):
        buffer = ChunkBuffer(1024)
        assert _fill(buffer, b"a" * 1000) is None
        chunk = _fill(buffer, b"b" * 24)

        assert chunk == b"a" * 1000 + b"b" * 24
        assert buffer.position == 0

    def test_flush_padded(self):
        """Test the final flush is zero padded to the block boundary."""
        buffer = ChunkBuffer(2048)
        _fill(buffer, b"x" * 513)
        chunk = buffer.flush_padded()

        assert chunk == b"x" * 513 + bytes(511)
        assert buffer.position == 0

    def test_flush_padded_stale_bytes_are_zeroed(self):
        buffer = ChunkBuffer(1024)
        _fill(buffer, b"x" * 1000)
        buffer.reset()
        _fill(buffer, b"y")

        assert buffer.flush_padded() == b"y" + bytes(511)

    def test_flush_empty(self):
        assert ChunkBuffer(512).flush_padded() is None

    def test_emitted_chunk_not_aliased(self):
        """Test emitted chunks are not changed by later reads into the buffer."""
        buffer = ChunkBuffer(512)
        chunk = _fill(buffer, b"1" * 512)
        _fill(buffer, b"2" * 512)
        assert chunk == b"1" * 512

    def test_advance_overflow(self):
        buffer = ChunkBuffer(512)
        _fill(buffer, b"a" * 500)
        with pytest.raises(ValueError):
            buffer.advance(13)
