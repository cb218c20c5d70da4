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
"""Build the 512-byte GNU tar header block of a regular file entry."""

from __future__ import annotations

import time
from tarfile import GNU_FORMAT, REGTYPE, TarInfo

from .consts import BLOCK_SIZE, DEFAULT_FILE_MODE, NAME_FIELD_SIZE
from .errors import ClockError, EncodingError

CHKSUM_OFFSET, CHKSUM_LEN = 148, 8


def padded_size(size: int) -> int:
    """Round <size> up to the next multiple of BLOCK_SIZE."""
    return -(-size // BLOCK_SIZE) * BLOCK_SIZE


def calc_checksum(block: bytes) -> int:
    """The standard header checksum.

    Unsigned sum of all the header bytes, with the checksum field itself
        counted as 8 spaces.
    """
    return (
        sum(block[:CHKSUM_OFFSET])
        + ord(" ") * CHKSUM_LEN
        + sum(block[CHKSUM_OFFSET + CHKSUM_LEN : BLOCK_SIZE])
    )


def archiving_time() -> int:
    """Current wall-clock time as unix seconds."""
    try:
        _now = int(time.time())
    except (OSError, OverflowError, ValueError) as e:
        raise ClockError(f"failed to read the wall clock: {e!r}") from e
    if _now < 0:
        raise ClockError(f"wall clock is set before the unix epoch: {_now=}")
    return _now


def build_header(
    name: str,
    size: int,
    *,
    mtime: int | None = None,
    mode: int = DEFAULT_FILE_MODE,
    encoding: str = "utf-8",
) -> bytes:
    """Build the header block for a regular file <name> with <size> bytes of content.

    If <mtime> is not specified, the archiving time is used. Names decoded from
        non-<encoding> file names(surrogate escaped, as os.fsdecode does) are
        stored with their original bytes.

    Raises:
        EncodingError if <name> cannot be stored in the 100 bytes name field.
        ClockError if <mtime> is not specified and the wall clock is unusable.
    """
    try:
        _encoded_name = name.encode(encoding, "surrogateescape")
    except UnicodeError as e:
        raise EncodingError(f"{name=} cannot be encoded with {encoding}: {e}") from e

    if not _encoded_name:
        raise EncodingError("empty name cannot be stored in tar header")
    if b"\0" in _encoded_name:
        raise EncodingError(f"{name=} contains NUL")
    if len(_encoded_name) > NAME_FIELD_SIZE:
        # we don't emit the GNU longname extension entry, the header must
        #   stand alone in a single block.
        raise EncodingError(
            f"{name=} is {len(_encoded_name)} bytes, exceeds {NAME_FIELD_SIZE} bytes"
        )
    if size < 0:
        raise ValueError(f"invalid {size=}")

    _tarinfo = TarInfo(name)
    _tarinfo.type = REGTYPE
    _tarinfo.size = size
    _tarinfo.mode = mode
    _tarinfo.mtime = archiving_time() if mtime is None else mtime
    _tarinfo.uid = _tarinfo.gid = 0
    _tarinfo.uname = _tarinfo.gname = ""

    try:
        _header = _tarinfo.tobuf(
            format=GNU_FORMAT, encoding=encoding, errors="surrogateescape"
        )
    except ValueError as e:
        # UnicodeError is a subclass of ValueError
        raise EncodingError(f"failed to build header for {name=}: {e}") from e

    assert len(_header) == BLOCK_SIZE, f"unexpected header size: {len(_header)}"
    return _header
