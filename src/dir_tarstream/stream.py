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
"""Lazily stream the regular files of a directory as a GNU tar archive.

The TarStream is a pull-based state machine. Each pull advances it by at most
    one unit of work: it either emits a chunk, reports that the current phase
    is waiting for an I/O operation, or reports the end of the stream.

For each file, the stream opens the file, fetches its metadata, emits the
    512-byte header block, and streams the content in chunks of at most
    `chunk_size` bytes, with the last chunk zero padded to the 512-byte
    block boundary. The stream finishes with two 512-byte zero blocks.

The I/O operations are submitted to a concurrent.futures.Executor. With the
    default InlineExecutor the operations are done at submit, with a thread
    pool executor the stream can be driven from an asyncio event loop
    without blocking it.

This class is NOT thread-safe, the stream must be consumed by one consumer.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from enum import Enum, auto
from typing import BinaryIO, Callable, Iterable, Union

from typing_extensions import Self

from ._io import InlineExecutor, open_file, read_into, stat_file
from .buffer import ChunkBuffer
from .config import DEFAULT_CONFIG, TarStreamConfig
from .consts import EMPTY_BLOCK, TRAILER_BLOCKS
from .enumerator import FileEntry, FileEnumerator, list_regular_files
from .errors import (
    EnumerationError,
    MetadataError,
    OpenError,
    ReadError,
    StrOrPath,
)
from .header import build_header

logger = logging.getLogger(__name__)


class PollResult(Enum):
    PENDING = auto()
    """The current phase waits for an I/O operation, no output yet."""
    EOF = auto()
    """The trailer has been emitted, no more chunks."""


#
# ------ stream phases ------ #
#


@dataclass(frozen=True)
class SelectNext:
    """About to pick the next file."""


@dataclass(frozen=True)
class Opening:
    entry: FileEntry
    fut: Future[BinaryIO]


@dataclass(frozen=True)
class FetchingMetadata:
    entry: FileEntry
    file: BinaryIO
    fut: Future[os.stat_result]


@dataclass(frozen=True)
class HeaderReady:
    entry: FileEntry
    file: BinaryIO
    stat: os.stat_result


@dataclass(frozen=True)
class Sending:
    entry: FileEntry
    file: BinaryIO
    size: int
    offset: int = 0
    """Content bytes read from the file so far."""
    fut: Union[Future[int], None] = None
    """The in-flight read, if any."""


@dataclass(frozen=True)
class Trailer:
    emitted: int = 0


@dataclass(frozen=True)
class Finished:
    """Terminal phase, after the trailer, an error or close."""


StreamPhase = Union[
    SelectNext, Opening, FetchingMetadata, HeaderReady, Sending, Trailer, Finished
]


def _close_file_when_done(_file: BinaryIO, _fut: Future | None = None) -> None:
    if _fut is None or _fut.done() or _fut.cancel():
        _file.close()
    else:
        # wait for the in-flight operation on the file before closing it
        _fut.add_done_callback(lambda _: _file.close())


def _close_opened_file(_fut: Future[BinaryIO]) -> None:
    if not _fut.cancelled() and _fut.exception() is None:
        _fut.result().close()


def _release_phase(_phase: StreamPhase) -> None:
    """Release the resources held by <_phase>."""
    if isinstance(_phase, Opening):
        if not _phase.fut.cancel():
            _phase.fut.add_done_callback(_close_opened_file)
    elif isinstance(_phase, FetchingMetadata):
        _close_file_when_done(_phase.file, _phase.fut)
    elif isinstance(_phase, HeaderReady):
        _close_file_when_done(_phase.file)
    elif isinstance(_phase, Sending):
        _close_file_when_done(_phase.file, _phase.fut)


class TarStream:
    """Pull-based lazy tar archive of a list of files.

    The file entries are captured eagerly at init, the content of the files
        is only read when the consumer pulls chunks.

    The stream can be consumed by:
    1. iterating over it, pending I/O operations are waited in place.
    2. async iterating over it, pending I/O operations are awaited.
    3. calling `poll` directly, together with `pending_future`.

    The stream is consumed in one pass and cannot be restarted. It finishes
        permanently after the trailer is emitted, after any error is raised,
        or after `close` is called.
    """

    def __init__(
        self,
        entries: Iterable[FileEntry],
        *,
        config: TarStreamConfig | None = None,
        executor: Executor | None = None,
        close_executor_on_exit: bool = False,
    ) -> None:
        self._config = config = config or DEFAULT_CONFIG
        self._entries: deque[FileEntry] = deque(entries)
        self.total_files = len(self._entries)

        self._executor = executor or InlineExecutor()
        self._close_executor_on_exit = close_executor_on_exit

        self._buffer = ChunkBuffer(config.chunk_size)
        self._phase: StreamPhase = SelectNext()

        self.files_archived = 0
        self.bytes_emitted = 0

        self._handlers: dict[type, Callable[..., bytes | PollResult | None]] = {
            SelectNext: self._select_next,
            Opening: self._opening,
            FetchingMetadata: self._fetching_metadata,
            HeaderReady: self._header_ready,
            Sending: self._sending,
            Trailer: self._trailer,
        }

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> bytes:
        while True:
            _res = self.poll()
            if _res is PollResult.PENDING:
                wait_futures((self.pending_future(),))
            elif _res is PollResult.EOF:
                raise StopIteration
            else:
                return _res

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> bytes:
        while True:
            _res = self.poll()
            if _res is PollResult.PENDING:
                _waiter = asyncio.wrap_future(self.pending_future())
                await asyncio.wait((_waiter,))
                if not _waiter.cancelled():
                    _waiter.exception()  # the failure is raised by the next poll
            elif _res is PollResult.EOF:
                raise StopAsyncIteration
            else:
                return _res

    @property
    def phase(self) -> StreamPhase:
        return self._phase

    @property
    def finished(self) -> bool:
        return isinstance(self._phase, Finished)

    def pending_future(self) -> Future | None:
        """The I/O operation the current phase is waiting for, if any."""
        _phase = self._phase
        if isinstance(_phase, (Opening, FetchingMetadata, Sending)):
            return _phase.fut

    def poll(self) -> bytes | PollResult:
        """Advance the stream by at most one unit of work.

        Returns:
            A chunk of the archive, or PollResult.PENDING if the current phase
                waits for an I/O operation, or PollResult.EOF if the stream
                is finished.

        Raises:
            Any TarStreamError, after which the stream is finished. Only
                OSError from the I/O operations is wrapped, any other exception
                raised by the submitted operations is re-raised as is, and
                also finishes the stream.
        """
        while not isinstance(_phase := self._phase, Finished):
            try:
                _res = self._handlers[type(_phase)](_phase)
            except BaseException:
                self._finish()
                raise

            if _res is None:
                continue
            if isinstance(_res, bytes):
                self.bytes_emitted += len(_res)
            return _res
        return PollResult.EOF

    def close(self) -> None:
        """Cancel the stream, release the opened file if any."""
        if not self.finished:
            logger.warning(
                f"stream closed before finished: {self.files_archived}/{self.total_files} files archived"
            )
        self._finish()

    #
    # ------ phase handlers ------ #
    #

    def _finish(self) -> None:
        _phase, self._phase = self._phase, Finished()
        _release_phase(_phase)
        self._entries.clear()
        if self._close_executor_on_exit:
            self._executor.shutdown(wait=False)

    def _select_next(self, _: SelectNext) -> None:
        if not self._entries:
            self._phase = Trailer()
            return

        _entry = self._entries.popleft()
        logger.debug(f"start archiving {_entry.path} as {_entry.name}")
        self._phase = Opening(_entry, self._executor.submit(open_file, _entry.path))

    def _opening(self, _phase: Opening) -> PollResult | None:
        if not _phase.fut.done():
            return PollResult.PENDING

        _entry = _phase.entry
        try:
            _file = _phase.fut.result()
        except OSError as e:
            raise OpenError(f"failed to open {_entry.path}: {e!r}", _entry.path) from e

        self._phase = FetchingMetadata(
            _entry, _file, self._executor.submit(stat_file, _file)
        )

    def _fetching_metadata(self, _phase: FetchingMetadata) -> PollResult | None:
        if not _phase.fut.done():
            return PollResult.PENDING

        _entry = _phase.entry
        try:
            _stat = _phase.fut.result()
        except OSError as e:
            raise MetadataError(
                f"failed to get metadata of {_entry.path}: {e!r}", _entry.path
            ) from e
        self._phase = HeaderReady(_entry, _phase.file, _stat)

    def _header_ready(self, _phase: HeaderReady) -> bytes:
        _config, _stat = self._config, _phase.stat
        _header = build_header(
            _phase.entry.name,
            _stat.st_size,
            mtime=int(_stat.st_mtime) if _config.preserve_mtime else None,
            mode=_config.file_mode,
            encoding=_config.name_encoding,
        )
        self._buffer.reset()
        self._phase = Sending(_phase.entry, _phase.file, size=_stat.st_size)
        return _header

    def _sending(self, _phase: Sending) -> bytes | PollResult | None:
        _entry, _file = _phase.entry, _phase.file
        if (_fut := _phase.fut) is None:
            _fut = self._executor.submit(read_into, _file, self._buffer.writable())
            self._phase = _phase = Sending(
                _entry, _file, size=_phase.size, offset=_phase.offset, fut=_fut
            )

        if not _fut.done():
            return PollResult.PENDING

        try:
            _read = _fut.result()
        except OSError as e:
            raise ReadError(f"failed to read {_entry.path}: {e!r}", _entry.path) from e

        _offset = _phase.offset + _read
        if _offset > _phase.size or (_read == 0 and _offset < _phase.size):
            raise ReadError(
                f"{_entry.path} changed during archiving: "
                f"expected {_phase.size} bytes, read {_offset} bytes",
                _entry.path,
            )

        if _read == 0:  # EOF
            _file.close()
            self.files_archived += 1
            logger.debug(f"finish archiving {_entry.path}, {_phase.size=}")
            self._phase = SelectNext()
            return self._buffer.flush_padded()

        self._phase = Sending(_entry, _file, size=_phase.size, offset=_offset)
        return self._buffer.advance(_read)

    def _trailer(self, _phase: Trailer) -> bytes | PollResult:
        if _phase.emitted < TRAILER_BLOCKS:
            self._phase = Trailer(_phase.emitted + 1)
            return EMPTY_BLOCK

        logger.debug(
            f"stream finished: {self.files_archived} files, {self.bytes_emitted} bytes"
        )
        self._finish()
        return PollResult.EOF


#
# ------ factories ------ #
#


def _enumerate(enumerator: FileEnumerator, dir_path: StrOrPath) -> list[FileEntry]:
    try:
        return list(enumerator(dir_path))
    except OSError as e:
        raise EnumerationError(f"failed to enumerate {dir_path}: {e!r}", dir_path) from e


def tar_dir(
    dir_path: StrOrPath,
    *,
    config: TarStreamConfig | None = None,
    enumerator: FileEnumerator = list_regular_files,
    executor: Executor | None = None,
) -> TarStream:
    """Enumerate <dir_path> and return the TarStream of its regular files.

    The enumeration is done before this function returns, any enumeration
        error is raised here, before the first chunk.
    """
    return TarStream(
        _enumerate(enumerator, dir_path), config=config, executor=executor
    )


async def tar_dir_async(
    dir_path: StrOrPath,
    *,
    config: TarStreamConfig | None = None,
    enumerator: FileEnumerator = list_regular_files,
    executor: Executor | None = None,
) -> TarStream:
    """Async version of tar_dir, the enumeration and all the file I/O are
    done in a worker thread.

    If <executor> is not specified, the returned stream owns a single worker
        thread pool, which is shut down when the stream finishes.
    """
    _own_executor = executor is None
    if executor is None:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dir_tarstream")

    try:
        _entries = await asyncio.wrap_future(
            executor.submit(_enumerate, enumerator, dir_path)
        )
    except BaseException:
        if _own_executor:
            executor.shutdown(wait=False)
        raise

    return TarStream(
        _entries,
        config=config,
        executor=executor,
        close_executor_on_exit=_own_executor,
    )
