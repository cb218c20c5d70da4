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
"""File I/O operations of the tar stream, submitted to an executor.

Each operation is a plain blocking function, the TarStream submits it to
    a concurrent.futures.Executor and keeps the returned Future in its
    current phase until the Future is done.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import BinaryIO, Callable, TypeVar

from typing_extensions import ParamSpec

T = TypeVar("T")
P = ParamSpec("P")


class InlineExecutor(Executor):
    """Run the submitted callable in the caller's thread.

    The returned Future is already done when submit returns, a stream driven
        with this executor never reports pending.
    """

    def __init__(self) -> None:
        self._shutdown_lock = threading.Lock()
        self._shutdown = False

    def submit(self, fn: Callable[P, T], /, *args: P.args, **kwargs: P.kwargs) -> Future[T]:
        with self._shutdown_lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")

        _fut: Future[T] = Future()
        _fut.set_running_or_notify_cancel()
        try:
            _fut.set_result(fn(*args, **kwargs))
        except BaseException as e:
            _fut.set_exception(e)
        return _fut

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._shutdown_lock:
            self._shutdown = True


def open_file(_fpath: Path) -> BinaryIO:
    return open(_fpath, "rb")


def stat_file(_f: BinaryIO) -> os.stat_result:
    return os.fstat(_f.fileno())


def read_into(_f: BinaryIO, _buf: memoryview) -> int:
    """Read once from <_f> into <_buf>, returns 0 at EOF."""
    return _f.readinto(_buf) or 0  # type: ignore[attr-defined]
