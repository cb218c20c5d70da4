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
"""Shared test fixtures for dir-tarstream tests."""

from __future__ import annotations

import os
from collections import deque
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Callable

import pytest


class ManualExecutor(Executor):
    """An executor that only runs the submitted jobs when told to.

    Used for driving the stream through its pending phases step by step.
    """

    def __init__(self) -> None:
        self.jobs: deque[tuple[Future, Callable, tuple, dict]] = deque()

    def submit(self, fn, /, *args, **kwargs) -> Future:
        _fut = Future()
        self.jobs.append((_fut, fn, args, kwargs))
        return _fut

    def run_one(self) -> None:
        _fut, fn, args, kwargs = self.jobs.popleft()
        if not _fut.set_running_or_notify_cancel():
            return
        try:
            _fut.set_result(fn(*args, **kwargs))
        except BaseException as e:
            _fut.set_exception(e)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """A fresh empty directory for each test."""
    _dir = tmp_path / "src"
    _dir.mkdir()
    return _dir


@pytest.fixture
def manual_executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def make_files(temp_dir: Path) -> Callable[[dict[str, int]], dict[str, bytes]]:
    """Create files with random content of the given sizes under temp_dir."""

    def _make(_sizes: dict[str, int]) -> dict[str, bytes]:
        _res = {}
        for _name, _size in _sizes.items():
            _content = os.urandom(_size)
            (temp_dir / _name).write_bytes(_content)
            _res[_name] = _content
        return _res

    return _make
