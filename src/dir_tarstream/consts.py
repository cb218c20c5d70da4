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
"""Consts related to the tar stream layout."""

BLOCK_SIZE = 512
"""The alignment quantum of the tar format, header and content are padded to it."""

DEFAULT_CHUNK_SIZE = 8 * 1024
"""Capacity of the content staging buffer, must be a multiple of BLOCK_SIZE."""

DEFAULT_FILE_MODE = 0o644

TRAILER_BLOCKS = 2
EMPTY_BLOCK = bytes(BLOCK_SIZE)

NAME_FIELD_SIZE = 100
