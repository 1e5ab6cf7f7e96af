# Copyright 2026 Firefly Software Solutions Inc.
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
"""Expiry timestamps and the clocks they are compared against."""

from __future__ import annotations

import struct
import time
from typing import Protocol, runtime_checkable

EXPIRY_SIZE: int = 8
"""Serialized expiry width: signed 64-bit big-endian seconds since epoch."""

_EXPIRY_STRUCT = struct.Struct(">q")


@runtime_checkable
class Clock(Protocol):
    """Port supplying the current time in whole seconds since the epoch."""

    def now(self) -> int: ...


class SystemClock:
    """Wall clock."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock for tests and replaying recorded traffic."""

    def __init__(self, now: int = 0) -> None:
        self._now = int(now)

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = int(now)

    def advance(self, seconds: int) -> None:
        self._now += int(seconds)


def is_expired(expiry_ts: int, now_ts: int) -> bool:
    """A token is expired strictly after its expiry second."""
    return now_ts > expiry_ts


def pack_expiry(expiry_ts: int) -> bytes:
    return _EXPIRY_STRUCT.pack(expiry_ts)


def unpack_expiry(data: bytes) -> int:
    (expiry_ts,) = _EXPIRY_STRUCT.unpack(data)
    return expiry_ts
