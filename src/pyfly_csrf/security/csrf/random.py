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
"""Cryptographically secure byte source."""

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

from pyfly_csrf.kernel.exceptions import RandomSourceException


@runtime_checkable
class ByteSource(Protocol):
    """Port for drawing unpredictable bytes."""

    def random_bytes(self, n: int) -> bytes:
        """Return exactly *n* random bytes or raise RandomSourceException."""
        ...


class SystemByteSource:
    """ByteSource backed by the operating system CSPRNG.

    There is no fallback generator. If the platform cannot supply random
    bytes the call fails with :class:`RandomSourceException`.
    """

    def random_bytes(self, n: int) -> bytes:
        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            raise ValueError(f"Byte count must be a non-negative int, got {n!r}")
        try:
            data = secrets.token_bytes(n)
        except (OSError, NotImplementedError) as exc:
            raise RandomSourceException(
                "Secure random generator unavailable",
                code="RANDOM_SOURCE_UNAVAILABLE",
            ) from exc
        if len(data) != n:
            raise RandomSourceException(
                "Secure random generator returned a short read",
                code="RANDOM_SOURCE_SHORT_READ",
                context={"requested": n, "received": len(data)},
            )
        return data
