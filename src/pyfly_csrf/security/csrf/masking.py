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
"""Per-issuance XOR masking of signed payloads."""

from __future__ import annotations

from pyfly_csrf.kernel.exceptions import TokenLengthMismatchException
from pyfly_csrf.security.csrf.random import ByteSource


def xor_bytes(left: bytes, right: bytes) -> bytes:
    """Byte-wise XOR of two equal-length buffers."""
    if len(left) != len(right):
        raise TokenLengthMismatchException(
            context={"left": len(left), "right": len(right)},
        )
    return bytes(a ^ b for a, b in zip(left, right))


class Masker:
    """Hides a payload behind a fresh one-time mask.

    The wire form is ``mask || (payload XOR mask)``. Unmasking needs nothing
    beyond the token itself.

    Args:
        byte_source: Where fresh masks are drawn from.
    """

    def __init__(self, byte_source: ByteSource) -> None:
        self._byte_source = byte_source

    def mask(self, payload: bytes) -> tuple[bytes, bytes]:
        """Return ``(mask, masked)`` for *payload* using a newly drawn mask."""
        mask = self._byte_source.random_bytes(len(payload))
        return mask, xor_bytes(payload, mask)

    def unmask(self, mask: bytes, masked: bytes) -> bytes:
        """Recover the payload; unequal lengths raise TokenLengthMismatchException."""
        return xor_bytes(masked, mask)

    def mask_token(self, payload: bytes) -> bytes:
        """Mask *payload* and join both halves into a single buffer."""
        return join(*self.mask(payload))

    def unmask_token(self, token: bytes) -> bytes:
        """Split a joined buffer and recover the payload."""
        return self.unmask(*split(token))


def join(mask: bytes, masked: bytes) -> bytes:
    """Concatenate mask and masked payload, mask first."""
    return mask + masked


def split(token: bytes) -> tuple[bytes, bytes]:
    """Split a joined buffer into ``(mask, masked)``."""
    if len(token) % 2:
        raise TokenLengthMismatchException(context={"length": len(token)})
    half = len(token) // 2
    return token[:half], token[half:]
