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
"""Keyed signing of token payloads.

The signer is a port so that the façade does not depend on a particular
MAC construction. :class:`HmacSigner` is the shipped adapter.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

KEY_SIZE: int = 32
"""Required secret key length in bytes."""

DEFAULT_ALGORITHM: str = "HS256"

DEFAULT_SALT: bytes = b"pyfly-csrf-scrypt-salt"
"""Salt used by :func:`derive_key` when none is supplied."""

_DIGESTS: dict[str, Callable[..., Any]] = {
    "HS256": hashlib.sha256,
    "HS384": hashlib.sha384,
    "HS512": hashlib.sha512,
}

SUPPORTED_ALGORITHMS: frozenset[str] = frozenset(_DIGESTS)


@runtime_checkable
class Signer(Protocol):
    """Port for producing and checking a fixed-length tag over a payload."""

    @property
    def algorithm(self) -> str: ...

    @property
    def tag_size(self) -> int: ...

    def sign(self, payload: bytes) -> bytes:
        """Return the tag for *payload*."""
        ...

    def verify(self, payload: bytes, tag: bytes) -> bool:
        """Return ``True`` only if *tag* is the tag for *payload*."""
        ...


class HmacSigner:
    """Signer adapter using HMAC over the SHA-2 family.

    Args:
        key: Secret key, exactly :data:`KEY_SIZE` bytes.
        algorithm: One of ``HS256``, ``HS384``, ``HS512``.
    """

    __slots__ = ("_key", "_algorithm", "_digest", "_tag_size")

    def __init__(self, key: bytes, algorithm: str = DEFAULT_ALGORITHM) -> None:
        _check_key(key)
        digest = _DIGESTS.get(algorithm)
        if digest is None:
            raise ValueError(
                f"Unsupported signing algorithm '{algorithm}'. "
                f"Expected one of: {', '.join(sorted(SUPPORTED_ALGORITHMS))}"
            )
        self._key = bytes(key)
        self._algorithm = algorithm
        self._digest = digest
        self._tag_size = digest().digest_size

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def tag_size(self) -> int:
        return self._tag_size

    def sign(self, payload: bytes) -> bytes:
        return hmac.new(self._key, payload, self._digest).digest()

    def verify(self, payload: bytes, tag: bytes) -> bool:
        # compare_digest does not short-circuit on content and returns False on length mismatch.
        return hmac.compare_digest(self.sign(payload), tag)

    def __repr__(self) -> str:
        return f"HmacSigner(algorithm={self._algorithm!r})"


def create_signer(key: bytes, algorithm: str = DEFAULT_ALGORITHM) -> Signer:
    """Build the signer for *algorithm*."""
    return HmacSigner(key, algorithm)


def derive_key(
    password: str | bytes,
    *,
    salt: bytes = DEFAULT_SALT,
    log_n: int = 14,
    r: int = 8,
    p: int = 1,
) -> bytes:
    """Derive a :data:`KEY_SIZE`-byte key from a password with scrypt.

    Derivation is deliberately slow; do it once at startup, not per request.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    if not password:
        raise ValueError("Password must not be empty")
    n = 1 << log_n
    return hashlib.scrypt(
        password,
        salt=salt,
        n=n,
        r=r,
        p=p,
        maxmem=128 * r * (n + p + 2) + 1024 * 1024,
        dklen=KEY_SIZE,
    )


def _check_key(key: bytes) -> None:
    if not isinstance(key, (bytes, bytearray)):
        raise TypeError(f"Secret key must be bytes, got {type(key).__name__}")
    if len(key) != KEY_SIZE:
        raise ValueError(f"Secret key must be exactly {KEY_SIZE} bytes, got {len(key)}")
