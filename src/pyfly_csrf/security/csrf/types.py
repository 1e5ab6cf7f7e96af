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
"""CSRF token datatypes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from pyfly_csrf.security.csrf.expiry import EXPIRY_SIZE, pack_expiry, unpack_expiry

TOKEN_SIZE: int = 32
"""Length of the random token value in bytes."""


class TokenPair(NamedTuple):
    """Encoded tokens handed to the transport layer.

    ``cookie_token`` goes where only the legitimate client can send it back
    (a cookie); ``form_token`` is embedded in the page and resubmitted.
    """

    cookie_token: str
    form_token: str


@dataclass(frozen=True, repr=False)
class SignedPayload:
    """``token || expires || tag`` before masking."""

    token: bytes
    expires: int
    tag: bytes

    @property
    def signed_part(self) -> bytes:
        """The bytes covered by the tag."""
        return self.token + pack_expiry(self.expires)

    def to_bytes(self) -> bytes:
        return self.signed_part + self.tag

    @classmethod
    def from_bytes(cls, data: bytes) -> SignedPayload:
        """Split a payload whose length has already been checked."""
        return cls(
            token=data[:TOKEN_SIZE],
            expires=unpack_expiry(data[TOKEN_SIZE : TOKEN_SIZE + EXPIRY_SIZE]),
            tag=data[TOKEN_SIZE + EXPIRY_SIZE :],
        )

    @staticmethod
    def size(tag_size: int) -> int:
        return TOKEN_SIZE + EXPIRY_SIZE + tag_size

    def __repr__(self) -> str:
        return f"SignedPayload(expires={self.expires})"
