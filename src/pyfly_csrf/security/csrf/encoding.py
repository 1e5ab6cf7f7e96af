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
"""URL-safe textual encoding for opaque token bytes.

Tokens travel in cookies, headers and form fields, so the alphabet is
restricted to ``[A-Za-z0-9_-]`` and padding is never emitted. Decoding is
strict: anything :func:`encode` could not have produced is rejected.
"""

from __future__ import annotations

import base64
import binascii
import re

from pyfly_csrf.kernel.exceptions import TokenDecodeException

_ALPHABET_RE = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    """Encode *data* as unpadded base64url."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str) -> bytes:
    """Decode an unpadded base64url string.

    Raises:
        TokenDecodeException: On a non-string, a character outside the
            alphabet, an impossible length, or a non-canonical encoding.
    """
    if not isinstance(text, str):
        raise TokenDecodeException(context={"reason": "not_a_string"})
    if _ALPHABET_RE.fullmatch(text) is None:
        raise TokenDecodeException(context={"reason": "invalid_alphabet"})
    if len(text) % 4 == 1:
        raise TokenDecodeException(context={"reason": "invalid_length"})

    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as exc:
        raise TokenDecodeException(context={"reason": "invalid_encoding"}) from exc

    # Unused trailing bits must be zero, otherwise several strings map to one value.
    if encode(data) != text:
        raise TokenDecodeException(context={"reason": "non_canonical"})
    return data
