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
"""Double-submit CSRF token protocol."""

from pyfly_csrf.security.csrf.expiry import Clock, FixedClock, SystemClock, is_expired
from pyfly_csrf.security.csrf.masking import Masker
from pyfly_csrf.security.csrf.protection import CsrfProtection, DoubleSubmitCsrfProtection
from pyfly_csrf.security.csrf.random import ByteSource, SystemByteSource
from pyfly_csrf.security.csrf.signing import KEY_SIZE, HmacSigner, Signer, derive_key
from pyfly_csrf.security.csrf.types import TOKEN_SIZE, TokenPair

__all__ = [
    "KEY_SIZE",
    "TOKEN_SIZE",
    "ByteSource",
    "Clock",
    "CsrfProtection",
    "DoubleSubmitCsrfProtection",
    "FixedClock",
    "HmacSigner",
    "Masker",
    "Signer",
    "SystemByteSource",
    "SystemClock",
    "TokenPair",
    "derive_key",
    "is_expired",
]
