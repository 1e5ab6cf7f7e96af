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
"""Unified exception hierarchy for PyFly CSRF.

All library exceptions inherit from PyFlyException, so callers can catch
one base type at the request boundary. Mirrors the PyFly kernel design.

Categories:
- SecurityException: CSRF token validation failures
- InfrastructureException: Random source and other platform failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PyFlyException(Exception):
    """Base exception for all PyFly CSRF errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_EXPIRED").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(PyFlyException):
    """Authentication, authorization and request-forgery errors."""


class CsrfValidationException(SecurityException):
    """A presented CSRF token pair was rejected.

    Every subclass must be handled the same way by request handlers: reject
    the request. The subclass and its ``code`` exist for logging and metrics
    and must not be echoed to the remote client.
    """

    default_code = "CSRF_INVALID"
    default_message = "CSRF validation failed"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(
            message or self.default_message,
            code=code or self.default_code,
            context=context,
        )


class TokenDecodeException(CsrfValidationException):
    """Token string is not a valid encoding (alphabet, length or padding)."""

    default_code = "CSRF_DECODE"
    default_message = "CSRF token could not be decoded"


class TokenLengthMismatchException(CsrfValidationException):
    """Decoded mask and payload segments disagree in length."""

    default_code = "CSRF_LENGTH_MISMATCH"
    default_message = "CSRF token has an unexpected length"


class TokenPayloadMismatchException(CsrfValidationException):
    """The cookie token and form token do not carry the same payload."""

    default_code = "CSRF_PAYLOAD_MISMATCH"
    default_message = "CSRF cookie and form token do not match"


class TokenSignatureMismatchException(CsrfValidationException):
    """The payload signature did not verify under the configured key."""

    default_code = "CSRF_SIGNATURE_MISMATCH"
    default_message = "CSRF token signature is invalid"


class TokenExpiredException(CsrfValidationException):
    """The payload is authentic but past its expiry timestamp."""

    default_code = "CSRF_EXPIRED"
    default_message = "CSRF token has expired"


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(PyFlyException):
    """Infrastructure failures: randomness, clocks, platform services."""


class RandomSourceException(InfrastructureException):
    """The cryptographically secure random generator could not supply bytes."""
