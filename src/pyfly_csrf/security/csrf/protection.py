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
"""Double-submit CSRF protection — token issuance and verification.

Issuance draws a random token, appends its expiry, signs both, and then
masks the signed payload twice with independent masks: once for the
cookie and once for the form field. The two encodings therefore differ on
every issuance while unmasking to the same bytes.

Verification decodes and unmasks both tokens, requires the recovered
payloads to be identical (constant time), checks the signature, and only
then looks at the expiry.

The protection is stateless. A valid, unexpired pair is accepted every
time it is presented; there is no revocation list and no replay
detection. Callers needing single-use tokens must keep their own store.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

from pyfly_csrf.kernel.exceptions import (
    CsrfValidationException,
    TokenExpiredException,
    TokenLengthMismatchException,
    TokenPayloadMismatchException,
    TokenSignatureMismatchException,
)
from pyfly_csrf.security.csrf import encoding
from pyfly_csrf.security.csrf.expiry import Clock, SystemClock, is_expired
from pyfly_csrf.security.csrf.masking import Masker
from pyfly_csrf.security.csrf.random import ByteSource, SystemByteSource
from pyfly_csrf.security.csrf.signing import DEFAULT_ALGORITHM, DEFAULT_SALT, Signer, create_signer, derive_key
from pyfly_csrf.security.csrf.types import TOKEN_SIZE, SignedPayload, TokenPair

if TYPE_CHECKING:
    from pyfly_csrf.config.properties.csrf import CsrfProperties

logger = structlog.get_logger("pyfly_csrf.security.csrf")

_MIN_EXPIRY = -(1 << 63)
_MAX_EXPIRY = (1 << 63) - 1


@runtime_checkable
class CsrfProtection(Protocol):
    """Port that framework integrations call to issue and check tokens."""

    def generate_token_pair(self, ttl_seconds: int) -> TokenPair: ...

    def verify_token_pair(self, cookie_token: str, form_token: str) -> None: ...

    def is_valid_token_pair(self, cookie_token: str, form_token: str) -> bool: ...

    def reissue_form_token(self, cookie_token: str) -> str: ...


class DoubleSubmitCsrfProtection:
    """Stateless double-submit token protocol keyed by a single secret.

    The instance is immutable after construction and safe to share between
    threads and tasks.

    Args:
        secret_key: Signing key, exactly 32 bytes. Rotating it invalidates
            every previously issued token.
        algorithm: Signing algorithm name (see :mod:`.signing`).
        byte_source: Random source for tokens and masks.
        clock: Time source used when ``now`` is not passed explicitly.
    """

    def __init__(
        self,
        secret_key: bytes,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        byte_source: ByteSource | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._signer: Signer = create_signer(secret_key, algorithm)
        self._byte_source: ByteSource = byte_source or SystemByteSource()
        self._masker = Masker(self._byte_source)
        self._clock: Clock = clock or SystemClock()
        self._payload_size = SignedPayload.size(self._signer.tag_size)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_key(cls, secret_key: bytes, **kwargs) -> DoubleSubmitCsrfProtection:
        return cls(secret_key, **kwargs)

    @classmethod
    def from_password(
        cls,
        password: str | bytes,
        *,
        salt: bytes = DEFAULT_SALT,
        **kwargs,
    ) -> DoubleSubmitCsrfProtection:
        """Derive the key from *password* with scrypt. Slow by design of scrypt."""
        logger.info("csrf_key_derivation_started")
        key = derive_key(password, salt=salt)
        logger.info("csrf_key_derivation_finished")
        return cls(key, **kwargs)

    @classmethod
    def from_properties(cls, properties: CsrfProperties, **kwargs) -> DoubleSubmitCsrfProtection:
        """Build from bound ``pyfly.csrf`` configuration.

        Raises:
            ValueError: If neither ``secret_key`` nor ``password`` is set,
                which the properties allow only while ``enabled`` is false.
        """
        kwargs.setdefault("algorithm", properties.algorithm)
        key = properties.secret_key_bytes()
        if key is not None:
            return cls(key, **kwargs)
        if not properties.password:
            raise ValueError("pyfly.csrf needs secret_key or password to build a CSRF protection")
        return cls.from_password(properties.password, salt=properties.salt_bytes(), **kwargs)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def algorithm(self) -> str:
        return self._signer.algorithm

    @property
    def payload_size(self) -> int:
        """Length of the unmasked signed payload in bytes."""
        return self._payload_size

    @property
    def token_length(self) -> int:
        """Length of an encoded token string."""
        return len(encoding.encode(bytes(2 * self._payload_size)))

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def generate_token_pair(self, ttl_seconds: int, *, now: int | None = None) -> TokenPair:
        """Issue a fresh cookie/form token pair valid for *ttl_seconds*.

        Raises:
            ValueError: If *ttl_seconds* is not a positive int, or the
                resulting expiry does not fit a signed 64-bit timestamp.
            RandomSourceException: If no secure randomness is available.
        """
        if not isinstance(ttl_seconds, int) or isinstance(ttl_seconds, bool) or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be a positive int, got {ttl_seconds!r}")

        expires = self._now(now) + ttl_seconds
        if not _MIN_EXPIRY <= expires <= _MAX_EXPIRY:
            raise ValueError(f"Expiry {expires} does not fit a signed 64-bit timestamp")

        payload = self._sign(self._byte_source.random_bytes(TOKEN_SIZE), expires)
        pair = TokenPair(
            cookie_token=self._encode(payload),
            form_token=self._encode(payload),
        )
        logger.debug("csrf_token_pair_issued", expires=expires, algorithm=self.algorithm)
        return pair

    def reissue_form_token(self, cookie_token: str, *, now: int | None = None) -> str:
        """Mask the payload of a still-valid cookie token afresh for a new form.

        The cookie keeps its value and expiry; only the page-embedded token
        changes.

        Raises:
            CsrfValidationException: If *cookie_token* is not itself valid.
        """
        try:
            raw = self._recover(cookie_token)
            self._check(SignedPayload.from_bytes(raw), now)
        except CsrfValidationException as exc:
            logger.debug("csrf_reissue_rejected", code=exc.code)
            raise
        return encoding.encode(self._masker.mask_token(raw))

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_token_pair(self, cookie_token: str, form_token: str, *, now: int | None = None) -> None:
        """Accept the pair or raise the :class:`CsrfValidationException` for the first failed check.

        Order: decode, unmask, compare payloads, verify signature, check expiry.
        """
        try:
            cookie_payload = self._recover(cookie_token)
            form_payload = self._recover(form_token)
            if not hmac.compare_digest(cookie_payload, form_payload):
                raise TokenPayloadMismatchException()
            self._check(SignedPayload.from_bytes(cookie_payload), now)
        except CsrfValidationException as exc:
            logger.info("csrf_validation_failed", code=exc.code)
            raise
        logger.debug("csrf_validation_succeeded")

    def is_valid_token_pair(self, cookie_token: str, form_token: str, *, now: int | None = None) -> bool:
        """Boolean form of :meth:`verify_token_pair` for transport glue."""
        try:
            self.verify_token_pair(cookie_token, form_token, now=now)
        except CsrfValidationException:
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self, now: int | None) -> int:
        return self._clock.now() if now is None else int(now)

    def _sign(self, token: bytes, expires: int) -> bytes:
        signed_part = SignedPayload(token=token, expires=expires, tag=b"").signed_part
        return SignedPayload(token=token, expires=expires, tag=self._signer.sign(signed_part)).to_bytes()

    def _encode(self, payload: bytes) -> str:
        return encoding.encode(self._masker.mask_token(payload))

    def _recover(self, token: str) -> bytes:
        raw = encoding.decode(token)
        if len(raw) != 2 * self._payload_size:
            raise TokenLengthMismatchException(
                context={"expected": 2 * self._payload_size, "actual": len(raw)},
            )
        return self._masker.unmask_token(raw)

    def _check(self, payload: SignedPayload, now: int | None) -> None:
        if not self._signer.verify(payload.signed_part, payload.tag):
            raise TokenSignatureMismatchException()
        if is_expired(payload.expires, self._now(now)):
            raise TokenExpiredException(context={"expires": payload.expires})

    def __repr__(self) -> str:
        return f"DoubleSubmitCsrfProtection(algorithm={self.algorithm!r})"
