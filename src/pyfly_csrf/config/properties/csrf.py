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
"""CSRF protection configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from pyfly_csrf.core.config import config_properties
from pyfly_csrf.kernel.exceptions import TokenDecodeException
from pyfly_csrf.security.csrf import encoding
from pyfly_csrf.security.csrf.signing import DEFAULT_SALT, KEY_SIZE


@config_properties(prefix="pyfly.csrf")
class CsrfProperties(BaseModel):
    """Configuration for CSRF protection (pyfly.csrf.*).

    Exactly one key source must be set while protection is enabled:
    ``secret_key`` (base64url, 32 bytes once decoded) or ``password``
    (stretched with scrypt at startup).
    """

    enabled: bool = True
    secret_key: str | None = Field(default=None, repr=False)
    password: str | None = Field(default=None, repr=False)
    salt: str | None = None
    algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    ttl_seconds: int = Field(default=3600, ge=1)

    cookie_name: str = "csrf"
    form_field: str = "csrf-token"
    header_name: str = "X-CSRF-Token"
    query_param: str = "csrf-token"

    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_secure: bool = True
    cookie_httponly: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    bearer_bypass: bool = True
    exclude_paths: list[str] = Field(default_factory=list)

    @field_validator("exclude_paths", mode="before")
    @classmethod
    def _split_paths(cls, value: object) -> object:
        if isinstance(value, str):
            return [p.strip() for p in value.split(",") if p.strip()]
        return value

    @field_validator("secret_key")
    @classmethod
    def _check_secret_key(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            key = encoding.decode(value)
        except TokenDecodeException as exc:
            raise ValueError("secret_key must be unpadded base64url") from exc
        if len(key) != KEY_SIZE:
            raise ValueError(f"secret_key must decode to {KEY_SIZE} bytes, got {len(key)}")
        return value

    @model_validator(mode="after")
    def _check_key_source(self) -> CsrfProperties:
        if not self.enabled:
            return self
        if self.secret_key and self.password:
            raise ValueError("Set either secret_key or password, not both")
        if not self.secret_key and not self.password:
            raise ValueError("CSRF protection requires secret_key or password")
        return self

    def secret_key_bytes(self) -> bytes | None:
        """Decoded ``secret_key``, or ``None`` when a password is configured."""
        return encoding.decode(self.secret_key) if self.secret_key else None

    def salt_bytes(self) -> bytes:
        return self.salt.encode("utf-8") if self.salt else DEFAULT_SALT
