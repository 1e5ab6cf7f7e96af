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
"""'pyfly-csrf keygen' and 'pyfly-csrf derive-key'."""

from __future__ import annotations

import click

from pyfly_csrf.cli.console import console
from pyfly_csrf.kernel.exceptions import RandomSourceException
from pyfly_csrf.security.csrf import encoding
from pyfly_csrf.security.csrf.random import SystemByteSource
from pyfly_csrf.security.csrf.signing import DEFAULT_SALT, KEY_SIZE, derive_key


@click.command()
def keygen_command() -> None:
    """Generate a random secret key for pyfly.csrf.secret_key."""
    try:
        key = SystemByteSource().random_bytes(KEY_SIZE)
    except RandomSourceException as exc:
        console.print(f"[error]Error:[/error] {exc}")
        raise SystemExit(1) from exc
    click.echo(encoding.encode(key))


@click.command()
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password to stretch.")
@click.option("--salt", default=None, help="Salt (defaults to the library salt).")
def derive_key_command(password: str, salt: str | None) -> None:
    """Derive a secret key from a password with scrypt."""
    if not password:
        console.print("[error]Error:[/error] password must not be empty")
        raise SystemExit(1)
    key = derive_key(password, salt=salt.encode("utf-8") if salt else DEFAULT_SALT)
    click.echo(encoding.encode(key))
