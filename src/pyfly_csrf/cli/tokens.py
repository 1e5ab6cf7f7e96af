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
"""'pyfly-csrf issue' and 'pyfly-csrf verify' — debug a token pair by hand."""

from __future__ import annotations

import sys

import click

from pyfly_csrf.cli.console import console
from pyfly_csrf.config.properties.csrf import CsrfProperties
from pyfly_csrf.core.config import Config
from pyfly_csrf.kernel.exceptions import CsrfValidationException
from pyfly_csrf.logging import StructlogAdapter
from pyfly_csrf.security.csrf.protection import DoubleSubmitCsrfProtection

_key_option = click.option(
    "--key",
    envvar="PYFLY_CSRF_SECRET_KEY",
    default=None,
    help="Base64url secret key (or set PYFLY_CSRF_SECRET_KEY).",
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/TOML config file with a pyfly.csrf section.",
)


def _build_protection(key: str | None, config_path: str | None) -> tuple[DoubleSubmitCsrfProtection, CsrfProperties]:
    try:
        config = Config.from_file(config_path) if config_path else Config.defaults()
        StructlogAdapter(stream=sys.stderr).configure(config)
        if config_path:
            props = config.bind(CsrfProperties)
        elif key:
            props = CsrfProperties(secret_key=key)
        else:
            raise click.UsageError("Provide --key, --config, or PYFLY_CSRF_SECRET_KEY")
        return DoubleSubmitCsrfProtection.from_properties(props), props
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc


@click.command()
@_key_option
@_config_option
@click.option("--ttl", type=click.IntRange(min=1), default=None, help="Lifetime in seconds.")
def issue_command(key: str | None, config_path: str | None, ttl: int | None) -> None:
    """Issue a cookie/form token pair."""
    protection, props = _build_protection(key, config_path)
    pair = protection.generate_token_pair(ttl or props.ttl_seconds)
    console.print(f"[info]cookie_token[/info]={pair.cookie_token}")
    console.print(f"[info]form_token[/info]={pair.form_token}")


@click.command()
@_key_option
@_config_option
@click.argument("cookie_token")
@click.argument("form_token")
def verify_command(key: str | None, config_path: str | None, cookie_token: str, form_token: str) -> None:
    """Verify a cookie/form token pair."""
    protection, _ = _build_protection(key, config_path)
    try:
        protection.verify_token_pair(cookie_token, form_token)
    except CsrfValidationException as exc:
        console.print(f"[error]rejected[/error] {exc.code}")
        raise SystemExit(1) from exc
    console.print("[success]valid[/success]")
