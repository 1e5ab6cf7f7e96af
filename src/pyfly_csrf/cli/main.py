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
"""PyFly CSRF CLI — key management and token debugging."""

from __future__ import annotations

import click

from pyfly_csrf.cli.console import print_banner


class PyFlyCsrfCLI(click.Group):
    """Custom Click group that shows the banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=PyFlyCsrfCLI)
@click.version_option(package_name="pyfly-csrf")
def cli() -> None:
    """PyFly CSRF — anti-forgery token tooling."""


from pyfly_csrf.cli.keys import derive_key_command, keygen_command
from pyfly_csrf.cli.tokens import issue_command, verify_command

cli.add_command(keygen_command, name="keygen")
cli.add_command(derive_key_command, name="derive-key")
cli.add_command(issue_command, name="issue")
cli.add_command(verify_command, name="verify")
