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
"""StructlogAdapter — routes the library's structlog events through stdlib logging.

Token issuance and verification log through ``structlog.get_logger``.
Until an adapter is configured those events go to structlog's default
printer; after :meth:`StructlogAdapter.configure` they honour the
``pyfly.logging`` section (root and per-logger levels, console or JSON
rendering) and are written to the adapter's stream.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from pyfly_csrf.config.properties.logging import LoggingProperties
from pyfly_csrf.core.config import Config

_FORMATS = ("console", "json")


class StructlogAdapter:
    """Configures structlog and the stdlib root logger from :class:`LoggingProperties`.

    Args:
        stream: Where rendered events are written. Defaults to ``sys.stdout``
            at configure time; the CLI passes ``sys.stderr`` so command
            output stays machine-readable.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream
        self.root_level: str = "INFO"
        self.format: str = "console"
        self.logger_levels: dict[str, str] = {}

    def configure(self, config: Config) -> LoggingProperties:
        """Bind ``pyfly.logging`` from *config* and apply it. Returns the bound properties."""
        props = config.bind(LoggingProperties)
        levels = {name: str(level).upper() for name, level in dict(props.level).items()}
        self.root_level = levels.pop("root", "INFO")
        self.logger_levels = levels
        self.format = str(props.format).lower()
        if self.format not in _FORMATS:
            raise ValueError(f"pyfly.logging.format must be one of {_FORMATS}, got {props.format!r}")
        for level in (self.root_level, *self.logger_levels.values()):
            self._level(level)

        self._setup_structlog()
        for name, level in self.logger_levels.items():
            self.set_level(name, level)
        return props

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(self._level(level))

    @staticmethod
    def _level(name: str) -> int:
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level {name!r}")
        return level

    def _setup_structlog(self) -> None:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer() if self.format == "json" else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.UnicodeDecoder(),
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=self._stream or sys.stdout,
            level=self._level(self.root_level),
            force=True,
        )
