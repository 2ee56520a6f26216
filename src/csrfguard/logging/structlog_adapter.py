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
"""StructlogAdapter — renders csrfguard log records with structlog.

Library modules log through ``logging.getLogger(__name__)`` and pass their
fields as ``extra=``. The adapter installs a root handler whose
``ProcessorFormatter`` lifts those fields into the event dict, masks the
ones that could carry a CSRF secret or token, and renders the result as
console or JSON lines.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from csrfguard.core.config import Config

REDACTED = "***"

# Event keys whose values must never reach a log sink.
SENSITIVE_KEYS: frozenset[str] = frozenset({"secret", "token", "csrf_token", "key"})


def redact_sensitive(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor replacing secret-bearing values with ``***``."""
    for name in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[name] = REDACTED
    return event_dict


class StructlogAdapter:
    """Default :class:`LoggingPort` backed by structlog.

    Reads ``csrfguard.logging.format`` (``console`` or ``json``) and
    ``csrfguard.logging.level``, where ``root`` sets the root level and any
    other key sets the level of that logger.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        level_section = dict(config.get_section("csrfguard.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()
        self._module_levels = {k: str(v).upper() for k, v in level_section.items()}
        self._format = str(config.get("csrfguard.logging.format", "console")).lower()

        self._install_handler()
        for module, level in self._module_levels.items():
            logging.getLogger(module).setLevel(_level(level))

    def _install_handler(self) -> None:
        shared: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            redact_sensitive,
        ]

        renderer: structlog.types.Processor
        if self._format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()

        structlog.configure(
            processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            )
        )
        root = logging.getLogger()
        root.handlers[:] = [handler]
        root.setLevel(_level(self._root_level))


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
