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
"""Starlette application factory with CSRF protection wired in."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute

from csrfguard.core.config import Config
from csrfguard.logging import configure_logging
from csrfguard.security.properties import CsrfHandlerFactory, CsrfProperties
from csrfguard.security.randomness import RandomSource
from csrfguard.session.adapters.memory import InMemorySessionStore
from csrfguard.session.filter import SessionFilter
from csrfguard.session.ports.outbound import SessionStore
from csrfguard.web.adapters.starlette.csrf_filter import CsrfFilter
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfguard.web.ports.filter import WebFilter


def create_app(
    config: Config | None = None,
    routes: Sequence[BaseRoute] | None = None,
    *,
    session_store: SessionStore | None = None,
    random_source: RandomSource | None = None,
    extra_filters: Sequence[WebFilter] = (),
    configure_logs: bool = True,
    debug: bool = False,
) -> Starlette:
    """Create a Starlette application protected by :class:`CsrfFilter`.

    Includes:
    - Logging configured from ``csrfguard.logging`` (unless ``configure_logs`` is off)
    - ``SessionFilter`` when ``csrfguard.session.enabled`` is set, or when
      session storage or nonces are configured
    - ``CsrfFilter`` built from ``csrfguard.csrf``
    - ``extra_filters`` after CSRF validation

    Routes reach the request's handler as ``request.state.csrf``.
    """
    config = config if config is not None else Config.defaults()
    if configure_logs:
        configure_logging(config)

    properties = config.bind(CsrfProperties)
    filters: list[WebFilter] = []

    if _as_bool(config.get("csrfguard.session.enabled", False)) or properties.uses_session:
        filters.append(
            SessionFilter(
                session_store if session_store is not None else InMemorySessionStore(),
                cookie_name=str(config.get("csrfguard.session.cookie-name", "CSRFGUARD_SESSION")),
                ttl=int(config.get("csrfguard.session.ttl", 1800)),
            )
        )

    filters.append(
        CsrfFilter(
            CsrfHandlerFactory(properties, random_source),
            exclude_patterns=list(properties.exclude_patterns or []),
        )
    )
    filters.extend(extra_filters)

    return Starlette(
        debug=debug,
        routes=list(routes or []),
        middleware=[Middleware(WebFilterChainMiddleware, filters=filters)],
    )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)
