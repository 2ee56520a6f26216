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
"""CsrfFilter — validates CSRF tokens before the application runs.

For every request the filter:

* builds a :class:`RequestContext` from the Starlette request (the form body
  is parsed for ``application/x-www-form-urlencoded`` and
  ``multipart/form-data`` posts),
* creates a handler from its :class:`CsrfHandlerFactory` and exposes it as
  ``request.state.csrf`` so routes can call ``get_token()``,
* runs ``validate_request()``; safe methods always pass, unsafe methods
  without a valid token get a ``400`` JSON response and never reach the
  application,
* writes the cookies queued by the handler onto the response.

Storage and entropy faults are not caught. When the secret or the nonce
ledger live in the session, ``SessionFilter`` must run first.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.responses import JSONResponse

from csrfguard.context.request_context import RequestContext
from csrfguard.kernel.exceptions import InvalidCsrfTokenException, RequestRejectedException
from csrfguard.security.properties import CsrfHandlerFactory
from csrfguard.web.filters import OncePerRequestFilter
from csrfguard.web.ports.filter import CallNext

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class CsrfFilter(OncePerRequestFilter):
    """Per-request CSRF protection backed by :class:`CsrfHandler`.

    Args:
        factory: Builds the handler for each request.
        throw: Use the raising validation mode instead of the reject action.
            Both end in a ``400`` response.
        exclude_patterns: Paths that are never validated.
    """

    def __init__(
        self,
        factory: CsrfHandlerFactory | None = None,
        *,
        throw: bool = False,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        self._factory = factory if factory is not None else CsrfHandlerFactory()
        self._throw = throw
        if exclude_patterns is not None:
            self.exclude_patterns = list(exclude_patterns)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        context = await self._build_context(request)
        handler = self._factory.create(context)
        request.state.csrf = handler

        try:
            handler.validate_request(throw=self._throw)
        except (InvalidCsrfTokenException, RequestRejectedException) as exc:
            logger.warning(
                "CSRF request rejected",
                extra={"method": context.method, "path": request.url.path, "code": exc.code},
            )
            response = JSONResponse(
                {"error": str(exc), "code": exc.code},
                status_code=getattr(exc, "status_code", 400),
            )
            context.commit(response)
            return response

        response = await call_next(request)
        context.commit(response)
        return response

    @staticmethod
    async def _build_context(request: Any) -> RequestContext:
        form: Any = {}
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(_FORM_CONTENT_TYPES):
            # Read the raw body first so it can be replayed to the application.
            await request.body()
            try:
                form = await request.form()
            except (HTTPException, MultiPartException):
                # An unparseable body carries no token; validation fails closed.
                logger.debug("Unparseable form body", extra={"method": request.method})
                form = {}

        return RequestContext(
            request.method,
            headers=request.headers,
            form=form,
            cookies=request.cookies,
            session=getattr(request.state, "session", None),
        )
