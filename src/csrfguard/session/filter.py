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
"""SessionFilter — attaches an HttpSession to each request."""

from __future__ import annotations

import secrets
from typing import Any

from csrfguard.session.ports.outbound import SessionStore
from csrfguard.session.session import HttpSession
from csrfguard.web.filters import OncePerRequestFilter
from csrfguard.web.ports.filter import CallNext


class SessionFilter(OncePerRequestFilter):
    """Loads the session named by the session cookie into ``request.state.session``.

    An unknown or expired cookie starts a new session, which receives a
    cookie on the response. Modified sessions are saved even when the
    downstream app raises, so an issued nonce is never lost.

    Must run before ``CsrfFilter`` when the CSRF secret or nonce ledger
    live in the session.
    """

    def __init__(self, store: SessionStore, cookie_name: str = "CSRFGUARD_SESSION", ttl: int = 1800) -> None:
        self._store = store
        self._cookie_name = cookie_name
        self._ttl = ttl

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._load(request.cookies.get(self._cookie_name))
        request.state.session = session

        try:
            response = await call_next(request)
        finally:
            if session.modified:
                await self._store.save(session.id, session.get_data(), self._ttl)

        if session.is_new:
            response.set_cookie(
                key=self._cookie_name,
                value=session.id,
                max_age=self._ttl,
                httponly=True,
                samesite="lax",
            )
        return response

    async def _load(self, session_id: str | None) -> HttpSession:
        if session_id:
            data = await self._store.get(session_id)
            if data is not None:
                return HttpSession(session_id, data)
        return HttpSession(secrets.token_urlsafe(32), is_new=True)
