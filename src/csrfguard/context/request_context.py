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
"""Explicit per-request state passed to CSRF handlers and their adapters.

A ``RequestContext`` is built once per inbound request (by ``CsrfFilter`` or by
the caller) and handed to the handler, which passes it on to every
``TokenStorage`` and ``TokenSource`` call. It replaces reading the method,
form fields, headers, cookies and session from process-wide globals.

Outbound cookies are buffered until :meth:`RequestContext.commit` copies them
onto the real response; after that the context is *committed* and cookie
writes fail, mirroring "headers already sent".
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from csrfguard.session.session import HttpSession


@dataclass(frozen=True)
class PendingCookie:
    """A ``Set-Cookie`` instruction waiting for the response."""

    key: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = False
    samesite: str | None = "lax"


class RequestContext:
    """Holds the request data CSRF protection needs, plus pending response cookies."""

    def __init__(
        self,
        method: str = "GET",
        *,
        headers: Mapping[str, str] | None = None,
        form: Mapping[str, Any] | None = None,
        cookies: Mapping[str, str] | None = None,
        session: HttpSession | None = None,
    ) -> None:
        self._method = method.upper()
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self._form: Mapping[str, Any] = form or {}
        self._cookies: dict[str, str] = dict(cookies or {})
        self._session = session
        self._pending: dict[str, PendingCookie] = {}
        self._committed = False

    @property
    def method(self) -> str:
        return self._method

    @property
    def form(self) -> Mapping[str, Any]:
        return self._form

    @property
    def cookies(self) -> Mapping[str, str]:
        return self._cookies

    @property
    def session(self) -> HttpSession | None:
        return self._session

    @property
    def committed(self) -> bool:
        """``True`` once response headers have been written."""
        return self._committed

    @property
    def pending_cookies(self) -> list[PendingCookie]:
        return list(self._pending.values())

    def get_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self._headers.get(name.lower())

    def set_cookie(self, cookie: PendingCookie) -> None:
        """Queue a cookie for the response; the latest value per key wins.

        The inbound cookie view is updated too, so later reads within the
        same request observe the new value.

        Raises:
            RuntimeError: If the response headers were already committed.
        """
        if self._committed:
            raise RuntimeError(f"Cannot set cookie '{cookie.key}': response headers already sent")
        self._pending[cookie.key] = cookie
        self._cookies[cookie.key] = cookie.value

    def commit(self, response: Any) -> None:
        """Write queued cookies onto *response* and mark the headers as sent."""
        for cookie in self._pending.values():
            response.set_cookie(
                key=cookie.key,
                value=cookie.value,
                max_age=cookie.max_age,
                path=cookie.path,
                domain=cookie.domain,
                secure=cookie.secure,
                httponly=cookie.httponly,
                samesite=cookie.samesite,
            )
        self._pending.clear()
        self._committed = True
