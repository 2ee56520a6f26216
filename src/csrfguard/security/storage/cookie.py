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
"""CookieStorage — keeps the secret in a browser cookie."""

from __future__ import annotations

from csrfguard.context.request_context import PendingCookie, RequestContext
from csrfguard.kernel.exceptions import TokenStorageException
from csrfguard.security.csrf import CSRF_STORAGE_NAME
from csrfguard.security.storage._encoding import decode_secret, encode_secret


class CookieStorage:
    """Stores the base64-encoded secret in a cookie.

    Args:
        name: Cookie name.
        lifetime: Cookie lifetime in seconds; ``0`` makes it a browser-session cookie.
        path: Cookie path.
        domain: Cookie domain, or ``None`` for the request host.
        secure: Send the cookie over HTTPS only.
        httponly: Hide the cookie from scripts.
        samesite: ``SameSite`` attribute.
    """

    def __init__(
        self,
        name: str = CSRF_STORAGE_NAME,
        lifetime: int = 0,
        path: str = "/",
        domain: str | None = None,
        *,
        secure: bool = False,
        httponly: bool = False,
        samesite: str | None = "lax",
    ) -> None:
        self._name = name
        self._lifetime = int(lifetime)
        self._path = path
        self._domain = domain
        self._secure = secure
        self._httponly = httponly
        self._samesite = samesite

    @property
    def name(self) -> str:
        return self._name

    def store_token(self, request: RequestContext, token: bytes) -> None:
        if request.committed:
            raise TokenStorageException(
                "Cannot store the CSRF token: response headers already sent",
                context={"cookie": self._name},
            )
        request.set_cookie(
            PendingCookie(
                key=self._name,
                value=encode_secret(token),
                max_age=self._lifetime or None,
                path=self._path,
                domain=self._domain,
                secure=self._secure,
                httponly=self._httponly,
                samesite=self._samesite,
            )
        )

    def get_stored_token(self, request: RequestContext) -> bytes | None:
        return decode_secret(request.cookies.get(self._name))
