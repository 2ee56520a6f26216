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
"""SessionStorage — keeps the secret in a server-side session attribute."""

from __future__ import annotations

from csrfguard.context.request_context import RequestContext
from csrfguard.kernel.exceptions import TokenStorageException
from csrfguard.security.csrf import CSRF_STORAGE_NAME
from csrfguard.security.storage._encoding import decode_secret, encode_secret
from csrfguard.session.session import HttpSession


def require_session(request: RequestContext) -> HttpSession:
    """Return the request's active session or raise ``TokenStorageException``."""
    session = request.session
    if session is None:
        raise TokenStorageException("Cannot access the CSRF token: no active session")
    return session


class SessionStorage:
    """Stores the base64-encoded secret in the ``HttpSession`` of the request."""

    def __init__(self, name: str = CSRF_STORAGE_NAME) -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def store_token(self, request: RequestContext, token: bytes) -> None:
        require_session(request).set_attribute(self._name, encode_secret(token))

    def get_stored_token(self, request: RequestContext) -> bytes | None:
        return decode_secret(require_session(request).get_attribute(self._name))
