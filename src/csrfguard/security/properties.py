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
"""CSRF configuration properties and the handler factory built from them.

YAML structure::

    csrfguard:
      csrf:
        token_length: 32
        storage: cookie            # cookie | session
        storage_name: csrf_token
        form_field: csrf_token
        header_name: X-CSRF-Token
        validated_methods: [POST, PUT, DELETE]
        masking: hmac              # hmac | xor
        cookie_lifetime: 0         # 0 = browser session
        cookie_path: /
        cookie_domain: null
        cookie_secure: false
        cookie_httponly: false
        cookie_samesite: lax
        nonce: false
        nonce_name: csrf_nonces
        nonce_limit: null
        exclude_patterns: []
"""

from __future__ import annotations

from dataclasses import dataclass, field

from csrfguard.context.request_context import RequestContext
from csrfguard.core.config import config_properties
from csrfguard.security.codec import TokenCodec, masking_policy
from csrfguard.security.csrf import (
    CSRF_FORM_FIELD,
    CSRF_HEADER_NAME,
    CSRF_NONCE_NAME,
    CSRF_STORAGE_NAME,
    TOKEN_LENGTH,
    normalize_methods,
)
from csrfguard.security.handler import CsrfHandler
from csrfguard.security.nonce import NonceHandler
from csrfguard.security.randomness import RandomSource, SystemRandomSource
from csrfguard.security.sources import HeaderSource, PostSource, TokenSource
from csrfguard.security.storage import CookieStorage, SessionStorage, TokenStorage


@config_properties(prefix="csrfguard.csrf")
@dataclass
class CsrfProperties:
    """Configuration for CSRF token handling."""

    token_length: int = TOKEN_LENGTH
    storage: str = "cookie"
    storage_name: str = CSRF_STORAGE_NAME
    form_field: str = CSRF_FORM_FIELD
    header_name: str = CSRF_HEADER_NAME
    validated_methods: list[str] | str = field(default_factory=lambda: ["POST", "PUT", "DELETE"])
    masking: str = "hmac"
    cookie_lifetime: int = 0
    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_secure: bool = False
    cookie_httponly: bool = False
    cookie_samesite: str | None = "lax"
    nonce: bool = False
    nonce_name: str = CSRF_NONCE_NAME
    nonce_limit: int | None = None
    exclude_patterns: list[str] = field(default_factory=list)

    @property
    def uses_session(self) -> bool:
        """``True`` if handlers built from these properties need an ``HttpSession``."""
        return self.nonce or self.storage.lower() == "session"


class CsrfHandlerFactory:
    """Builds a fully wired handler for each request from :class:`CsrfProperties`.

    The storage, sources and codec carry no per-request state and are shared
    by every handler the factory creates.
    """

    def __init__(self, properties: CsrfProperties | None = None, random_source: RandomSource | None = None) -> None:
        self._properties = properties if properties is not None else CsrfProperties()
        self._random: RandomSource = random_source if random_source is not None else SystemRandomSource()
        self._methods = normalize_methods(self._properties.validated_methods)
        self._codec = TokenCodec(int(self._properties.token_length), masking_policy(self._properties.masking))
        self._storage = self._create_storage()
        self._sources: list[TokenSource] = [
            PostSource(self._properties.form_field),
            HeaderSource(self._properties.header_name),
        ]

    @property
    def properties(self) -> CsrfProperties:
        return self._properties

    def create(self, request: RequestContext) -> CsrfHandler:
        """Return a handler for *request*: a :class:`NonceHandler` if nonces are enabled."""
        kwargs = {
            "storage": self._storage,
            "sources": self._sources,
            "codec": self._codec,
            "random_source": self._random,
            "validated_methods": self._methods,
        }
        if self._properties.nonce:
            limit = self._properties.nonce_limit
            return NonceHandler(
                request,
                nonce_name=self._properties.nonce_name,
                nonce_limit=int(limit) if limit is not None else None,
                **kwargs,  # type: ignore[arg-type]
            )
        return CsrfHandler(request, **kwargs)  # type: ignore[arg-type]

    def _create_storage(self) -> TokenStorage:
        props = self._properties
        kind = props.storage.lower()
        if kind == "session":
            return SessionStorage(props.storage_name)
        if kind == "cookie":
            return CookieStorage(
                props.storage_name,
                int(props.cookie_lifetime),
                props.cookie_path,
                props.cookie_domain,
                secure=props.cookie_secure,
                httponly=props.cookie_httponly,
                samesite=props.cookie_samesite,
            )
        raise ValueError(f"Unknown CSRF token storage '{props.storage}', expected 'cookie' or 'session'")
