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
"""CsrfHandler — issues and validates anti-forgery tokens for one request.

The handler owns the lifecycle of the server-held *secret*: it is loaded
lazily from the configured :class:`TokenStorage`, or generated from the
:class:`RandomSource` and stored when absent or malformed. Tokens handed to
pages are freshly masked encodings of that secret, so any number of
simultaneously issued tokens validate against it.

Typical use, once per request and before any response header is sent::

    handler = CsrfHandler(request, storage=SessionStorage())
    handler.validate_request(throw=True)
    ...
    form_token = handler.get_token()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, NoReturn

from csrfguard.context.request_context import RequestContext
from csrfguard.kernel.exceptions import InvalidCsrfTokenException, RequestRejectedException
from csrfguard.security.codec import TokenCodec
from csrfguard.security.comparator import timed_equals
from csrfguard.security.csrf import VALIDATED_METHODS, normalize_methods
from csrfguard.security.randomness import RandomSource, SystemRandomSource, draw_bytes
from csrfguard.security.sources import HeaderSource, PostSource, TokenSource
from csrfguard.security.storage import CookieStorage, TokenStorage

logger = logging.getLogger(__name__)


def _abort_bad_request() -> NoReturn:
    raise RequestRejectedException("Bad Request: invalid or missing CSRF token")


class CsrfHandler:
    """CSRF token generator and validator bound to a single request.

    Args:
        request: The request being processed.
        storage: Where the secret is persisted. Defaults to :class:`CookieStorage`.
        sources: Token lookups tried in order. Defaults to form field, then header.
        codec: Token masking and wire format. Defaults to HMAC masking, 32 bytes.
        random_source: Supplier of strong random bytes.
        validated_methods: Methods that require a valid token.
        on_reject: Terminal action for failed validation when not throwing.
    """

    def __init__(
        self,
        request: RequestContext,
        *,
        storage: TokenStorage | None = None,
        sources: Sequence[TokenSource] | None = None,
        codec: TokenCodec | None = None,
        random_source: RandomSource | None = None,
        validated_methods: Iterable[str] = VALIDATED_METHODS,
        on_reject: Callable[[], NoReturn] | None = None,
    ) -> None:
        self._request = request
        self._storage: TokenStorage = storage if storage is not None else CookieStorage()
        self._sources: list[TokenSource] = (
            list(sources) if sources is not None else [PostSource(), HeaderSource()]
        )
        self._codec = codec if codec is not None else TokenCodec()
        self._random: RandomSource = random_source if random_source is not None else SystemRandomSource()
        self._validated_methods = normalize_methods(validated_methods)
        self._on_reject = on_reject if on_reject is not None else _abort_bad_request
        self._secret: bytes | None = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def request(self) -> RequestContext:
        return self._request

    @property
    def codec(self) -> TokenCodec:
        return self._codec

    @property
    def token_length(self) -> int:
        return self._codec.token_length

    @property
    def validated_methods(self) -> frozenset[str]:
        return self._validated_methods

    def set_random_source(self, random_source: RandomSource) -> CsrfHandler:
        self._random = random_source
        return self

    def set_storage(self, storage: TokenStorage) -> CsrfHandler:
        """Replace the storage; the secret is reloaded from it on next use."""
        self._storage = storage
        self._secret = None
        return self

    def set_sources(self, sources: Sequence[TokenSource]) -> CsrfHandler:
        self._sources = list(sources)
        return self

    # ------------------------------------------------------------------
    # Secret lifecycle
    # ------------------------------------------------------------------

    def get_true_secret(self) -> bytes:
        """Return the current secret, loading or creating it on first use."""
        if self._secret is None:
            self._secret = self._load_secret()
        return self._secret

    def reset(self) -> None:
        """Forget the cached secret so the next access reloads it from storage."""
        self._secret = None

    def regenerate_token(self) -> CsrfHandler:
        """Replace the secret, invalidating every previously issued token.

        Call after authentication changes (login, logout, privilege change).
        """
        previous = self._secret if self._secret is not None else self._storage.get_stored_token(self._request)
        self._secret = self._generate_secret(previous)
        logger.debug("CSRF secret regenerated")
        return self

    def _load_secret(self) -> bytes:
        stored = self._storage.get_stored_token(self._request)
        if stored is not None and len(stored) == self.token_length:
            return stored
        if stored is not None:
            logger.debug("Stored CSRF secret has wrong length, replacing it")
        return self._generate_secret(stored)

    def _generate_secret(self, previous: bytes | None = None) -> bytes:
        secret = draw_bytes(self._random, self.token_length)
        while secret == previous:
            secret = draw_bytes(self._random, self.token_length)
        self._storage.store_token(self._request, secret)
        logger.debug("CSRF secret generated", extra={"storage": type(self._storage).__name__})
        return secret

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def get_token(self) -> str:
        """Return a newly masked token for the current secret.

        Each call uses a fresh random key, so repeated calls return different
        strings that all validate until the secret is regenerated.
        """
        key = draw_bytes(self._random, self.token_length)
        return self._codec.create(self.get_true_secret(), key)

    def validate_token(self, token: Any) -> bool:
        """Return ``True`` if *token* was issued for the current secret.

        Malformed input (non-string, bad base64, wrong decoded length) is
        rejected with ``False``; only storage and entropy faults raise.
        """
        decoded = self._codec.decode(token)
        if decoded is None:
            return False
        key, masked = decoded
        return self._matches(key, masked)

    def _matches(self, key: bytes, masked: bytes) -> bool:
        expected = self._codec.mask(self.get_true_secret(), key)
        return timed_equals(expected, masked)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def is_validated_request(self, method: str | None = None) -> bool:
        """Return ``True`` if requests with *method* (default: this request's) need a token."""
        return (method or self._request.method).upper() in self._validated_methods

    def get_request_token(self) -> Any | None:
        """Return the token from the first source that has one, else ``None``."""
        for source in self._sources:
            token = source.get_request_token(self._request)
            if token is not None:
                return token
        return None

    def validate_request_token(self) -> bool:
        """Return ``True`` if the request carries a valid token in any source."""
        token = self.get_request_token()
        return token is not None and self.validate_token(token)

    def validate_request(self, throw: bool = False) -> bool:
        """Validate the request, rejecting it when a required token is missing or invalid.

        Loads (and if needed stores) the secret first, so call this before
        any response header is committed. Safe methods always pass.

        Args:
            throw: Raise :class:`InvalidCsrfTokenException` on failure instead of
                running the terminal reject action.

        Returns:
            Always ``True``; failures raise.
        """
        self.get_true_secret()

        if not self.is_validated_request():
            return True

        if not self.validate_request_token():
            logger.warning(
                "CSRF validation failed",
                extra={"method": self._request.method, "token_present": self.get_request_token() is not None},
            )
            if throw:
                raise InvalidCsrfTokenException(
                    "Request token was invalid",
                    context={"method": self._request.method},
                )
            self.kill_request()

        return True

    def kill_request(self) -> NoReturn:
        """Run the terminal reject action (default: raise ``RequestRejectedException``)."""
        self._on_reject()
