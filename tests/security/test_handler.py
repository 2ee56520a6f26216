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
"""Tests for CsrfHandler — secret lifecycle, token issuing and request validation."""

from __future__ import annotations

import base64
from unittest.mock import Mock

import pytest

from csrfguard.context.request_context import RequestContext
from csrfguard.kernel.exceptions import (
    EntropyException,
    InvalidCsrfTokenException,
    RequestRejectedException,
    TokenStorageException,
)
from csrfguard.security.codec import TokenCodec, XorMasking
from csrfguard.security.handler import CsrfHandler
from csrfguard.security.sources import HeaderSource, PostSource
from csrfguard.security.storage import CookieStorage, SessionStorage
from csrfguard.session.session import HttpSession


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class SequenceRandomSource:
    """Returns the queued byte strings in order, then repeats the last one."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = list(chunks)
        self.calls = 0

    def get_bytes(self, count: int) -> bytes:
        self.calls += 1
        chunk = self._chunks.pop(0) if len(self._chunks) > 1 else self._chunks[0]
        return chunk[:count]


class FailingRandomSource:
    def get_bytes(self, count: int) -> bytes:
        raise EntropyException("no entropy")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _cookie_request(method: str = "GET", secret: bytes | None = None, **kwargs) -> RequestContext:
    cookies = {"csrf_token": _b64(secret)} if secret is not None else {}
    return RequestContext(method, cookies=cookies, **kwargs)


# ---------------------------------------------------------------------------
# Secret lifecycle
# ---------------------------------------------------------------------------


class TestSecretLifecycle:
    def test_generates_and_stores_secret_when_absent(self) -> None:
        request = _cookie_request()
        handler = CsrfHandler(request)

        secret = handler.get_true_secret()

        assert len(secret) == 32
        pending = request.pending_cookies
        assert len(pending) == 1
        assert pending[0].key == "csrf_token"
        assert base64.b64decode(pending[0].value) == secret

    def test_secret_is_cached(self) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.get_true_secret() is handler.get_true_secret()

    def test_loads_stored_secret(self) -> None:
        secret = bytes(range(32))
        request = _cookie_request(secret=secret)
        handler = CsrfHandler(request)

        assert handler.get_true_secret() == secret
        assert request.pending_cookies == []

    def test_replaces_stored_secret_of_wrong_length(self) -> None:
        request = _cookie_request(secret=b"short")
        handler = CsrfHandler(request)

        secret = handler.get_true_secret()

        assert len(secret) == 32
        assert len(request.pending_cookies) == 1

    def test_replaces_undecodable_stored_secret(self) -> None:
        request = RequestContext(cookies={"csrf_token": "!!not base64!!"})
        secret = CsrfHandler(request).get_true_secret()
        assert len(secret) == 32

    def test_configurable_token_length(self) -> None:
        handler = CsrfHandler(_cookie_request(), codec=TokenCodec(16))
        assert len(handler.get_true_secret()) == 16
        assert len(base64.b64decode(handler.get_token())) == 32

    def test_regenerate_invalidates_issued_tokens(self) -> None:
        handler = CsrfHandler(_cookie_request())
        token = handler.get_token()
        assert handler.validate_token(token) is True

        handler.regenerate_token()

        assert handler.validate_token(token) is False
        assert handler.validate_token(handler.get_token()) is True

    def test_regenerate_retries_on_collision(self) -> None:
        old = b"\x00" * 32
        new = b"\x02" * 32
        random_source = SequenceRandomSource(old, old, new)
        request = _cookie_request(secret=old)
        handler = CsrfHandler(request, random_source=random_source)

        handler.regenerate_token()

        assert handler.get_true_secret() == new
        assert random_source.calls == 3

    def test_regenerate_persists_new_secret(self) -> None:
        request = _cookie_request(secret=b"\x00" * 32)
        handler = CsrfHandler(request)

        handler.regenerate_token()

        assert base64.b64decode(request.cookies["csrf_token"]) == handler.get_true_secret()

    def test_regenerate_returns_handler(self) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.regenerate_token() is handler

    def test_reset_reloads_after_external_regeneration(self) -> None:
        session = HttpSession("sid")
        first = CsrfHandler(RequestContext(session=session), storage=SessionStorage())
        second = CsrfHandler(RequestContext(session=session), storage=SessionStorage())

        token = first.get_token()
        second.regenerate_token()
        assert first.validate_token(token) is True  # still cached

        first.reset()
        assert first.validate_token(token) is False
        assert first.get_true_secret() == second.get_true_secret()

    def test_set_storage_drops_cached_secret(self) -> None:
        session = HttpSession("sid")
        session.set_attribute("csrf_token", _b64(b"\x07" * 32))
        handler = CsrfHandler(RequestContext(session=session))
        handler.get_true_secret()

        assert handler.set_storage(SessionStorage()) is handler
        assert handler.get_true_secret() == b"\x07" * 32


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokens:
    def test_issued_token_validates(self) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.validate_token(handler.get_token()) is True

    def test_tokens_differ_but_both_validate(self) -> None:
        handler = CsrfHandler(_cookie_request())
        first = handler.get_token()
        second = handler.get_token()

        assert first != second
        assert handler.validate_token(first) is True
        assert handler.validate_token(second) is True

    def test_token_decodes_to_twice_the_token_length(self) -> None:
        handler = CsrfHandler(_cookie_request())
        assert len(base64.b64decode(handler.get_token())) == 64

    @pytest.mark.parametrize("masking", [None, XorMasking()])
    def test_any_single_bit_flip_fails(self, masking) -> None:
        handler = CsrfHandler(_cookie_request(), codec=TokenCodec(masking=masking))
        raw = bytearray(base64.b64decode(handler.get_token()))

        for bit in range(len(raw) * 8):
            flipped = bytearray(raw)
            flipped[bit // 8] ^= 1 << (bit % 8)
            assert handler.validate_token(_b64(bytes(flipped))) is False, f"bit {bit}"

    @pytest.mark.parametrize(
        "token",
        [
            _b64(b"\x00" * 63),
            _b64(b"\x00" * 65),
            _b64(b"\x00" * 32),
            "",
            "not base64 at all!",
            "é" * 88,
            None,
            12345,
            b"\x00" * 64,
        ],
    )
    def test_malformed_tokens_fail_without_error(self, token) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.validate_token(token) is False

    def test_token_from_other_secret_fails(self) -> None:
        issuer = CsrfHandler(_cookie_request(secret=b"\x01" * 32))
        validator = CsrfHandler(_cookie_request(secret=b"\x02" * 32))
        assert validator.validate_token(issuer.get_token()) is False

    def test_xor_scenario_with_fixed_bytes(self) -> None:
        secret = b"\x00" * 32
        key = b"\x01" * 32
        handler = CsrfHandler(
            _cookie_request(secret=secret),
            codec=TokenCodec(32, XorMasking()),
            random_source=SequenceRandomSource(key),
        )

        token = handler.get_token()

        assert base64.b64decode(token) == key + b"\x01" * 32
        assert handler.validate_token(token) is True

    def test_entropy_fault_propagates(self) -> None:
        handler = CsrfHandler(_cookie_request(), random_source=FailingRandomSource())
        with pytest.raises(EntropyException):
            handler.get_token()

    def test_short_random_output_is_an_entropy_fault(self) -> None:
        handler = CsrfHandler(_cookie_request(), random_source=SequenceRandomSource(b"\x01" * 8))
        with pytest.raises(EntropyException):
            handler.get_true_secret()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequestValidation:
    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "post"])
    def test_unsafe_methods_are_validated(self, method: str) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.is_validated_request(method) is True

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS", "TRACE", "PATCH"])
    def test_other_methods_are_not_validated_by_default(self, method: str) -> None:
        handler = CsrfHandler(_cookie_request())
        assert handler.is_validated_request(method) is False

    def test_validated_methods_are_configurable(self) -> None:
        handler = CsrfHandler(_cookie_request("PATCH"), validated_methods="patch, post")
        assert handler.is_validated_request() is True
        assert handler.is_validated_request("DELETE") is False

    def test_request_token_prefers_first_source(self) -> None:
        request = RequestContext(
            "POST",
            form={"csrf_token": "from-form"},
            headers={"X-CSRF-Token": "from-header"},
        )
        assert CsrfHandler(request).get_request_token() == "from-form"

    def test_request_token_falls_back_to_header(self) -> None:
        request = RequestContext("POST", headers={"x-csrf-token": "from-header"})
        assert CsrfHandler(request).get_request_token() == "from-header"

    def test_request_token_absent(self) -> None:
        assert CsrfHandler(RequestContext("POST")).get_request_token() is None

    def test_source_order_is_configurable(self) -> None:
        request = RequestContext(
            "POST",
            form={"csrf_token": "from-form"},
            headers={"X-CSRF-Token": "from-header"},
        )
        handler = CsrfHandler(request).set_sources([HeaderSource(), PostSource()])
        assert handler.get_request_token() == "from-header"

    def test_safe_method_passes_regardless_of_token(self) -> None:
        request = RequestContext("GET", form={"csrf_token": "garbage"})
        assert CsrfHandler(request).validate_request(throw=True) is True

    def test_validate_request_loads_secret_for_safe_methods(self) -> None:
        request = RequestContext("GET")
        CsrfHandler(request).validate_request()
        assert [c.key for c in request.pending_cookies] == ["csrf_token"]

    def test_valid_header_token_passes(self) -> None:
        secret = b"\x05" * 32
        token = CsrfHandler(_cookie_request(secret=secret)).get_token()
        request = _cookie_request("POST", secret=secret, headers={"X-CSRF-Token": token})

        assert CsrfHandler(request).validate_request(throw=True) is True

    def test_valid_form_token_passes(self) -> None:
        secret = b"\x05" * 32
        token = CsrfHandler(_cookie_request(secret=secret)).get_token()
        request = _cookie_request("PUT", secret=secret, form={"csrf_token": token})

        handler = CsrfHandler(request)
        assert handler.validate_request_token() is True
        assert handler.validate_request() is True

    def test_missing_token_raises_when_throwing(self) -> None:
        handler = CsrfHandler(RequestContext("POST"))
        with pytest.raises(InvalidCsrfTokenException) as exc_info:
            handler.validate_request(throw=True)
        assert exc_info.value.code == "CSRF_TOKEN_INVALID"

    def test_invalid_token_runs_reject_action(self) -> None:
        handler = CsrfHandler(RequestContext("POST", headers={"X-CSRF-Token": _b64(b"\x00" * 64)}))
        with pytest.raises(RequestRejectedException) as exc_info:
            handler.validate_request()
        assert exc_info.value.status_code == 400

    def test_custom_reject_action(self) -> None:
        on_reject = Mock(side_effect=RuntimeError("rejected"))
        handler = CsrfHandler(RequestContext("DELETE"), on_reject=on_reject)

        with pytest.raises(RuntimeError, match="rejected"):
            handler.validate_request()
        on_reject.assert_called_once_with()

    def test_request_property(self) -> None:
        request = RequestContext("POST")
        assert CsrfHandler(request).request is request


# ---------------------------------------------------------------------------
# Storage faults
# ---------------------------------------------------------------------------


class TestStorageFaults:
    def test_cookie_write_after_commit_propagates(self) -> None:
        request = RequestContext("GET")
        request.commit(Mock())
        handler = CsrfHandler(request)

        with pytest.raises(TokenStorageException):
            handler.validate_request()

    def test_committed_request_with_stored_secret_still_validates(self) -> None:
        secret = b"\x03" * 32
        request = _cookie_request(secret=secret)
        request.commit(Mock())
        handler = CsrfHandler(request, storage=CookieStorage())

        assert handler.validate_token(handler.get_token()) is True

    def test_session_storage_without_session_propagates(self) -> None:
        handler = CsrfHandler(RequestContext("POST"), storage=SessionStorage())
        with pytest.raises(TokenStorageException):
            handler.validate_request(throw=True)

    def test_storage_fault_is_not_reported_as_invalid_token(self) -> None:
        handler = CsrfHandler(RequestContext("GET"), storage=SessionStorage())
        with pytest.raises(TokenStorageException):
            handler.validate_token(_b64(b"\x00" * 64))
