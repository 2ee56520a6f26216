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
"""Tests for the cookie and session TokenStorage adapters."""

from __future__ import annotations

import base64
from unittest.mock import Mock

import pytest

from csrfguard.context.request_context import RequestContext
from csrfguard.kernel.exceptions import TokenStorageException
from csrfguard.security.storage import CookieStorage, SessionStorage, TokenStorage
from csrfguard.session.session import HttpSession


class TestCookieStorage:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(CookieStorage(), TokenStorage)

    def test_store_queues_cookie_with_defaults(self) -> None:
        request = RequestContext()
        CookieStorage().store_token(request, b"\xff" * 32)

        [cookie] = request.pending_cookies
        assert cookie.key == "csrf_token"
        assert base64.b64decode(cookie.value) == b"\xff" * 32
        assert cookie.path == "/"
        assert cookie.max_age is None
        assert cookie.secure is False
        assert cookie.httponly is False
        assert cookie.samesite == "lax"

    def test_store_applies_options(self) -> None:
        request = RequestContext()
        storage = CookieStorage(
            "xsrf", 3600, "/app", "example.com", secure=True, httponly=True, samesite="strict"
        )
        storage.store_token(request, b"\x01" * 32)

        [cookie] = request.pending_cookies
        assert cookie.key == "xsrf"
        assert cookie.max_age == 3600
        assert cookie.path == "/app"
        assert cookie.domain == "example.com"
        assert cookie.secure is True
        assert cookie.httponly is True
        assert cookie.samesite == "strict"

    def test_stored_value_is_readable_in_same_request(self) -> None:
        request = RequestContext()
        storage = CookieStorage()
        storage.store_token(request, b"\x42" * 32)
        assert storage.get_stored_token(request) == b"\x42" * 32

    def test_get_reads_inbound_cookie(self) -> None:
        request = RequestContext(cookies={"csrf_token": base64.b64encode(b"\x09" * 32).decode()})
        assert CookieStorage().get_stored_token(request) == b"\x09" * 32

    @pytest.mark.parametrize("value", ["", "***", "é"])
    def test_malformed_cookie_reads_as_absent(self, value: str) -> None:
        request = RequestContext(cookies={"csrf_token": value})
        assert CookieStorage().get_stored_token(request) is None

    def test_missing_cookie_reads_as_absent(self) -> None:
        assert CookieStorage().get_stored_token(RequestContext()) is None

    def test_store_after_commit_fails(self) -> None:
        request = RequestContext()
        request.commit(Mock())

        with pytest.raises(TokenStorageException) as exc_info:
            CookieStorage().store_token(request, b"\x00" * 32)
        assert exc_info.value.code == "CSRF_STORAGE_ERROR"


class TestSessionStorage:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(SessionStorage(), TokenStorage)

    def test_round_trip(self) -> None:
        session = HttpSession("sid")
        request = RequestContext(session=session)
        storage = SessionStorage()

        storage.store_token(request, b"\x33" * 32)

        assert storage.get_stored_token(request) == b"\x33" * 32
        assert session.modified is True

    def test_custom_attribute_name(self) -> None:
        session = HttpSession("sid")
        SessionStorage("my_secret").store_token(RequestContext(session=session), b"\x01" * 32)
        assert session.get_attribute("my_secret") is not None
        assert session.get_attribute("csrf_token") is None

    def test_absent_attribute(self) -> None:
        request = RequestContext(session=HttpSession("sid"))
        assert SessionStorage().get_stored_token(request) is None

    def test_no_session_fails(self) -> None:
        with pytest.raises(TokenStorageException):
            SessionStorage().get_stored_token(RequestContext())
        with pytest.raises(TokenStorageException):
            SessionStorage().store_token(RequestContext(), b"\x00" * 32)
