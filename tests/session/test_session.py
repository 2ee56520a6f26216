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
"""Tests for HttpSession, InMemorySessionStore and SessionFilter."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from starlette.responses import Response

from csrfguard.session.adapters.memory import InMemorySessionStore
from csrfguard.session.filter import SessionFilter
from csrfguard.session.ports.outbound import SessionStore
from csrfguard.session.session import HttpSession


def _make_request(cookies: dict[str, str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        url=SimpleNamespace(path="/"),
        cookies=cookies or {},
        state=SimpleNamespace(),
    )


class TestHttpSession:
    def test_attributes(self) -> None:
        session = HttpSession("sid")
        assert session.id == "sid"
        assert session.modified is False

        session.set_attribute("a", 1)
        assert session.get_attribute("a") == 1
        assert session.modified is True

    def test_new_session_is_modified(self) -> None:
        assert HttpSession("sid", is_new=True).modified is True


class TestInMemorySessionStore:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemorySessionStore(), SessionStore)

    @pytest.mark.asyncio
    async def test_save_and_get(self) -> None:
        store = InMemorySessionStore()
        await store.save("sid", {"a": 1}, ttl=60)
        assert await store.get("sid") == {"a": 1}
        assert await store.get("other") is None

    @pytest.mark.asyncio
    async def test_returned_data_is_a_copy(self) -> None:
        store = InMemorySessionStore()
        await store.save("sid", {"ledger": {"k": 1.0}}, ttl=60)

        data = await store.get("sid")
        data["ledger"]["other"] = 2.0

        assert await store.get("sid") == {"ledger": {"k": 1.0}}

    @pytest.mark.asyncio
    async def test_expired_session(self) -> None:
        store = InMemorySessionStore()
        await store.save("sid", {"a": 1}, ttl=-1)
        assert await store.get("sid") is None


class TestSessionFilter:
    @pytest.mark.asyncio
    async def test_creates_session_and_sets_cookie(self) -> None:
        store = InMemorySessionStore()
        session_filter = SessionFilter(store, cookie_name="SID")
        request = _make_request()
        call_next = AsyncMock(return_value=Response("ok"))

        response = await session_filter.do_filter(request, call_next)

        session = request.state.session
        assert session.is_new is True
        assert f"SID={session.id}" in response.headers["set-cookie"]
        assert await store.get(session.id) is not None

    @pytest.mark.asyncio
    async def test_loads_existing_session(self) -> None:
        store = InMemorySessionStore()
        await store.save("abc", {"csrf_token": "x"}, ttl=60)
        session_filter = SessionFilter(store, cookie_name="SID")
        request = _make_request({"SID": "abc"})

        response = await session_filter.do_filter(request, AsyncMock(return_value=Response("ok")))

        assert request.state.session.get_attribute("csrf_token") == "x"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_persists_changes_when_downstream_fails(self) -> None:
        store = InMemorySessionStore()
        session_filter = SessionFilter(store)
        request = _make_request()

        async def _failing(req):
            req.state.session.set_attribute("a", 1)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await session_filter.do_filter(request, _failing)

        assert (await store.get(request.state.session.id))["a"] == 1


    @pytest.mark.asyncio
    async def test_unmodified_session_is_not_saved(self) -> None:
        store = SimpleNamespace(get=AsyncMock(return_value={"csrf_token": "x"}), save=AsyncMock())
        session_filter = SessionFilter(store, cookie_name="SID")

        await session_filter.do_filter(_make_request({"SID": "abc"}), AsyncMock(return_value=Response("ok")))

        store.save.assert_not_awaited()
