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
"""SingleToken — one lazily issued token reused for a whole page."""

from __future__ import annotations

from csrfguard.security.handler import CsrfHandler


class SingleToken:
    """Issues one token from *handler* on first access and returns it thereafter.

    Useful in templates that print the token into several forms: only one
    key is drawn, and with a :class:`NonceHandler` only one ledger entry is
    created.
    """

    def __init__(self, handler: CsrfHandler) -> None:
        self._handler = handler
        self._token: str | None = None

    def get_token(self) -> str:
        if self._token is None:
            self._token = self._handler.get_token()
        return self._token

    def __str__(self) -> str:
        return self.get_token()
