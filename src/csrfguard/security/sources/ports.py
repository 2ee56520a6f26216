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
"""TokenSource protocol — where a submitted token is found in a request."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from csrfguard.context.request_context import RequestContext


@runtime_checkable
class TokenSource(Protocol):
    """Read-only lookup of the token sent with a request.

    Returns ``None`` when the request carries no token in this location.
    The value is returned as sent; validation rejects non-string values.
    """

    def get_request_token(self, request: RequestContext) -> Any | None: ...
