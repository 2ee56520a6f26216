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
"""HeaderSource — token submitted in a custom request header."""

from __future__ import annotations

from csrfguard.context.request_context import RequestContext
from csrfguard.security.csrf import CSRF_HEADER_NAME


class HeaderSource:
    """Looks for the token in a request header (name matched case-insensitively)."""

    def __init__(self, header_name: str = CSRF_HEADER_NAME) -> None:
        self._header_name = header_name

    def get_request_token(self, request: RequestContext) -> str | None:
        value = (request.get_header(self._header_name) or "").strip()
        return value or None
