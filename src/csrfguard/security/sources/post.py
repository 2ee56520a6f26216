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
"""PostSource — token submitted as a form field."""

from __future__ import annotations

from typing import Any

from csrfguard.context.request_context import RequestContext
from csrfguard.security.csrf import CSRF_FORM_FIELD


class PostSource:
    """Looks for the token in the parsed POST body."""

    def __init__(self, field_name: str = CSRF_FORM_FIELD) -> None:
        self._field_name = field_name

    def get_request_token(self, request: RequestContext) -> Any | None:
        value = request.form.get(self._field_name)
        if value is None or value == "":
            return None
        return value
