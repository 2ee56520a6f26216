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
"""WebFilter — the contract WebFilterChainMiddleware runs."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable

# Continues the chain: the next filter, or the application itself.
CallNext = Callable[..., Coroutine[Any, Any, Any]]


@runtime_checkable
class WebFilter(Protocol):
    """A request filter such as ``SessionFilter`` or ``CsrfFilter``.

    ``do_filter`` either answers on its own (a CSRF rejection) or awaits
    ``call_next(request)`` and may then touch the response, e.g. to add the
    cookies queued during validation.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...
