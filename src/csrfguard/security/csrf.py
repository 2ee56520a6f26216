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
"""CSRF protocol defaults — transport names, token length and method sets."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TOKEN_LENGTH: int = 32
"""Default length in bytes of the secret and of each masking key."""

CSRF_STORAGE_NAME: str = "csrf_token"
"""Name of the cookie or session attribute that persists the secret."""

CSRF_FORM_FIELD: str = "csrf_token"
"""Name of the form field that carries a submitted token."""

CSRF_HEADER_NAME: str = "X-CSRF-Token"
"""Name of the request header that carries a submitted token."""

CSRF_NONCE_NAME: str = "csrf_nonces"
"""Name of the session attribute that holds the one-time token ledger."""

VALIDATED_METHODS: frozenset[str] = frozenset({"POST", "PUT", "DELETE"})
"""HTTP methods whose requests must carry a valid token."""


def normalize_methods(methods: object) -> frozenset[str]:
    """Normalise a method list (iterable or comma-separated string) to upper case."""
    if isinstance(methods, str):
        methods = methods.split(",")
    return frozenset(str(m).strip().upper() for m in methods if str(m).strip())  # type: ignore[attr-defined]
