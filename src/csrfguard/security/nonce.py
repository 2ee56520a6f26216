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
"""NonceHandler — CSRF handler that accepts each issued token only once.

Every token handed out by :meth:`NonceHandler.get_token` is registered in a
ledger kept in the request's session, keyed by the token's masking key. A
token validates only while its key is in the ledger, and a successful
validation removes the key, so replaying the same token string fails.

The ledger maps base64 keys to the time they were issued and keeps issue
order, which :meth:`NonceHandler.prune_storage` uses to evict the oldest
entries. Concurrent requests of the same session are serialised by the
session store, not by this handler.
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any

from csrfguard.context.request_context import RequestContext
from csrfguard.security.csrf import CSRF_NONCE_NAME
from csrfguard.security.handler import CsrfHandler
from csrfguard.security.storage.session import require_session

logger = logging.getLogger(__name__)


class NonceHandler(CsrfHandler):
    """One-time token variant of :class:`CsrfHandler`.

    Args:
        request: The request being processed; must carry an active session.
        nonce_name: Session attribute holding the ledger.
        nonce_limit: If set, the ledger is pruned to this many entries after
            every issued token.
        **kwargs: Passed on to :class:`CsrfHandler`.
    """

    def __init__(
        self,
        request: RequestContext,
        *,
        nonce_name: str = CSRF_NONCE_NAME,
        nonce_limit: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(request, **kwargs)
        if nonce_limit is not None and nonce_limit < 0:
            raise ValueError(f"Nonce limit must not be negative, got {nonce_limit}")
        self._nonce_name = nonce_name
        self._nonce_limit = nonce_limit

    @property
    def nonce_name(self) -> str:
        return self._nonce_name

    def get_token(self) -> str:
        """Issue a token and register its key as unused."""
        token = super().get_token()
        key_id = self._key_id(self._codec.extract_key(token))  # type: ignore[arg-type]

        ledger = self._load_ledger()
        # A repeated key (degenerate random source) is registered again as unused.
        ledger.pop(key_id, None)
        ledger[key_id] = time.time()
        self._save_ledger(ledger)

        if self._nonce_limit is not None:
            self.prune_storage(self._nonce_limit)
        return token

    def validate_token(self, token: Any) -> bool:
        """Validate *token* once; its key is consumed on success.

        Tokens whose key is not in the ledger (never issued, already used,
        pruned, or issued before the last regeneration) are rejected.
        """
        decoded = self._codec.decode(token)
        if decoded is None:
            return False
        key, masked = decoded

        key_id = self._key_id(key)
        ledger = self._load_ledger()
        if key_id not in ledger:
            return False
        if not self._matches(key, masked):
            return False

        del ledger[key_id]
        self._save_ledger(ledger)
        return True

    def regenerate_token(self) -> NonceHandler:
        """Clear the ledger and replace the secret."""
        self._save_ledger({})
        super().regenerate_token()
        return self

    def get_nonce_count(self) -> int:
        """Return the number of issued, not yet used tokens."""
        return len(self._load_ledger())

    def prune_storage(self, limit: int) -> int:
        """Evict the oldest ledger entries until at most *limit* remain.

        Returns:
            The number of evicted entries.
        """
        if limit < 0:
            raise ValueError(f"Nonce limit must not be negative, got {limit}")
        ledger = self._load_ledger()
        excess = len(ledger) - limit
        if excess <= 0:
            return 0

        # Dict order is issue order; timestamps are markers only.
        for key_id in list(ledger)[:excess]:
            del ledger[key_id]
        self._save_ledger(ledger)
        logger.debug("CSRF nonce ledger pruned", extra={"evicted": excess, "limit": limit})
        return excess

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    @staticmethod
    def _key_id(key: bytes) -> str:
        return base64.b64encode(key).decode("ascii")

    def _load_ledger(self) -> dict[str, float]:
        stored = require_session(self._request).get_attribute(self._nonce_name)
        return dict(stored) if isinstance(stored, dict) else {}

    def _save_ledger(self, ledger: dict[str, float]) -> None:
        require_session(self._request).set_attribute(self._nonce_name, ledger)
