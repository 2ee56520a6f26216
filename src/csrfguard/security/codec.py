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
"""TokenCodec — masking of the secret and the token wire format.

A token on the wire is ``base64(key || mask(secret, key))`` where *key* is a
fresh random value of ``token_length`` bytes. Because every issued token uses
a new key, the same secret never appears twice in a response body, which
defeats compression-oracle (BREACH-style) attacks.

Two masking policies are provided:

* :class:`HmacMasking` (default): a one-way keyed hash. The raw secret is
  never reconstructed from client-supplied material.
* :class:`XorMasking`: byte-wise XOR of key and secret. Reversible.

Both are validated the same way: recompute ``mask(secret, submitted_key)``
and compare it in constant time with the submitted masked value.
"""

from __future__ import annotations

import base64
import binascii
import hmac
from typing import Any, Protocol, runtime_checkable

from csrfguard.security.csrf import TOKEN_LENGTH


@runtime_checkable
class MaskingPolicy(Protocol):
    """Length-preserving transform of a secret under a per-token key."""

    name: str

    def mask(self, secret: bytes, key: bytes) -> bytes: ...


class XorMasking:
    """Masks the secret by XOR-ing it with the key."""

    name = "xor"

    def mask(self, secret: bytes, key: bytes) -> bytes:
        if len(secret) != len(key):
            raise ValueError(f"Key length {len(key)} does not match secret length {len(secret)}")
        return bytes(s ^ k for s, k in zip(secret, key))


class HmacMasking:
    """Masks the secret with HMAC(key, secret), expanded to the secret's length.

    Output blocks are ``HMAC(key, secret || counter)`` for counter 1, 2, ...
    concatenated and truncated, so any token length is supported.
    """

    name = "hmac"

    def __init__(self, digest: str = "sha256") -> None:
        self._digest = digest

    def mask(self, secret: bytes, key: bytes) -> bytes:
        if len(secret) != len(key):
            raise ValueError(f"Key length {len(key)} does not match secret length {len(secret)}")
        out = b""
        counter = 1
        while len(out) < len(secret):
            out += hmac.new(key, secret + counter.to_bytes(4, "big"), self._digest).digest()
            counter += 1
        return out[: len(secret)]


MASKING_POLICIES: dict[str, type[XorMasking] | type[HmacMasking]] = {
    XorMasking.name: XorMasking,
    HmacMasking.name: HmacMasking,
}


def masking_policy(name: str) -> MaskingPolicy:
    """Return a masking policy instance by configuration name."""
    try:
        return MASKING_POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown masking policy '{name}', expected one of {sorted(MASKING_POLICIES)}"
        ) from None


class TokenCodec:
    """Encodes and decodes masked tokens of a fixed length."""

    def __init__(self, token_length: int = TOKEN_LENGTH, masking: MaskingPolicy | None = None) -> None:
        if token_length < 1:
            raise ValueError(f"Token length must be positive, got {token_length}")
        self._token_length = token_length
        self._masking = masking if masking is not None else HmacMasking()

    @property
    def token_length(self) -> int:
        return self._token_length

    @property
    def masking(self) -> MaskingPolicy:
        return self._masking

    def mask(self, secret: bytes, key: bytes) -> bytes:
        """Mask *secret* under *key*; both must be ``token_length`` bytes."""
        if len(secret) != self._token_length or len(key) != self._token_length:
            raise ValueError(f"Secret and key must both be {self._token_length} bytes")
        return self._masking.mask(secret, key)

    def encode(self, key: bytes, masked: bytes) -> str:
        """Return the wire form ``base64(key || masked)``."""
        if len(key) != self._token_length or len(masked) != self._token_length:
            raise ValueError(f"Key and masked secret must both be {self._token_length} bytes")
        return base64.b64encode(key + masked).decode("ascii")

    def decode(self, token: Any) -> tuple[bytes, bytes] | None:
        """Split a wire token into ``(key, masked)``.

        Returns ``None`` for anything that is not a string of valid base64
        decoding to exactly ``2 * token_length`` bytes. Never raises for
        malformed input.
        """
        if not isinstance(token, str):
            return None
        try:
            raw = base64.b64decode(token.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error):
            return None
        if len(raw) != 2 * self._token_length:
            return None
        return raw[: self._token_length], raw[self._token_length :]

    def extract_key(self, token: Any) -> bytes | None:
        """Return the masking key of a wire token, or ``None`` if malformed."""
        decoded = self.decode(token)
        return decoded[0] if decoded is not None else None

    def create(self, secret: bytes, key: bytes) -> str:
        """Mask *secret* under *key* and encode the result."""
        return self.encode(key, self.mask(secret, key))
