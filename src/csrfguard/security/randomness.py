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
"""RandomSource — the injected capability that supplies strong random bytes."""

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

from csrfguard.kernel.exceptions import EntropyException


@runtime_checkable
class RandomSource(Protocol):
    """Produces *count* cryptographically strong random bytes or fails.

    Implementations raise :class:`EntropyException` when strong randomness
    cannot be guaranteed; they never fall back to a weaker generator.
    """

    def get_bytes(self, count: int) -> bytes: ...


class SystemRandomSource:
    """RandomSource backed by the operating system CSPRNG (``secrets``)."""

    def get_bytes(self, count: int) -> bytes:
        if count < 1:
            raise ValueError(f"Byte count must be positive, got {count}")
        try:
            data = secrets.token_bytes(count)
        except (NotImplementedError, OSError) as exc:
            raise EntropyException(
                "Operating system randomness source is unavailable",
                context={"count": count},
            ) from exc
        return data


def draw_bytes(source: RandomSource, count: int) -> bytes:
    """Draw *count* bytes from *source*, rejecting short or non-bytes output."""
    data = source.get_bytes(count)
    if not isinstance(data, bytes) or len(data) != count:
        raise EntropyException(
            "Random source returned an unexpected number of bytes",
            context={"expected": count, "source": type(source).__name__},
        )
    return data
