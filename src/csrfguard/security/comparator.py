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
"""Constant-time comparison of byte sequences."""

from __future__ import annotations

import secrets


def timed_equals(a: bytes, b: bytes) -> bool:
    """Compare two byte strings in time independent of where they differ.

    Length is not secret: sequences of different length compare unequal
    immediately. Equal-length inputs are always compared in full.
    """
    if len(a) != len(b):
        return False
    return secrets.compare_digest(a, b)
