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
"""csrfguard Security — anti-forgery token issuing and validation.

Typical use, once per request::

    handler = CsrfHandlerFactory(config.bind(CsrfProperties)).create(request)
    handler.validate_request(throw=True)
    token = handler.get_token()
"""

from csrfguard.security.codec import HmacMasking, MaskingPolicy, TokenCodec, XorMasking, masking_policy
from csrfguard.security.comparator import timed_equals
from csrfguard.security.handler import CsrfHandler
from csrfguard.security.nonce import NonceHandler
from csrfguard.security.properties import CsrfHandlerFactory, CsrfProperties
from csrfguard.security.randomness import RandomSource, SystemRandomSource
from csrfguard.security.single_token import SingleToken
from csrfguard.security.sources import HeaderSource, PostSource, TokenSource
from csrfguard.security.storage import CookieStorage, SessionStorage, TokenStorage

__all__ = [
    # Handlers
    "CsrfHandler",
    "NonceHandler",
    "SingleToken",
    "CsrfHandlerFactory",
    "CsrfProperties",
    # Codec
    "TokenCodec",
    "MaskingPolicy",
    "HmacMasking",
    "XorMasking",
    "masking_policy",
    "timed_equals",
    # Randomness
    "RandomSource",
    "SystemRandomSource",
    # Storage
    "TokenStorage",
    "CookieStorage",
    "SessionStorage",
    # Sources
    "TokenSource",
    "PostSource",
    "HeaderSource",
]
