# SPDX-License-Identifier: Apache-2.0
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

"""
Key material handling for sksatool.
"""

import re

from ..errors import ConfigurationError
from .aes import AESCBC, AES_KEY_SIZE, AES_IV_SIZE

BLANK_KEY = bytes(AES_KEY_SIZE)
BLANK_IV = bytes(AES_IV_SIZE)
HEX_RE = re.compile(r"[0-9a-fA-F]*")


def decode_hex(text, size, what="value"):
    """Decode a hex string into exactly `size` bytes.

    Returns `size` zero bytes when no text is given, so unset keys and IVs
    fall back to the all-zero default.
    """
    if text is None:
        return bytes(size)
    if not HEX_RE.fullmatch(text):
        raise ConfigurationError(
            "{} '{}' is not a valid hex string".format(what, text))
    if len(text) != size * 2:
        raise ConfigurationError(
            "{} must be {} bytes ({} hex digits), got {} digits".format(
                what, size, size * 2, len(text)))
    return bytes.fromhex(text)


def decode_key(text):
    return decode_hex(text, AES_KEY_SIZE, "AES key")


def decode_iv(text):
    return decode_hex(text, AES_IV_SIZE, "AES IV")


def aes_cbc_encrypt(data, key, iv):
    return AESCBC(key).encrypt(data, iv)


def aes_cbc_decrypt(data, key, iv):
    return AESCBC(key).decrypt(data, iv)
