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
AES-128-CBC as used for SKSA components and content metadata keys.
"""

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..errors import EncryptionError

AES_KEY_SIZE = 16
AES_IV_SIZE = 16


class AESCBC():
    def __init__(self, key):
        if len(key) != AES_KEY_SIZE:
            raise EncryptionError(
                "Invalid AES key length for AES-CBC: must be {} bytes, "
                "got {}.".format(AES_KEY_SIZE, len(key)))
        self.key = bytes(key)

    def _cipher(self, iv):
        if len(iv) != AES_IV_SIZE:
            raise EncryptionError(
                "Invalid IV length for AES-CBC: must be {} bytes, "
                "got {}.".format(AES_IV_SIZE, len(iv)))
        return Cipher(algorithms.AES(self.key), modes.CBC(bytes(iv)))

    def encrypt(self, data, iv):
        """Encrypt data, which must already be a whole number of blocks.
        No padding scheme is applied."""
        encryptor = self._cipher(iv).encryptor()
        try:
            return encryptor.update(bytes(data)) + encryptor.finalize()
        except ValueError as e:
            raise EncryptionError("AES-CBC encryption failed: {}".format(e))

    def decrypt(self, data, iv):
        decryptor = self._cipher(iv).decryptor()
        try:
            return decryptor.update(bytes(data)) + decryptor.finalize()
        except ValueError as e:
            raise EncryptionError("AES-CBC decryption failed: {}".format(e))
