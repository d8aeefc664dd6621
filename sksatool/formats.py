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
Platform structures used by an SKSA build.

The Virage2 descriptor supplies the boot application key, the boot ROM
carries the SK key and IV, and every secure application is preceded by
content metadata (CMD) whose head records how to decrypt it.  All of
these are big-endian.
"""

import struct
from collections import namedtuple

from .errors import FormatError
from .keys import AESCBC, AES_KEY_SIZE, AES_IV_SIZE

# NAND block size; SA payloads and CMD blocks are laid out in these units.
BLOCK_SIZE = 0x4000

VIRAGE2_SIZE = 0x100
VIRAGE2_FORMAT = '>20s64s64sI32s16s16s16s16sII'

Virage2 = namedtuple('Virage2', ['sk_hash', 'rom_patch', 'public_key',
                                 'bbid', 'private_key', 'boot_app_key',
                                 'recrypt_list_key', 'app_state_key',
                                 'self_msg_key', 'csum_adjust',
                                 'jtag_enable'])

BOOTROM_SIZE = 0x2000
BOOTROM_SK_KEY_OFFSET = 0x1fe0
BOOTROM_SK_IV_OFFSET = 0x1ff0

CMD_DESC_SIZE = 0x2800
CMD_HEAD_FORMAT = '>IIIII16s20s16sIIII64sI16s256s'
CMD_HEAD_SIZE = struct.calcsize(CMD_HEAD_FORMAT)
CMD_SIZE = CMD_DESC_SIZE + CMD_HEAD_SIZE

CMD_HASH_SIZE = 20
CMD_ISSUER_SIZE = 64
CMD_SIGNATURE_SIZE = 256


def parse_virage2(data):
    """Parse a Virage2 descriptor.  Bytes past the record are ignored."""
    if len(data) < VIRAGE2_SIZE:
        raise FormatError(
            "Virage2 descriptor is too short (got 0x{:x} bytes, "
            "need 0x{:x})".format(len(data), VIRAGE2_SIZE))
    return Virage2._make(struct.unpack_from(VIRAGE2_FORMAT, data))


def bootrom_keys(data):
    """Return the (key, iv) pair protecting the SK from a boot ROM image."""
    if len(data) < BOOTROM_SIZE:
        raise FormatError(
            "Boot ROM image is too short (got 0x{:x} bytes, "
            "need 0x{:x})".format(len(data), BOOTROM_SIZE))
    key = bytes(data[BOOTROM_SK_KEY_OFFSET:
                     BOOTROM_SK_KEY_OFFSET + AES_KEY_SIZE])
    iv = bytes(data[BOOTROM_SK_IV_OFFSET:BOOTROM_SK_IV_OFFSET + AES_IV_SIZE])
    return key, iv


class CmdHead():
    """Content metadata head describing one encrypted secure application."""

    FIELDS = ('unused_padding', 'ca_crl_version', 'cp_crl_version', 'size',
              'desc_flags', 'common_cmd_iv', 'hash', 'iv', 'exec_flags',
              'hw_access_rights', 'secure_kernel_rights', 'bbid', 'issuer',
              'content_id', 'key', 'signature')

    def __init__(self, size, content_id, key, iv, common_cmd_iv,
                 unused_padding=0, ca_crl_version=0, cp_crl_version=0,
                 desc_flags=0, hash=bytes(CMD_HASH_SIZE), exec_flags=0,
                 hw_access_rights=0, secure_kernel_rights=0, bbid=0,
                 issuer=bytes(CMD_ISSUER_SIZE),
                 signature=bytes(CMD_SIGNATURE_SIZE)):
        self.unused_padding = unused_padding
        self.ca_crl_version = ca_crl_version
        self.cp_crl_version = cp_crl_version
        self.size = size
        self.desc_flags = desc_flags
        self.common_cmd_iv = common_cmd_iv
        self.hash = hash
        self.iv = iv
        self.exec_flags = exec_flags
        self.hw_access_rights = hw_access_rights
        self.secure_kernel_rights = secure_kernel_rights
        self.bbid = bbid
        self.issuer = issuer
        self.content_id = content_id
        self.key = key
        self.signature = signature

    def __repr__(self):
        return "<CmdHead content_id=0x{:08x}, size=0x{:x}>".format(
            self.content_id, self.size)

    def __eq__(self, other):
        if not isinstance(other, CmdHead):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @staticmethod
    def unsigned(key, iv, boot_app_key, key_iv, size, content_id):
        """Build an unsigned head for a payload of `size` bytes.

        The content key is stored wrapped with the platform boot app key,
        using `key_iv` as the CBC IV; the payload IV is stored in clear.
        """
        wrapped = AESCBC(boot_app_key).encrypt(key, key_iv)
        return CmdHead(size=size, content_id=content_id, key=wrapped, iv=iv,
                       common_cmd_iv=key_iv)

    def content_key(self, boot_app_key):
        """Unwrap the content key with the platform boot app key."""
        return AESCBC(boot_app_key).decrypt(self.key, self.common_cmd_iv)

    def to_dict(self):
        return {name: getattr(self, name) for name in self.FIELDS}

    def to_bytes(self):
        """Serialize the CMD: an empty description area, then the head."""
        try:
            head = struct.pack(CMD_HEAD_FORMAT,
                               *(getattr(self, name) for name in self.FIELDS))
        except struct.error as e:
            raise FormatError("Can't encode content metadata: {}".format(e))
        return bytes(CMD_DESC_SIZE) + head

    @staticmethod
    def from_bytes(data):
        """Parse a serialized CMD as produced by `to_bytes`."""
        if len(data) < CMD_SIZE:
            raise FormatError(
                "Content metadata is truncated (got 0x{:x} bytes, "
                "need 0x{:x})".format(len(data), CMD_SIZE))
        values = struct.unpack_from(CMD_HEAD_FORMAT, data, CMD_DESC_SIZE)
        return CmdHead(**dict(zip(CmdHead.FIELDS, values)))
