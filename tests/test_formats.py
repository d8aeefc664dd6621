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

import struct

import pytest

from sksatool.errors import FormatError
from sksatool.formats import (
    BOOTROM_SIZE, CMD_DESC_SIZE, CMD_HEAD_SIZE, CMD_SIZE, VIRAGE2_SIZE,
    CmdHead, bootrom_keys, parse_virage2)
from tests.constants import (
    BOOT_APP_KEY, SA2_IV, SA2_KEY, SA2_KEY_IV, SK_IV, SK_KEY, make_bootrom,
    make_virage2)


def test_sizes():
    assert VIRAGE2_SIZE == 0x100
    assert CMD_HEAD_SIZE == 0x1ac
    assert CMD_SIZE == 0x29ac


class TestVirage2:

    def test_parse(self):
        v2 = parse_virage2(make_virage2())
        assert v2.boot_app_key == BOOT_APP_KEY
        assert v2.bbid == 0x00c0ffee
        assert len(make_virage2()) == VIRAGE2_SIZE

    def test_boot_app_key_offset(self):
        data = bytes(0xb8) + BOOT_APP_KEY + bytes(VIRAGE2_SIZE - 0xc8)
        assert parse_virage2(data).boot_app_key == BOOT_APP_KEY

    def test_trailing_bytes_ignored(self):
        v2 = parse_virage2(make_virage2() + b"\xff" * 32)
        assert v2.boot_app_key == BOOT_APP_KEY

    def test_too_short(self):
        with pytest.raises(FormatError):
            parse_virage2(make_virage2()[:-1])


class TestBootrom:

    def test_keys(self):
        assert bootrom_keys(make_bootrom()) == (SK_KEY, SK_IV)

    def test_too_short(self):
        with pytest.raises(FormatError):
            bootrom_keys(make_bootrom()[:BOOTROM_SIZE - 1])


class TestCmdHead:

    def make_head(self, size=0x8000):
        return CmdHead.unsigned(SA2_KEY, SA2_IV, BOOT_APP_KEY, SA2_KEY_IV,
                                size, 0x5678)

    def test_layout(self):
        buf = self.make_head().to_bytes()
        assert len(buf) == CMD_SIZE
        assert buf[:CMD_DESC_SIZE] == bytes(CMD_DESC_SIZE)
        head = buf[CMD_DESC_SIZE:]
        assert struct.unpack(">I", head[12:16])[0] == 0x8000
        assert head[20:36] == SA2_KEY_IV
        assert head[56:72] == SA2_IV
        assert struct.unpack(">I", head[152:156])[0] == 0x5678
        assert head[172:] == bytes(256)

    def test_deterministic(self):
        assert self.make_head().to_bytes() == self.make_head().to_bytes()

    def test_key_wrapped(self):
        head = self.make_head()
        assert head.key != SA2_KEY
        assert head.content_key(BOOT_APP_KEY) == SA2_KEY

    def test_key_depends_on_boot_app_key(self):
        other = CmdHead.unsigned(SA2_KEY, SA2_IV, bytes(16), SA2_KEY_IV,
                                 0x8000, 0x5678)
        assert other.key != self.make_head().key

    def test_from_bytes(self):
        head = self.make_head()
        parsed = CmdHead.from_bytes(head.to_bytes())
        assert parsed == head
        assert parsed.size == 0x8000
        assert parsed.content_id == 0x5678

    def test_from_bytes_truncated(self):
        with pytest.raises(FormatError):
            CmdHead.from_bytes(self.make_head().to_bytes()[:-1])

    def test_size_out_of_range(self):
        with pytest.raises(FormatError):
            self.make_head(size=1 << 32).to_bytes()
