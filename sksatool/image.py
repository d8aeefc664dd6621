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
SKSA image assembly.

An SKSA is the encrypted SK padded to SK_SIZE, followed by one block of
content metadata and the encrypted payload for each secure application:

    enc(SK) | cmd(SA1) | enc(SA1) [| cmd(SA2) | enc(SA2)]

There are no length prefixes; readers know SK_SIZE and take each payload
length from the CMD head in front of it.
"""

import logging
import os.path
import pkgutil
import shutil
import tempfile
import zlib
from enum import Enum

import click
from intelhex import IntelHex, IntelHexError

from .errors import (
    ComponentTooLong, ConfigurationError, FormatError, SourceError)
from .formats import BLOCK_SIZE, CmdHead, bootrom_keys, parse_virage2
from .keys import BLANK_IV, BLANK_KEY, aes_cbc_encrypt

logger = logging.getLogger(__name__)

SK_SIZE = 64 * 1024
SA_MAX_SIZE = 0xffffffff
STDIO = "-"
INTEL_HEX_EXT = "hex"
CERTCRL_RESOURCE = "data/certcrl.bin"

# Fastest level: a one-shot build tool, not a size-constrained target.
SA2_COMPRESSION_LEVEL = 1


class Component(Enum):
    SK = "SK"
    SA1 = "SA1"
    SA2 = "SA2"

    def __str__(self):
        return self.value


MAX_SIZES = {
    Component.SK: SK_SIZE,
    Component.SA1: SA_MAX_SIZE,
    Component.SA2: SA_MAX_SIZE,
}


def align_up(num, align):
    assert (align & (align - 1) == 0) and align != 0
    return (num + (align - 1)) & ~(align - 1)


def source_name(path, output=False):
    if path == STDIO:
        return "stdout" if output else "stdin"
    return str(path)


def read_source(path):
    """Read a whole input, from stdin for "-".  Files with a .hex
    extension are parsed as Intel HEX."""
    try:
        if path == STDIO:
            return click.get_binary_stream('stdin').read()
        ext = os.path.splitext(str(path))[1][1:].lower()
        if ext == INTEL_HEX_EXT:
            return bytes(IntelHex(str(path)).tobinarray())
        with open(path, 'rb') as f:
            return f.read()
    except (OSError, IntelHexError) as e:
        raise SourceError(source_name(path), e)


def _replace_file(path, data):
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".sksatool-")
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        if os.path.exists(path):
            shutil.copymode(path, tmp)
        else:
            umask = os.umask(0)
            os.umask(umask)
            os.chmod(tmp, 0o666 & ~umask)
        os.replace(tmp, path)
    except OSError:
        os.unlink(tmp)
        raise


def write_sink(path, data):
    """Write the whole image, to stdout for "-".  A file destination is
    only replaced once the new contents are completely written."""
    try:
        if path == STDIO:
            stream = click.get_binary_stream('stdout')
            stream.write(data)
            stream.flush()
        else:
            _replace_file(path, data)
    except OSError as e:
        raise SourceError(source_name(path, output=True), e)


def load_certcrl(path=None):
    """Load the certificate/CRL filler appended to every CMD block."""
    if path is not None:
        return read_source(path)
    return pkgutil.get_data(__package__, CERTCRL_RESOURCE)


def check_size(component, data):
    maximum = MAX_SIZES[component]
    if len(data) > maximum:
        raise ComponentTooLong(component, len(data), maximum)


def pad(component, data):
    """Zero-extend a component: the SK to exactly SK_SIZE, applications
    to a whole number of blocks.  Nothing is ever truncated."""
    check_size(component, data)
    if component is Component.SK:
        size = SK_SIZE
    else:
        size = align_up(len(data), BLOCK_SIZE)
        # The CMD head records the padded length, so it must fit as well.
        if size > MAX_SIZES[component]:
            raise ComponentTooLong(component, size, MAX_SIZES[component])
    logger.debug("%s: 0x%x bytes, padded to 0x%x", component, len(data), size)
    return bytes(data) + bytes(size - len(data))


def compress(data):
    """Raw DEFLATE, without zlib header or trailer."""
    compressor = zlib.compressobj(SA2_COMPRESSION_LEVEL, zlib.DEFLATED,
                                  -zlib.MAX_WBITS)
    return compressor.compress(bytes(data)) + compressor.flush()


def create_cmd(key, iv, boot_app_key, key_iv, size, content_id, certcrl):
    """Build one CMD block: the head, the certificate/CRL filler, then
    zeros up to BLOCK_SIZE."""
    head = CmdHead.unsigned(key, iv, boot_app_key, key_iv, size, content_id)
    cmd = head.to_bytes() + certcrl
    if len(cmd) > BLOCK_SIZE:
        raise FormatError(
            "Content metadata and certificates (0x{:x} bytes) exceed "
            "the block size 0x{:x}".format(len(cmd), BLOCK_SIZE))
    return cmd + bytes(BLOCK_SIZE - len(cmd))


class SecureApp:
    """A secure application (SA1 or SA2) and its encryption parameters."""

    def __init__(self, component, path, content_id, key=BLANK_KEY,
                 iv=BLANK_IV, key_iv=BLANK_IV):
        if component not in (Component.SA1, Component.SA2):
            raise ConfigurationError(
                "{} is not a secure application".format(component))
        self.component = component
        self.path = path
        self.content_id = content_id
        self.key = key
        self.iv = iv
        self.key_iv = key_iv
        self.payload = None

    def __repr__(self):
        return "<SecureApp {} path={}, content_id=0x{:08x}>".format(
            self.component, source_name(self.path), self.content_id)

    def load(self):
        self.payload = read_source(self.path)
        logger.debug("%s: read 0x%x bytes from %s", self.component,
                     len(self.payload), source_name(self.path))

    def prepare(self):
        """Return the padded plaintext payload, compressing SA2 first."""
        data = self.payload
        if self.component is Component.SA2:
            data = compress(data)
            logger.info("%s: compressed 0x%x -> 0x%x bytes", self.component,
                        len(self.payload), len(data))
        return pad(self.component, data)


class Sksa:

    def __init__(self, virage2, bootrom, sk, apps, certcrl=None):
        components = [app.component for app in apps]
        if components not in ([Component.SA1],
                              [Component.SA1, Component.SA2]):
            raise ConfigurationError(
                "An SKSA holds SA1 and optionally SA2, got {}".format(
                    ", ".join(str(c) for c in components) or "nothing"))
        self.virage2_path = virage2
        self.bootrom_path = bootrom
        self.sk_path = sk
        self.apps = apps
        self.certcrl_path = certcrl
        self.boot_app_key = None
        self.sk_key = None
        self.sk_iv = None
        self.sk = None
        self.certcrl = None
        self.payload = None

    def __repr__(self):
        return "<Sksa apps={}, payloadlen={}>".format(
            self.apps,
            "N/A" if self.payload is None else hex(len(self.payload)))

    def load(self):
        """Read every input in full.  Nothing is transformed yet."""
        virage2 = parse_virage2(read_source(self.virage2_path))
        self.boot_app_key = virage2.boot_app_key
        self.sk_key, self.sk_iv = bootrom_keys(read_source(self.bootrom_path))
        self.sk = read_source(self.sk_path)
        logger.debug("SK: read 0x%x bytes from %s", len(self.sk),
                     source_name(self.sk_path))
        for app in self.apps:
            app.load()
        self.certcrl = load_certcrl(self.certcrl_path)

    def create(self):
        """Pad, compress and encrypt every component and lay them out."""
        sk = pad(Component.SK, self.sk)
        payload = bytearray(aes_cbc_encrypt(sk, self.sk_key, self.sk_iv))

        for app in self.apps:
            data = app.prepare()
            cmd = create_cmd(app.key, app.iv, self.boot_app_key, app.key_iv,
                             len(data), app.content_id, self.certcrl)
            logger.debug("%s: content id 0x%08x, CMD at 0x%x, payload at 0x%x",
                         app.component, app.content_id, len(payload),
                         len(payload) + len(cmd))
            payload += cmd
            payload += aes_cbc_encrypt(data, app.key, app.iv)

        self.payload = bytes(payload)

    def save(self, path):
        write_sink(path, self.payload)
        logger.info("Wrote 0x%x byte SKSA to %s", len(self.payload),
                    source_name(path, output=True))
