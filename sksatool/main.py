#! /usr/bin/env python3
#
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

import logging
import sys

import click

from sksatool import image, sksatool_version
from sksatool.dumpinfo import dump_sksainfo
from sksatool.errors import ConfigurationError, SksaError
from sksatool.keys import BLANK_IV, BLANK_KEY, decode_iv, decode_key

MIN_PYTHON_VERSION = (3, 8)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by sksatool."
             % MIN_PYTHON_VERSION)

DEFAULT_OUTFILE = "out.sksa"
CID_MAX = 0xffffffff
LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def setup_logging(verbose):
    level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
    logging.basicConfig(format='%(levelname)5s: %(message)s',
                        level=level, stream=sys.stderr)


def validate_key(ctx, param, value):
    try:
        return decode_key(value) if value is not None else None
    except ConfigurationError as e:
        raise click.BadParameter("{}".format(e))


def validate_iv(ctx, param, value):
    try:
        return decode_iv(value) if value is not None else None
    except ConfigurationError as e:
        raise click.BadParameter("{}".format(e))


class BasedIntParamType(click.ParamType):
    name = 'integer'

    # Leading zeros still mean decimal; only an explicit prefix changes base.
    BASES = {'0x': 16, '0o': 8, '0b': 2}

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        text = value.strip()
        digits = text.lstrip('+-')
        base = self.BASES.get(digits[:2].lower(), 10)
        try:
            return int(text, base)
        except ValueError:
            self.fail('%s is not a valid integer. Please use decimal or code '
                      'literals prefixed with 0b/0B, 0o/0O, or 0x/0X.'
                      % value, param, ctx)


class ContentIdParamType(BasedIntParamType):
    name = 'cid'

    def convert(self, value, param, ctx):
        cid = super().convert(value, param, ctx)
        if not 0 <= cid <= CID_MAX:
            self.fail('%s does not fit in 32 bits' % value, param, ctx)
        return cid


def check_sa2_options(sa2, sa2_cid, sa2_key, sa2_iv, sa2_key_iv):
    given = [name for name, value in (('--sa2-cid', sa2_cid),
                                      ('--sa2-key', sa2_key),
                                      ('--sa2-iv', sa2_iv),
                                      ('--sa2-key-iv', sa2_key_iv))
             if value is not None]
    if sa2 is None and given:
        raise click.UsageError('{} requires --sa2'.format(', '.join(given)))
    if sa2 is not None and sa2_cid is None:
        raise click.UsageError('--sa2 requires --sa2-cid')


def check_stdin(*paths):
    if sum(1 for path in paths if path == image.STDIO) > 1:
        raise click.UsageError('Only one input can be read from stdin')


@click.argument('outfile', default=DEFAULT_OUTFILE, required=False)
@click.argument('sa1_cid', type=ContentIdParamType())
@click.argument('sa1')
@click.argument('sk')
@click.argument('bootrom')
@click.argument('virage2')
@click.option('-v', '--verbose', count=True,
              help='Log progress to stderr; repeat for debug output')
@click.option('--certcrl', metavar='filename',
              help='Certificate/CRL blob to place after each content '
                   'metadata block instead of the built-in one')
@click.option('--sa2-key-iv', metavar='hex', callback=validate_iv,
              help='IV used to wrap the SA2 key in its content metadata')
@click.option('--sa2-iv', metavar='hex', callback=validate_iv,
              help='SA2 encryption IV (default: all zeros)')
@click.option('--sa2-key', metavar='hex', callback=validate_key,
              help='SA2 encryption key (default: all zeros)')
@click.option('--sa2-cid', type=ContentIdParamType(),
              help='SA2 content id, required with --sa2')
@click.option('--sa2', metavar='filename',
              help='Second secure application, stored DEFLATE compressed')
@click.option('--sa1-key-iv', metavar='hex', callback=validate_iv,
              help='IV used to wrap the SA1 key in its content metadata')
@click.option('--sa1-iv', metavar='hex', callback=validate_iv,
              help='SA1 encryption IV (default: all zeros)')
@click.option('--sa1-key', metavar='hex', callback=validate_key,
              help='SA1 encryption key (default: all zeros)')
@click.command(help='''Build an SKSA image\n
               VIRAGE2 supplies the boot app key, BOOTROM the SK key and IV.
               Keys and IVs are 32 hex digits, content ids may be decimal
               or 0x prefixed. Use "-" for stdin/stdout. OUTFILE defaults
               to out.sksa''')
def build(sa1_key, sa1_iv, sa1_key_iv, sa2, sa2_cid, sa2_key, sa2_iv,
          sa2_key_iv, certcrl, verbose, virage2, bootrom, sk, sa1, sa1_cid,
          outfile):
    setup_logging(verbose)
    check_sa2_options(sa2, sa2_cid, sa2_key, sa2_iv, sa2_key_iv)
    check_stdin(virage2, bootrom, sk, sa1, sa2, certcrl)

    apps = [image.SecureApp(image.Component.SA1, sa1, sa1_cid,
                            key=sa1_key or BLANK_KEY,
                            iv=sa1_iv or BLANK_IV,
                            key_iv=sa1_key_iv or BLANK_IV)]
    if sa2 is not None:
        apps.append(image.SecureApp(image.Component.SA2, sa2, sa2_cid,
                                    key=sa2_key or BLANK_KEY,
                                    iv=sa2_iv or BLANK_IV,
                                    key_iv=sa2_key_iv or BLANK_IV))

    try:
        sksa = image.Sksa(virage2, bootrom, sk, apps, certcrl=certcrl)
        sksa.load()
        sksa.create()
        sksa.save(outfile)
    except SksaError as e:
        raise click.ClickException("{}".format(e))


@click.argument('imgfile')
@click.option('-V', '--virage2', metavar='filename', required=False,
              help='Virage2 descriptor used to unwrap the content keys')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save image information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print image information to output')
@click.command(help='Print the section layout and content metadata '
                    'of an SKSA image')
def dumpinfo(imgfile, outfile, silent, virage2):
    check_stdin(imgfile, virage2)
    try:
        dump_sksainfo(imgfile, outfile, silent, virage2)
    except SksaError as e:
        raise click.ClickException("{}".format(e))
    if not silent:
        print("dumpinfo has run successfully")


class AliasesGroup(click.Group):

    _aliases = {
        "create": "build",
    }

    def list_commands(self, ctx):
        cmds = [k for k in self.commands]
        aliases = [k for k in self._aliases]
        return sorted(cmds + aliases)

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        if cmd_name in self._aliases:
            return click.Group.get_command(self, ctx, self._aliases[cmd_name])
        return None


@click.command(help='Print sksatool version information')
def version():
    print(sksatool_version)


@click.command(cls=AliasesGroup,
               context_settings=dict(help_option_names=['-h', '--help']))
def sksatool():
    pass


sksatool.add_command(build)
sksatool.add_command(dumpinfo)
sksatool.add_command(version)


if __name__ == '__main__':
    sksatool()
