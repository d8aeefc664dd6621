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
Parse and print the section layout and content metadata of an SKSA image.
"""
import os.path

import yaml

from .errors import FormatError, SourceError
from .formats import BLOCK_SIZE, CmdHead, parse_virage2
from .image import SK_SIZE, Component, read_source

_LINE_LENGTH = 60
HEAD_ITEMS = ("content_id", "size", "iv", "common_cmd_iv", "key",
              "desc_flags", "exec_flags", "hw_access_rights",
              "secure_kernel_rights", "bbid")


def print_in_frame(header_text, content):
    sepc = " "
    header = "#### " + header_text + sepc
    post_header = "#" * (_LINE_LENGTH - len(header))
    print(header + post_header)

    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    offset = (_LINE_LENGTH - len(content)) // 2
    pre = "|" + (sepc * (offset - 1))
    post = sepc * (_LINE_LENGTH - len(pre) - len(content) - 1) + "|"
    print(pre, content, post, sep="")
    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    print("#" * _LINE_LENGTH)


def print_in_row(row_text):
    row_text = "#### " + row_text + " "
    fill = "#" * (_LINE_LENGTH - len(row_text))
    print(row_text + fill)


def parse_sksa(data, boot_app_key=None):
    """Split an SKSA into its sections.

    Returns a dict with the SK section and one entry per secure
    application, each holding its CMD head fields and offsets.
    """
    if len(data) < SK_SIZE + BLOCK_SIZE:
        raise FormatError(
            "Image is too short to be an SKSA (0x{:x} bytes)".format(
                len(data)))

    info = {"sk": {"offset": 0, "size": SK_SIZE}, "apps": []}
    offset = SK_SIZE
    for component in (Component.SA1, Component.SA2):
        if component is Component.SA2 and offset == len(data):
            break
        if offset + BLOCK_SIZE > len(data):
            raise FormatError(
                "{} content metadata at 0x{:x} is truncated".format(
                    component, offset))
        head = CmdHead.from_bytes(data[offset:offset + BLOCK_SIZE])
        payload_offset = offset + BLOCK_SIZE
        if payload_offset + head.size > len(data):
            raise FormatError(
                "{} payload at 0x{:x} needs 0x{:x} bytes, only 0x{:x} "
                "left".format(component, payload_offset, head.size,
                              len(data) - payload_offset))

        app = {"name": str(component),
               "cmd_offset": offset,
               "payload_offset": payload_offset}
        for key in HEAD_ITEMS:
            value = getattr(head, key)
            app[key] = value.hex() if isinstance(value, bytes) else value
        if boot_app_key is not None:
            app["content_key"] = head.content_key(boot_app_key).hex()
        info["apps"].append(app)
        offset = payload_offset + head.size

    if offset != len(data):
        raise FormatError(
            "0x{:x} unexpected bytes after the last section".format(
                len(data) - offset))
    return info


def dump_sksainfo(imgfile, outfile=None, silent=False, virage2=None):
    """Parse an SKSA image and print/save the available information."""
    b = read_source(imgfile)
    boot_app_key = None
    if virage2 is not None:
        boot_app_key = parse_virage2(read_source(virage2)).boot_app_key

    info = parse_sksa(b, boot_app_key)

    # Generating output yaml file
    if outfile is not None:
        try:
            with open(outfile, "w") as outf:
                yaml.dump(info, outf, sort_keys=False)
        except OSError as e:
            raise SourceError(outfile, e)

    if silent:
        return info

    print("Printing content of SKSA image:", os.path.basename(imgfile), "\n")

    frame_header_text = "SK (offset: 0x0)"
    frame_content = "encrypted SK (size: {} Bytes)".format(hex(SK_SIZE))
    print_in_frame(frame_header_text, frame_content)

    for app in info["apps"]:
        section_name = "{} content metadata (offset: {})".format(
            app["name"], hex(app["cmd_offset"]))
        print_in_row(section_name)
        for key in HEAD_ITEMS + ("content_key",):
            if key not in app:
                continue
            value = app[key]
            if not isinstance(value, str):
                value = hex(value)
            print(key, ":", " " * (21 - len(key)), value, sep="")
        print("#" * _LINE_LENGTH)

        frame_header_text = "{} (offset: {})".format(
            app["name"], hex(app["payload_offset"]))
        frame_content = "encrypted {} (size: {} Bytes)".format(
            app["name"], hex(app["size"]))
        print_in_frame(frame_header_text, frame_content)

    footer = "End of Image "
    print_in_row(footer)
    return info
