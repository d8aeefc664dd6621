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

from types import SimpleNamespace

import pytest

from tests.constants import (
    SA1_DATA, SA2_DATA, SK_DATA, make_bootrom, make_virage2)


@pytest.fixture
def inputs(tmp_path):
    """Write a complete set of build inputs and return their paths"""
    files = {
        "virage2": make_virage2(),
        "bootrom": make_bootrom(),
        "sk": SK_DATA,
        "sa1": SA1_DATA,
        "sa2": SA2_DATA,
    }
    paths = {}
    for name, data in files.items():
        path = tmp_path / (name + ".bin")
        path.write_bytes(data)
        paths[name] = str(path)
    paths["out"] = str(tmp_path / "image.sksa")
    return SimpleNamespace(**paths)
