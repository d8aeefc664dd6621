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
Errors raised while building or inspecting an SKSA image.

Every failure aborts the build. The command line turns these into a
single error message and a non-zero exit status.
"""


class SksaError(Exception):
    """Base class for all sksatool errors."""
    pass


class ConfigurationError(SksaError):
    """Raised for malformed or inconsistent user-supplied parameters."""
    pass


class ComponentTooLong(SksaError):
    """Raised when a component does not fit its role's size limit."""

    def __init__(self, component, length, maximum):
        super().__init__(component, length, maximum)
        self.component = component
        self.length = length
        self.maximum = maximum

    def __str__(self):
        return "Provided {} is too long (got 0x{:X} bytes, max 0x{:X})".format(
            self.component, self.length, self.maximum)


class SourceError(SksaError):
    """Raised when an input can't be read or the output can't be written."""

    def __init__(self, source, error):
        super().__init__(source, error)
        self.source = source
        self.error = error

    def __str__(self):
        return "{} ({})".format(self.error, self.source)


class EncryptionError(SksaError):
    """Raised when the AES primitive rejects its key, IV or data."""
    pass


class FormatError(SksaError):
    """Raised for platform data or images that can't be parsed."""
    pass
