# Code DNA - Structural fingerprinting for duplicate code detection
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Exception types raised by the fingerprinting engine.
"""


class CodeDnaError(Exception):
    """Base class for all engine errors."""


class ParseError(CodeDnaError):
    """Source text could not be turned into a syntax tree."""

    def __init__(self, file_id: str, message: str):
        self.file_id = file_id
        self.message = message
        super().__init__(f"{file_id}: {message}")


class ConfigurationError(CodeDnaError, ValueError):
    """Invalid engine tunables. Raised before any file is processed."""


class EmptyInputWarning(UserWarning):
    """A run produced zero fingerprints."""
