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

"""Base exception hierarchy for :mod:`testdirs`."""

from __future__ import annotations


class TestdirsError(Exception):
    """Base class for all testdirs exceptions.

    Filesystem failures are deliberately *not* part of this hierarchy: a
    ``PermissionError`` raised while writing a read-only fixture is the
    builtin exception, so tests can assert on it directly. This hierarchy
    covers mistakes in what the caller asked for.

    Example:
        Catch any testdirs-specific error::

            try:
                create_file_tree(path, files)
            except TestdirsError as e:
                logger.error("Invalid fixture: %s", e)

    Note:
        Subclasses also inherit from standard exception types (``ValueError``,
        ``TypeError``) to enable more specific handling when needed.
    """

    __test__ = False


class MalformedTreeError(TestdirsError, ValueError):
    """Raised when a tree description cannot be materialized as written.

    Common causes:

    - A metadata wrapper around another metadata wrapper or around a link
    - Entry content that is neither a primitive, a mapping nor a marker
      (lists, callables, arbitrary objects)
    - Empty or absolute entry names

    Attributes:
        path: Path of the offending entry, when known.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{message} (at {self.path})"


class OptionsValidationError(TestdirsError, ValueError):
    """Raised when factory options do not satisfy the declared schema.

    The underlying ``pydantic.ValidationError`` is chained as ``__cause__``.
    """


class FactoryConfigurationError(TestdirsError, TypeError):
    """Raised when :func:`testdirs.create_custom_testdir` is set up incorrectly."""


class ConfigError(TestdirsError, ValueError):
    """Raised when the testdirs configuration is invalid."""


__all__ = [
    "ConfigError",
    "FactoryConfigurationError",
    "MalformedTreeError",
    "OptionsValidationError",
    "TestdirsError",
]
