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

"""I/O capability protocols consumed by the tree algorithms.

The materializer, scanner and snapshot renderer are written once, against
the small set of operations below. ``TreeIO`` is the blocking shape and
``AsyncTreeIO`` the awaitable one; both expose the same method names with the
same positional arguments so a single ``FsCall`` can be executed by either.

Implementations:

- ``HostIO``: direct calls into :mod:`os`
- ``AsyncHostIO``: the same calls run in a worker thread
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ._types import DirEntryInfo


@runtime_checkable
class TreeIO(Protocol):
    """Blocking filesystem operations used by the tree algorithms.

    All paths are absolute or relative to the current working directory.
    Errors are reported by raising the builtin ``OSError`` subclasses.
    """

    def make_directory(self, path: str, mode: int | None) -> None:
        """Create ``path`` and any missing parents; existing directories are fine.

        ``mode``, when given, is applied to the leaf directory afterwards.
        """
        ...

    def write_file(self, path: str, data: bytes, mode: int | None) -> None:
        """Write ``data`` to ``path``, then apply ``mode`` when given."""
        ...

    def hard_link(self, target: str, path: str) -> None:
        """Create a hard link at ``path`` to the existing file ``target``."""
        ...

    def symlink(self, target: str, path: str, target_is_directory: bool) -> None:
        """Create a symbolic link at ``path`` whose stored target is ``target``."""
        ...

    def is_directory(self, path: str) -> bool:
        """Return True if ``path`` resolves to a directory; never raises."""
        ...

    def real_path(self, path: str) -> str:
        """Return ``path`` with every symlink resolved."""
        ...

    def list_directory(self, path: str) -> Sequence[DirEntryInfo]:
        """List the direct children of ``path`` sorted by name."""
        ...

    def walk(self, path: str) -> Sequence[DirEntryInfo]:
        """List every descendant of ``path`` without following symlinks.

        Raises:
            FileNotFoundError: ``path`` does not exist.
        """
        ...

    def read_file(self, path: str, encoding: str | None) -> str | bytes:
        """Read ``path`` as text in ``encoding``, or as bytes when ``None``."""
        ...

    def read_link(self, path: str) -> str:
        """Return the raw target stored in the symbolic link at ``path``."""
        ...


@runtime_checkable
class AsyncTreeIO(Protocol):
    """Awaitable counterpart of :class:`TreeIO` with identical semantics."""

    async def make_directory(self, path: str, mode: int | None) -> None: ...

    async def write_file(self, path: str, data: bytes, mode: int | None) -> None: ...

    async def hard_link(self, target: str, path: str) -> None: ...

    async def symlink(
        self, target: str, path: str, target_is_directory: bool
    ) -> None: ...

    async def is_directory(self, path: str) -> bool: ...

    async def real_path(self, path: str) -> str: ...

    async def list_directory(self, path: str) -> Sequence[DirEntryInfo]: ...

    async def walk(self, path: str) -> Sequence[DirEntryInfo]: ...

    async def read_file(self, path: str, encoding: str | None) -> str | bytes: ...

    async def read_link(self, path: str) -> str: ...


__all__ = ["AsyncTreeIO", "TreeIO"]
