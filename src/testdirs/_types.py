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

"""Core tree description types.

A tree description is a mapping from entry name to entry content. Content is
one of:

- **Primitive**: ``str``, ``int``, ``float``, ``bool``, ``None`` or a
  byte-like value, written as a regular file
- **Nested directory**: any other ``Mapping``, written recursively
- **Markers**: ``Link`` (hard link), ``Symlink`` (symbolic link) and
  ``Metadata`` (permission bits around a primitive or directory)

Markers are identified by their class, never by a key inside a mapping, so
user data such as ``{"content": "x"}`` is always a plain directory.

``DirectoryTree`` is the mapping produced by the scanner. It carries the
absolute path the entries were read from (``provenance``) as an attribute
beside the entries, which is what lets relative symlink targets be re-based
when the tree is written somewhere else.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, override

from .errors import MalformedTreeError

DEFAULT_ENCODING: Final[str] = "utf-8"

type Primitive = str | int | float | bool | bytes | bytearray | memoryview | None
type Content = Primitive | Link | Symlink | Metadata | Mapping[str, Content]
type EncodingResolver = Callable[[str], str | None]


@dataclass(slots=True, frozen=True)
class Link:
    """Hard link to ``path``, resolved against the entry's parent directory."""

    path: str


@dataclass(slots=True, frozen=True)
class Symlink:
    """Symbolic link whose target is ``path``, relative to the link itself."""

    path: str


@dataclass(slots=True, frozen=True)
class FSMetadata:
    """Filesystem metadata applied to a created file or directory.

    Attributes:
        mode: Permission bits (e.g. ``0o444``). ``None`` keeps the default.
    """

    mode: int | None = None


@dataclass(slots=True, frozen=True)
class Metadata:
    """Primitive or directory content paired with filesystem metadata.

    The wrapper is transparent to the materializer except that
    ``metadata.mode`` is applied to the file or directory it creates.

    Raises:
        MalformedTreeError: ``content`` is itself a marker.
    """

    content: Content
    metadata: FSMetadata = field(default_factory=FSMetadata)

    def __post_init__(self) -> None:
        if isinstance(self.content, Metadata):
            raise MalformedTreeError("Metadata cannot wrap another metadata wrapper.")
        if isinstance(self.content, Link | Symlink):
            raise MalformedTreeError("Metadata cannot wrap a link or symlink.")


class DirectoryTree(Mapping[str, Content]):
    """Read-only tree description with an optional source path.

    Iteration, ``len`` and equality only ever see the entries; the provenance
    is an attribute, not a key::

        tree = DirectoryTree({"a.txt": "x"}, provenance="/src/fixture")
        assert tree == {"a.txt": "x"}
        assert tree.provenance == "/src/fixture"
    """

    __slots__ = ("_entries", "_provenance")

    def __init__(
        self,
        entries: Mapping[str, Content] | None = None,
        *,
        provenance: str | None = None,
    ) -> None:
        self._entries: Mapping[str, Content] = MappingProxyType(dict(entries or {}))
        self._provenance = provenance

    @property
    def provenance(self) -> str | None:
        """Absolute path these entries were scanned from, if any."""
        return self._provenance

    @override
    def __getitem__(self, key: str) -> Content:
        return self._entries[key]

    @override
    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    @override
    def __len__(self) -> int:
        return len(self._entries)

    @override
    def __repr__(self) -> str:
        return (
            f"DirectoryTree({dict(self._entries)!r}, provenance={self._provenance!r})"
        )

    def merge(self, extras: Mapping[str, Content]) -> DirectoryTree:
        """Return a copy with ``extras`` laid over the top-level entries."""

        return DirectoryTree({**self._entries, **extras}, provenance=self._provenance)


@dataclass(slots=True, frozen=True)
class DirEntryInfo:
    """One directory entry as reported by an I/O backend.

    Attributes:
        name: Entry name without path.
        parent: Path of the directory containing the entry.
        is_directory: True for real directories (symlinks are never followed).
        is_symlink: True if the entry itself is a symbolic link.
    """

    name: str
    parent: str
    is_directory: bool
    is_symlink: bool


def default_encoding_for_file(path: str) -> str | None:
    """Read every file as UTF-8 text."""

    del path
    return DEFAULT_ENCODING


@dataclass(slots=True, frozen=True)
class ScanOptions:
    """Options for reading a directory into a tree description.

    Attributes:
        ignore: Entry names skipped at every directory level.
        follow_links: ``True`` records symlinks as ``Symlink`` markers with
            their raw target. ``False`` reads through them: a link to a file
            becomes file content and a link to a directory is scanned.
        get_encoding_for_file: Maps the resolved absolute path of a file to
            the encoding used to read it; ``None`` reads the file as
            ``bytes``.
        extras: Entries laid over the scanned top level. They share the
            scanned root's provenance, so a relative ``Symlink`` in
            ``extras`` is re-based as if it had been read from the source
            directory. Write extras with ``create_file_tree`` after the copy
            when a link must stay literal.
    """

    ignore: frozenset[str] = frozenset()
    follow_links: bool = True
    get_encoding_for_file: EncodingResolver = default_encoding_for_file
    extras: Mapping[str, Content] = field(default_factory=dict[str, Content])

    def __post_init__(self) -> None:
        if isinstance(self.ignore, str):
            raise TypeError("ignore must be a collection of names, not a string.")
        object.__setattr__(self, "ignore", frozenset(self.ignore))
        object.__setattr__(self, "extras", MappingProxyType(dict(self.extras)))


__all__ = [
    "DEFAULT_ENCODING",
    "Content",
    "DirEntryInfo",
    "DirectoryTree",
    "EncodingResolver",
    "FSMetadata",
    "Link",
    "Metadata",
    "Primitive",
    "ScanOptions",
    "Symlink",
    "default_encoding_for_file",
]
