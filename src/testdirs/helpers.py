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

"""Constructors and predicates for tree description content.

Example usage::

    from testdirs.helpers import is_symlink, link, metadata, symlink

    files = {
        "test.txt": "Hello, World!",
        "alias.txt": symlink("test.txt"),
        "copy.txt": link("test.txt"),
        "readonly.txt": metadata("Hello, World!", mode=0o444),
    }

    assert is_symlink(files["alias.txt"])
    assert not is_symlink(files["test.txt"])

Every predicate is total: it never raises and never touches the filesystem,
whatever value it is handed.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import TypeGuard

from ._snapshot import async_capture_snapshot, capture_snapshot
from ._types import Content, FSMetadata, Link, Metadata, Primitive, Symlink

_PRIMITIVE_TYPES = (str, int, float, bytes, bytearray, memoryview)
_MARKER_TYPES = (Link, Symlink, Metadata)


def symlink(path: str) -> Symlink:
    """Create a symbolic link marker pointing at ``path``."""
    return Symlink(os.path.normpath(path))


def link(path: str) -> Link:
    """Create a hard link marker pointing at ``path``."""
    return Link(os.path.normpath(path))


def metadata(
    content: Content,
    meta: FSMetadata | None = None,
    *,
    mode: int | None = None,
) -> Metadata:
    """Attach filesystem metadata to file or directory content.

    Args:
        content: A primitive or a nested directory mapping.
        meta: Metadata to attach. Mutually exclusive with ``mode``.
        mode: Shorthand for ``FSMetadata(mode=mode)``.

    Raises:
        MalformedTreeError: ``content`` is already a marker.
        TypeError: Both ``meta`` and ``mode`` were supplied.

    Note:
        Windows does not enforce POSIX directory permissions, so a read-only
        directory there is still writable.
    """
    if meta is not None and mode is not None:
        raise TypeError("Pass either meta or mode, not both.")
    resolved = meta if meta is not None else FSMetadata(mode=mode)
    return Metadata(content=content, metadata=resolved)


def is_symlink(value: object) -> TypeGuard[Symlink]:
    return isinstance(value, Symlink)


def is_link(value: object) -> TypeGuard[Link]:
    return isinstance(value, Link)


def has_metadata(value: object) -> TypeGuard[Metadata]:
    return isinstance(value, Metadata)


def is_primitive(value: object) -> TypeGuard[Primitive]:
    """Return True for values written verbatim as a single file.

    ``bool`` is covered by ``int``; ``None`` is the absent value.
    """
    return value is None or isinstance(value, _PRIMITIVE_TYPES)


def is_directory_content(value: object) -> TypeGuard[Mapping[str, Content]]:
    """Return True for mappings that describe a nested directory."""
    return isinstance(value, Mapping) and not isinstance(value, _MARKER_TYPES)


__all__ = [
    "async_capture_snapshot",
    "capture_snapshot",
    "has_metadata",
    "is_directory_content",
    "is_link",
    "is_primitive",
    "is_symlink",
    "link",
    "metadata",
    "symlink",
]
