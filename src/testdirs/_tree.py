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

"""Write a tree description to disk.

Entries are processed depth-first, one at a time, in mapping order. The first
failing filesystem call aborts the whole operation and propagates; whatever
was already written stays on disk.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from ._host import AsyncHostIO, HostIO
from ._protocol import AsyncTreeIO, TreeIO
from ._steps import FsCall, Steps, async_run_steps, run_steps
from ._types import Content, DirectoryTree, FSMetadata, Primitive
from .errors import MalformedTreeError
from .helpers import (
    has_metadata,
    is_directory_content,
    is_link,
    is_primitive,
    is_symlink,
)
from .logging import StructuredLogger, get_logger

__all__ = [
    "async_create_file_tree",
    "create_file_tree",
    "materialize_steps",
    "rebase_symlink_target",
]

logger: StructuredLogger = get_logger(__name__, context={"component": "materializer"})


def create_file_tree(
    path: str | os.PathLike[str],
    files: Mapping[str, Content],
    *,
    io: TreeIO | None = None,
) -> None:
    """Create the files described by ``files`` under ``path``.

    Args:
        path: Destination directory. It is created if missing.
        files: Tree description; see :mod:`testdirs.helpers` for markers.
        io: Backend override, mostly useful in tests.

    Raises:
        MalformedTreeError: An entry cannot be represented on disk.
        OSError: A filesystem call failed. Nothing is rolled back.

    Example::

        create_file_tree("./fixture", {
            "file1.txt": "Hello, world!",
            "this/is/nested.txt": "This is a file",
            "dir1": {"file2.txt": "This is file 2"},
        })
    """

    destination = os.path.abspath(path)
    logger.debug(
        "Creating file tree.",
        event="tree.create",
        context={"path": destination, "entries": len(files)},
    )
    run_steps(_create_steps(destination, files), io or HostIO())


async def async_create_file_tree(
    path: str | os.PathLike[str],
    files: Mapping[str, Content],
    *,
    io: AsyncTreeIO | None = None,
) -> None:
    """Awaitable :func:`create_file_tree`; filesystem calls run off the loop."""

    destination = os.path.abspath(path)
    logger.debug(
        "Creating file tree.",
        event="tree.create",
        context={"path": destination, "entries": len(files), "mode": "async"},
    )
    await async_run_steps(_create_steps(destination, files), io or AsyncHostIO())


def _create_steps(destination: str, files: Mapping[str, Content]) -> Steps[None]:
    yield FsCall("make_directory", (destination, None))
    yield from materialize_steps(destination, files)


def materialize_steps(destination: str, files: Mapping[str, Content]) -> Steps[None]:
    """Yield the filesystem calls that write ``files`` into ``destination``.

    ``destination`` must be absolute. Symlink targets are re-based when
    ``files`` is a :class:`DirectoryTree` with a provenance.
    """

    provenance = files.provenance if isinstance(files, DirectoryTree) else None

    for name, value in files.items():
        path = _entry_path(destination, name)
        content, fs_metadata = _unwrap(value, path)
        mode = fs_metadata.mode if fs_metadata is not None else None
        parent = os.path.dirname(path)

        if is_link(content):
            target = os.path.normpath(os.path.join(parent, content.path))
            yield FsCall("make_directory", (parent, None))
            logger.debug(
                "Creating hard link.",
                event="tree.entry.link",
                context={"path": path, "target": target},
            )
            yield FsCall("hard_link", (target, path))
        elif is_symlink(content):
            target = content.path
            if provenance is not None:
                target = rebase_symlink_target(
                    provenance=provenance, name=name, target=target, link_path=path
                )
            yield FsCall("make_directory", (parent, None))
            target_is_directory = yield FsCall(
                "is_directory", (os.path.join(parent, target),)
            )
            logger.debug(
                "Creating symlink.",
                event="tree.entry.symlink",
                context={"path": path, "target": target},
            )
            yield FsCall("symlink", (target, path, bool(target_is_directory)))
        elif is_primitive(content):
            yield FsCall("make_directory", (parent, None))
            logger.debug(
                "Writing file.",
                event="tree.entry.file",
                context={"path": path, "mode": mode},
            )
            yield FsCall("write_file", (path, _encode(content), mode))
        else:
            # _unwrap only lets directory mappings through besides the above.
            logger.debug(
                "Creating directory.",
                event="tree.entry.directory",
                context={"path": path, "mode": mode},
            )
            yield FsCall("make_directory", (path, mode))
            yield from materialize_steps(path, content)


def rebase_symlink_target(
    *,
    provenance: str,
    name: str,
    target: str,
    link_path: str,
) -> str:
    """Express a scanned symlink target relative to the link's new location.

    The link originally lived at ``provenance/name`` and pointed at ``target``
    relative to its own directory. The returned path, read relative to the
    directory of ``link_path``, names that same original file. Absolute
    targets are returned unchanged.

    Example::

        >>> rebase_symlink_target(
        ...     provenance="/src/fixture/nested",
        ...     name="link.txt",
        ...     target="../sibling.txt",
        ...     link_path="/tmp/out/deeper/nested/link.txt",
        ... )
        '../../../../src/fixture/sibling.txt'
    """

    if os.path.isabs(target):
        return target
    original_link = os.path.join(provenance, name)
    original_target = os.path.normpath(
        os.path.join(os.path.dirname(original_link), target)
    )
    try:
        return os.path.relpath(original_target, os.path.dirname(link_path))
    except ValueError:
        # Different drives on Windows have no relative path between them.
        return original_target


def _entry_path(destination: str, name: str) -> str:
    if not name:
        raise MalformedTreeError("Entry names must not be empty.", path=destination)
    if os.path.isabs(name):
        raise MalformedTreeError(
            f"Entry name {name!r} must be relative.", path=destination
        )
    return os.path.normpath(os.path.join(destination, name))


def _unwrap(value: object, path: str) -> tuple[Content, FSMetadata | None]:
    fs_metadata: FSMetadata | None = None
    if has_metadata(value):
        fs_metadata = value.metadata
        value = value.content
        if has_metadata(value) or is_link(value) or is_symlink(value):
            raise MalformedTreeError(
                "Metadata may only wrap file or directory content.", path=path
            )
    if is_link(value) or is_symlink(value) or is_primitive(value):
        return value, fs_metadata
    if is_directory_content(value):
        return value, fs_metadata
    raise MalformedTreeError(
        f"Unsupported entry content of type {type(value).__name__}.", path=path
    )


def _encode(content: Primitive) -> bytes:
    if isinstance(content, bytes | bytearray | memoryview):
        return bytes(content)
    return str(content).encode("utf-8")
