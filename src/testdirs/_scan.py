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

"""Read a directory on disk back into a tree description."""

from __future__ import annotations

import os
from collections.abc import Sequence

from ._host import AsyncHostIO, HostIO
from ._protocol import AsyncTreeIO, TreeIO
from ._steps import FsCall, Steps, async_run_steps, run_steps
from ._types import Content, DirEntryInfo, DirectoryTree, ScanOptions
from .helpers import symlink
from .logging import StructuredLogger, get_logger

__all__ = ["async_from_file_system", "from_file_system", "scan_steps"]

logger: StructuredLogger = get_logger(__name__, context={"component": "scanner"})


def from_file_system(
    path: str | os.PathLike[str],
    options: ScanOptions | None = None,
    *,
    io: TreeIO | None = None,
) -> DirectoryTree:
    """Recursively read ``path`` into a :class:`DirectoryTree`.

    A missing path, or one that is not a directory, yields an empty tree.
    Errors while reading an individual file propagate.

    Example::

        tree = from_file_system(
            "./src",
            ScanOptions(ignore={"__pycache__", ".git"}),
        )
        create_file_tree("/tmp/copy", tree)
    """

    source = os.fspath(path)
    resolved = options or ScanOptions()
    logger.debug(
        "Scanning file tree.",
        event="scan.start",
        context={"path": source, "follow_links": resolved.follow_links},
    )
    return run_steps(scan_steps(source, resolved), io or HostIO())


async def async_from_file_system(
    path: str | os.PathLike[str],
    options: ScanOptions | None = None,
    *,
    io: AsyncTreeIO | None = None,
) -> DirectoryTree:
    """Awaitable :func:`from_file_system`."""

    source = os.fspath(path)
    resolved = options or ScanOptions()
    logger.debug(
        "Scanning file tree.",
        event="scan.start",
        context={
            "path": source,
            "follow_links": resolved.follow_links,
            "mode": "async",
        },
    )
    return await async_run_steps(scan_steps(source, resolved), io or AsyncHostIO())


def scan_steps(path: str, options: ScanOptions) -> Steps[DirectoryTree]:
    """Yield the filesystem calls that read ``path`` into a tree.

    Scanning starts from the real path of ``path``, so every provenance is a
    resolved directory and ``..`` in a recorded symlink target means the same
    thing it meant on disk.
    """

    path = os.path.abspath(path)
    if not (yield FsCall("is_directory", (path,))):
        return DirectoryTree()
    root = yield FsCall("real_path", (path,))
    tree = yield from _scan_directory(root, options, frozenset({root}))
    if options.extras:
        tree = tree.merge(options.extras)
    return tree


def _scan_directory(
    path: str,
    options: ScanOptions,
    ancestors: frozenset[str],
) -> Steps[DirectoryTree]:
    listing: Sequence[DirEntryInfo] = yield FsCall("list_directory", (path,))
    entries: dict[str, Content] = {}

    for entry in listing:
        if entry.name in options.ignore:
            continue
        full_path = os.path.join(path, entry.name)

        if entry.is_directory:
            real = yield FsCall("real_path", (full_path,))
            entries[entry.name] = yield from _scan_directory(
                full_path, options, ancestors | {real}
            )
        elif entry.is_symlink and options.follow_links:
            target = yield FsCall("read_link", (full_path,))
            logger.debug(
                "Recorded symlink.",
                event="scan.entry.symlink",
                context={"path": full_path, "target": target},
            )
            entries[entry.name] = symlink(target)
        elif entry.is_symlink and (yield FsCall("is_directory", (full_path,))):
            real = yield FsCall("real_path", (full_path,))
            if real in ancestors:
                # Reading through this link would recurse forever.
                target = yield FsCall("read_link", (full_path,))
                entries[entry.name] = symlink(target)
            else:
                entries[entry.name] = yield from _scan_directory(
                    real, options, ancestors | {real}
                )
        else:
            encoding = options.get_encoding_for_file(full_path)
            logger.debug(
                "Reading file.",
                event="scan.entry.file",
                context={"path": full_path, "encoding": encoding},
            )
            entries[entry.name] = yield FsCall("read_file", (full_path, encoding))

    return DirectoryTree(entries, provenance=path)
