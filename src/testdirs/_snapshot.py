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

"""Deterministic tree-view rendering of a directory for assertions.

Example output::

    fixture/
    ├── nested/
    │   └── deep.txt
    ├── a.txt
    └── b.txt
"""

from __future__ import annotations

import os
from collections.abc import Sequence

from ._host import AsyncHostIO, HostIO
from ._protocol import AsyncTreeIO, TreeIO
from ._steps import FsCall, Steps, async_run_steps, run_steps
from ._types import DirEntryInfo

__all__ = ["async_capture_snapshot", "capture_snapshot", "render_tree"]

_BRANCH = "├── "
_LAST_BRANCH = "└── "
_PIPE = "│   "
_SPACE = "    "


def capture_snapshot(path: str | os.PathLike[str], *, io: TreeIO | None = None) -> str:
    """Render the directory tree under ``path`` as a tree-view string.

    Directories come before files at every level, each group sorted by name,
    so the output does not depend on the order the OS lists entries in.

    Raises:
        FileNotFoundError: ``path`` does not exist.
    """

    return run_steps(_snapshot_steps(os.fspath(path)), io or HostIO())


async def async_capture_snapshot(
    path: str | os.PathLike[str], *, io: AsyncTreeIO | None = None
) -> str:
    """Awaitable :func:`capture_snapshot`."""

    return await async_run_steps(_snapshot_steps(os.fspath(path)), io or AsyncHostIO())


def _snapshot_steps(path: str) -> Steps[str]:
    entries: Sequence[DirEntryInfo] = yield FsCall("walk", (path,))
    return render_tree(path, entries)


def render_tree(path: str, entries: Sequence[DirEntryInfo]) -> str:
    """Render a flattened recursive listing of ``path``.

    ``entries`` may arrive in any order; each one is attributed to its parent
    through ``DirEntryInfo.parent``.
    """

    base = os.path.normpath(path)
    children: dict[str, list[DirEntryInfo]] = {}
    for entry in entries:
        relative_parent = os.path.relpath(os.path.normpath(entry.parent), base)
        key = "" if relative_parent == os.curdir else relative_parent
        children.setdefault(key, []).append(entry)

    for siblings in children.values():
        siblings.sort(key=lambda entry: (not entry.is_directory, entry.name))

    lines = [f"{os.path.basename(os.path.abspath(base))}/"]
    _render_level(children, "", "", lines)
    return "\n".join(lines)


def _render_level(
    children: dict[str, list[DirEntryInfo]],
    directory: str,
    prefix: str,
    lines: list[str],
) -> None:
    siblings = children.get(directory, [])
    for index, entry in enumerate(siblings):
        is_last = index == len(siblings) - 1
        connector = _LAST_BRANCH if is_last else _BRANCH
        label = f"{entry.name}/" if entry.is_directory else entry.name
        lines.append(f"{prefix}{connector}{label}")
        if entry.is_directory:
            child = os.path.join(directory, entry.name) if directory else entry.name
            _render_level(children, child, prefix + (_SPACE if is_last else _PIPE), lines)
