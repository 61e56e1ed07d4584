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

"""Host filesystem backends for the tree algorithms.

Example usage::

    from testdirs._host import HostIO

    io = HostIO()
    io.make_directory("/tmp/fixture/sub", None)
    io.write_file("/tmp/fixture/sub/a.txt", b"hello", 0o444)
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from ._types import DirEntryInfo

__all__ = ["AsyncHostIO", "HostIO"]


@dataclass(slots=True, frozen=True)
class HostIO:
    """Blocking :class:`~testdirs._protocol.TreeIO` backed by :mod:`os`."""

    def make_directory(self, path: str, mode: int | None) -> None:
        os.makedirs(path, exist_ok=True)
        # Applied after creation so the umask cannot mask bits off.
        if mode is not None:
            os.chmod(path, mode)

    def write_file(self, path: str, data: bytes, mode: int | None) -> None:
        with open(path, "wb") as handle:
            _ = handle.write(data)
        if mode is not None:
            os.chmod(path, mode)

    def hard_link(self, target: str, path: str) -> None:
        os.link(target, path)

    def symlink(self, target: str, path: str, target_is_directory: bool) -> None:
        os.symlink(target, path, target_is_directory=target_is_directory)

    def is_directory(self, path: str) -> bool:
        return os.path.isdir(path)

    def real_path(self, path: str) -> str:
        return os.path.realpath(path)

    def list_directory(self, path: str) -> Sequence[DirEntryInfo]:
        with os.scandir(path) as entries:
            infos = [_entry_info(entry, path) for entry in entries]
        infos.sort(key=lambda info: info.name)
        return infos

    def walk(self, path: str) -> Sequence[DirEntryInfo]:
        infos: list[DirEntryInfo] = []
        pending = [path]
        while pending:
            directory = pending.pop()
            with os.scandir(directory) as entries:
                for entry in entries:
                    info = _entry_info(entry, directory)
                    infos.append(info)
                    if info.is_directory:
                        pending.append(entry.path)
        return infos

    def read_file(self, path: str, encoding: str | None) -> str | bytes:
        if encoding is None:
            with open(path, "rb") as handle:
                return handle.read()
        with open(path, encoding=encoding, newline="") as handle:
            return handle.read()

    def read_link(self, path: str) -> str:
        return os.readlink(path)


def _entry_info(entry: os.DirEntry[str], parent: str) -> DirEntryInfo:
    return DirEntryInfo(
        name=entry.name,
        parent=parent,
        is_directory=entry.is_dir(follow_symlinks=False),
        is_symlink=entry.is_symlink(),
    )


@dataclass(slots=True, frozen=True)
class AsyncHostIO:
    """Awaitable :class:`~testdirs._protocol.AsyncTreeIO` over :class:`HostIO`.

    Each call runs in the default executor via :func:`asyncio.to_thread`, so
    the event loop is never blocked on disk I/O.
    """

    host: HostIO = field(default_factory=HostIO)

    async def make_directory(self, path: str, mode: int | None) -> None:
        await asyncio.to_thread(self.host.make_directory, path, mode)

    async def write_file(self, path: str, data: bytes, mode: int | None) -> None:
        await asyncio.to_thread(self.host.write_file, path, data, mode)

    async def hard_link(self, target: str, path: str) -> None:
        await asyncio.to_thread(self.host.hard_link, target, path)

    async def symlink(self, target: str, path: str, target_is_directory: bool) -> None:
        await asyncio.to_thread(self.host.symlink, target, path, target_is_directory)

    async def is_directory(self, path: str) -> bool:
        return await asyncio.to_thread(self.host.is_directory, path)

    async def real_path(self, path: str) -> str:
        return await asyncio.to_thread(self.host.real_path, path)

    async def list_directory(self, path: str) -> Sequence[DirEntryInfo]:
        return await asyncio.to_thread(self.host.list_directory, path)

    async def walk(self, path: str) -> Sequence[DirEntryInfo]:
        return await asyncio.to_thread(self.host.walk, path)

    async def read_file(self, path: str, encoding: str | None) -> str | bytes:
        return await asyncio.to_thread(self.host.read_file, path, encoding)

    async def read_link(self, path: str) -> str:
        return await asyncio.to_thread(self.host.read_link, path)
