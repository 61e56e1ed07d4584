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

"""Isolated fixture directories with scoped cleanup.

Example usage::

    from testdirs import testdir

    with testdir({"a.txt": "hello", "sub": {"b.txt": "world"}}) as fixture:
        assert Path(fixture.path, "sub", "b.txt").read_text() == "world"
    # the directory is gone here

    async with await async_testdir({"a.txt": "hello"}) as fixture:
        ...
"""

from __future__ import annotations

import asyncio
import os
import shutil
import stat
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Self
from uuid import uuid4

from ._scan import async_from_file_system, from_file_system
from ._tree import async_create_file_tree, create_file_tree
from ._types import Content, ScanOptions
from .config import load_config
from .logging import StructuredLogger, get_logger

__all__ = [
    "AsyncTestdir",
    "Testdir",
    "async_testdir",
    "async_testdir_from",
    "remove_tree",
    "testdir",
    "testdir_from",
]

logger: StructuredLogger = get_logger(__name__, context={"component": "fixture"})


@dataclass(slots=True)
class Testdir:
    """Handle to a fixture directory created by :func:`testdir`.

    Leaving the ``with`` block removes the directory. ``remove`` may also be
    called directly, any number of times.
    """

    __test__ = False

    path: str

    def remove(self) -> None:
        """Recursively delete the fixture directory."""
        remove_tree(self.path)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.remove()


@dataclass(slots=True)
class AsyncTestdir:
    """Handle to a fixture directory created by :func:`async_testdir`."""

    path: str

    async def remove(self) -> None:
        """Recursively delete the fixture directory without blocking the loop."""
        await asyncio.to_thread(remove_tree, self.path)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.remove()


def testdir(
    files: Mapping[str, Content],
    *,
    dirname: str | os.PathLike[str] | None = None,
) -> Testdir:
    """Create a fresh fixture directory populated with ``files``.

    Args:
        files: Tree description to materialize.
        dirname: Parent directory for the fixture. Defaults to the configured
            temporary root (see :func:`testdirs.config.load_config`).

    Returns:
        A :class:`Testdir` whose ``path`` is ``<parent>/<prefix><uuid4>``.
    """

    fixture_path = _new_fixture_path(dirname)
    try:
        create_file_tree(fixture_path, files)
    except Exception as error:
        error.add_note(f"testdirs: partial fixture left at {fixture_path}")
        raise
    logger.debug("Created fixture.", event="testdir.create", context={"path": fixture_path})
    return Testdir(fixture_path)


testdir.__test__ = False  # type: ignore[attr-defined]


async def async_testdir(
    files: Mapping[str, Content],
    *,
    dirname: str | os.PathLike[str] | None = None,
) -> AsyncTestdir:
    """Awaitable :func:`testdir` returning an :class:`AsyncTestdir`."""

    fixture_path = _new_fixture_path(dirname)
    try:
        await async_create_file_tree(fixture_path, files)
    except Exception as error:
        error.add_note(f"testdirs: partial fixture left at {fixture_path}")
        raise
    logger.debug(
        "Created fixture.",
        event="testdir.create",
        context={"path": fixture_path, "mode": "async"},
    )
    return AsyncTestdir(fixture_path)


def testdir_from(
    source: str | os.PathLike[str],
    *,
    dirname: str | os.PathLike[str] | None = None,
    options: ScanOptions | None = None,
) -> Testdir:
    """Copy the directory at ``source`` into a fresh fixture.

    Relative symlinks in ``source`` keep pointing at the files they named in
    ``source``.
    """

    return testdir(from_file_system(source, options), dirname=dirname)


testdir_from.__test__ = False  # type: ignore[attr-defined]


async def async_testdir_from(
    source: str | os.PathLike[str],
    *,
    dirname: str | os.PathLike[str] | None = None,
    options: ScanOptions | None = None,
) -> AsyncTestdir:
    """Awaitable :func:`testdir_from`."""

    return await async_testdir(
        await async_from_file_system(source, options), dirname=dirname
    )


def remove_tree(path: str | os.PathLike[str]) -> None:
    """Forcefully remove ``path``; a missing path is not an error.

    Entries left read-only by metadata are made writable and retried.
    """

    logger.debug("Removing fixture.", event="testdir.remove", context={"path": os.fspath(path)})
    shutil.rmtree(path, onexc=_make_writable_and_retry)


def _make_writable_and_retry(
    function: Callable[..., object], path: str, error: BaseException
) -> None:
    if isinstance(error, FileNotFoundError):
        return
    if not isinstance(error, PermissionError):
        raise error
    os.chmod(os.path.dirname(path), stat.S_IRWXU)
    if function in {os.unlink, os.remove, os.rmdir}:
        if os.name == "nt":
            os.chmod(path, stat.S_IWRITE)
        function(path)
        return
    # The directory itself could not be opened or listed.
    os.chmod(path, stat.S_IRWXU)
    shutil.rmtree(path, onexc=_make_writable_and_retry)


def _new_fixture_path(dirname: str | os.PathLike[str] | None) -> str:
    config = load_config()
    parent = os.path.abspath(dirname) if dirname is not None else str(config.temp_root)
    return os.path.join(parent, f"{config.prefix}{uuid4()}")
