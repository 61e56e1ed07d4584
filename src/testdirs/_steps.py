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

"""Run one tree algorithm in blocking or awaitable mode.

Each algorithm is a generator that *yields* the filesystem calls it needs
(``FsCall``) and receives each call's result back through ``send``. It never
touches the disk itself. Two drivers execute those calls:

- :func:`run_steps` calls a :class:`~testdirs._protocol.TreeIO` directly
- :func:`async_run_steps` awaits an :class:`~testdirs._protocol.AsyncTreeIO`

Calls are executed strictly one at a time in the order they are yielded, so
both modes perform the same sequence of filesystem round trips and fail at the
same point.

Example::

    def exists_as_dir(path: str) -> Steps[bool]:
        result = yield FsCall("is_directory", (path,))
        return bool(result)

    run_steps(exists_as_dir("/tmp"), HostIO())
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from typing import Any, cast

from ._protocol import AsyncTreeIO, TreeIO

__all__ = ["FsCall", "Steps", "async_run_steps", "run_steps"]


@dataclass(slots=True, frozen=True)
class FsCall:
    """A single filesystem operation requested by an algorithm.

    Attributes:
        operation: Name of the ``TreeIO`` method to invoke.
        args: Positional arguments; the first one is always the path the
            operation is about.
    """

    operation: str
    args: tuple[object, ...]

    def describe(self) -> str:
        return f"{self.operation} {self.args[0]!r}"


type Steps[T] = Generator[FsCall, Any, T]


def run_steps[T](steps: Steps[T], io: TreeIO) -> T:
    """Drive ``steps`` to completion against a blocking backend."""

    result: object = None
    try:
        while True:
            call = steps.send(result)
            method = getattr(io, call.operation)
            try:
                result = method(*call.args)
            except OSError as error:
                error.add_note(f"testdirs: {call.describe()} failed")
                raise
    except StopIteration as stop:
        return cast(T, stop.value)
    finally:
        steps.close()


async def async_run_steps[T](steps: Steps[T], io: AsyncTreeIO) -> T:
    """Drive ``steps`` to completion against an awaitable backend."""

    result: object = None
    try:
        while True:
            call = steps.send(result)
            method = getattr(io, call.operation)
            try:
                result = await method(*call.args)
            except OSError as error:
                error.add_note(f"testdirs: {call.describe()} failed")
                raise
    except StopIteration as stop:
        return cast(T, stop.value)
    finally:
        steps.close()
