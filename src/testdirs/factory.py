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

"""Custom fixture factories with validated options.

A factory bundles the repetitive parts of a project's fixtures: where the
fixture directory lives, what to prepare before it is built and what to tidy
afterwards. Options passed per call are validated against a pydantic model.

Example usage::

    from pydantic import BaseModel

    class Options(BaseModel):
        name: str = "fixture"
        readonly: bool = False

    async def build(context: FactoryContext[Options]) -> str:
        await async_create_file_tree(context.fixture_path, context.files)
        return context.fixture_path

    custom = create_custom_testdir(
        build,
        dirname=lambda options: f"/tmp/fixtures/{options.name}",
        options_schema=Options,
    )

    path = await custom({"a.txt": "hello"}, {"name": "demo"})
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, cast

from pydantic import BaseModel, ValidationError

from ._types import Content
from .errors import FactoryConfigurationError, OptionsValidationError
from .logging import StructuredLogger, get_logger

__all__ = ["CustomTestdir", "FactoryContext", "create_custom_testdir"]

logger: StructuredLogger = get_logger(__name__, context={"component": "factory"})

type MaybeAwaitable[T] = T | Awaitable[T]
type OptionsHook = Callable[[Any], MaybeAwaitable[None]]


@dataclass(frozen=True, slots=True)
class FactoryContext[OptionsT]:
    """Everything a factory function receives for one call.

    Attributes:
        options: Validated options; a model instance when a schema was given,
            otherwise a read-only view of the raw mapping.
        fixture_path: Path produced by the factory's ``dirname`` function.
        files: Tree description passed by the caller.
    """

    options: OptionsT
    fixture_path: str
    files: Mapping[str, Content]


class CustomTestdir[ResultT]:
    """Callable returned by :func:`create_custom_testdir`.

    Awaiting an instance runs, in order: ``dirname``, ``before``, the factory
    and ``after``. Extensions passed at creation time are available as
    attributes.
    """

    __test__ = False

    def __init__(
        self,
        factory: Callable[[FactoryContext[Any]], MaybeAwaitable[ResultT]],
        *,
        dirname: Callable[[Any], str],
        options_schema: type[BaseModel] | None,
        before: OptionsHook | None,
        after: OptionsHook | None,
    ) -> None:
        self._factory = factory
        self._dirname = dirname
        self._options_schema = options_schema
        self._before = before
        self._after = after

    async def __call__(
        self,
        files: Mapping[str, Content],
        options: Mapping[str, object] | None = None,
    ) -> ResultT:
        parsed = self.parse_options(options)
        fixture_path = self._dirname(parsed)
        logger.debug(
            "Running custom testdir factory.",
            event="factory.call",
            context={"fixture_path": fixture_path},
        )

        if self._before is not None:
            await _resolve(self._before(parsed))

        result = await _resolve(
            self._factory(
                FactoryContext(options=parsed, fixture_path=fixture_path, files=files)
            )
        )

        if self._after is not None:
            await _resolve(self._after(parsed))

        return result

    def parse_options(self, options: Mapping[str, object] | None) -> Any:
        """Validate raw options against the schema, applying its defaults."""

        raw = dict(options or {})
        if self._options_schema is None:
            return MappingProxyType(raw)
        try:
            return self._options_schema.model_validate(raw)
        except ValidationError as error:
            raise OptionsValidationError(
                f"Options validation failed: {error}"
            ) from error


def create_custom_testdir[ResultT](
    factory: Callable[[FactoryContext[Any]], MaybeAwaitable[ResultT]],
    *,
    dirname: Callable[[Any], str] | None = None,
    options_schema: type[BaseModel] | None = None,
    before: OptionsHook | None = None,
    after: OptionsHook | None = None,
    extensions: Mapping[str, Callable[..., object]] | None = None,
) -> CustomTestdir[ResultT]:
    """Build a reusable fixture function around ``factory``.

    Args:
        factory: Receives a :class:`FactoryContext` and returns the fixture
            result, directly or as an awaitable.
        dirname: Maps the validated options to the fixture path. Required.
        options_schema: Pydantic model validating per-call options.
        before: Runs with the validated options before ``factory``.
        after: Runs with the validated options after ``factory`` succeeds.
        extensions: Extra callables exposed as attributes of the result.

    Raises:
        FactoryConfigurationError: ``dirname`` is missing, ``options_schema``
            is not a pydantic model, or an extension name is taken.
    """

    if dirname is None or not callable(dirname):
        raise FactoryConfigurationError(
            "A dirname function must be provided in factory options."
        )
    if options_schema is not None and not (
        isinstance(options_schema, type) and issubclass(options_schema, BaseModel)
    ):
        raise FactoryConfigurationError(
            "options_schema must be a pydantic BaseModel subclass."
        )

    custom = CustomTestdir(
        factory,
        dirname=dirname,
        options_schema=options_schema,
        before=before,
        after=after,
    )
    for name, extension in (extensions or {}).items():
        if hasattr(custom, name):
            raise FactoryConfigurationError(
                f"Extension {name!r} collides with an existing attribute."
            )
        setattr(custom, name, extension)
    return custom


async def _resolve[T](value: MaybeAwaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await cast(Awaitable[T], value)
    return cast(T, value)
