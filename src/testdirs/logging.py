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

"""Structured logging for fixture creation, scanning and cleanup.

Every record emitted by :mod:`testdirs` carries two extra attributes:

``event``
    A dotted name such as ``tree.entry.file`` or ``testdir.remove``.
``context``
    A dict of fields describing the record (paths, entry kinds, the
    ``component`` that emitted it).

The package never installs handlers on import. :func:`configure_logging` is
an opt-in for suites that want to watch fixtures being built; it reads
``TESTDIRS_LOG_LEVEL`` and ``TESTDIRS_LOG_FORMAT`` when called.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, Final, override

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

ENV_LOG_LEVEL: Final = "TESTDIRS_LOG_LEVEL"
ENV_LOG_FORMAT: Final = "TESTDIRS_LOG_FORMAT"

_TEXT_FORMAT: Final = "%(asctime)s %(levelname)-7s %(name)s [%(event)s] %(message)s%(context_suffix)s"
_TEXT_DATEFMT: Final = "%H:%M:%S"


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Adapter that turns every call into an ``event`` plus ``context`` record.

    ``event`` is mandatory, either as a keyword or inside ``extra``. Keys in
    ``extra`` other than ``event`` are folded into ``context`` together with
    the adapter's bound fields and the ``context=`` keyword.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(logger, dict(context or {}))

    @property
    def bound(self) -> dict[str, object]:
        return dict(self.extra or {})

    def bind(self, **context: object) -> StructuredLogger:
        """Return a sibling adapter with ``context`` added to the bound fields."""

        return type(self)(self.logger, context=self.bound | context)

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.pop("extra", None) or {})
        event = kwargs.pop("event", None) or extra.pop("event", None)
        extra.pop("event", None)
        if not isinstance(event, str):
            raise TypeError("Structured logs require an 'event' field.")

        inline = kwargs.pop("context", None)
        if inline is not None and not isinstance(inline, Mapping):
            raise TypeError("context must be a mapping when provided.")

        fields = self.bound
        fields.update(inline or {})
        fields.update(extra)
        kwargs["extra"] = {"event": event, "context": fields}
        return msg, kwargs


def get_logger(
    name: str,
    *,
    context: Mapping[str, object] | None = None,
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for ``name`` with ``context`` bound."""

    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Send log records to stderr as text or one JSON object per line.

    Arguments win over ``TESTDIRS_LOG_LEVEL`` and ``TESTDIRS_LOG_FORMAT``
    (``json`` or ``text``). The level defaults to ``INFO``.

    When the root logger already has handlers (pytest's logging plugin
    installs some) only its level changes, unless ``force`` is set.
    """

    source = os.environ if env is None else env
    if level is None:
        level = source.get(ENV_LOG_LEVEL) or logging.INFO
    resolved = _coerce_level(level)
    if json_mode is None:
        json_mode = source.get(ENV_LOG_FORMAT, "text").strip().lower() == "json"

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved)
        return

    logging.config.dictConfig(_dict_config(resolved, "json" if json_mode else "text"))


def _dict_config(level: int, formatter: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"()": f"{__name__}._TextFormatter"},
            "json": {"()": f"{__name__}._JsonFormatter"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
            },
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


class _TextFormatter(logging.Formatter):
    """Single-line text; records from other libraries render with ``[-]``."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)

    @override
    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "context", None)
        record.__dict__.setdefault("event", "-")
        record.context_suffix = (
            " " + " ".join(f"{key}={value!r}" for key, value in context.items())
            if context
            else ""
        )
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        if context := getattr(record, "context", None):
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    names = logging.getLevelNamesMapping()
    try:
        return names[level.strip().upper()]
    except KeyError:
        raise TypeError(f"Unknown log level: {level!r}") from None
