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

"""Configuration for where fixture directories are created."""

from __future__ import annotations

import os
import tempfile
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final, cast

import yaml

from .errors import ConfigError

ENV_CONFIG_PATH = "TESTDIRS_CONFIG"
ENV_TEMP_ROOT = "TESTDIRS_TEMP_ROOT"
ENV_PREFIX = "TESTDIRS_PREFIX"

DEFAULT_PREFIX = "testdirs-"

_ENV_KEYS: Final = {"temp_root": ENV_TEMP_ROOT, "prefix": ENV_PREFIX}
_KNOWN_KEYS: Final = frozenset(_ENV_KEYS)

__all__ = [
    "DEFAULT_PREFIX",
    "ENV_CONFIG_PATH",
    "ENV_PREFIX",
    "ENV_TEMP_ROOT",
    "TestdirsConfig",
    "load_config",
]


@dataclass(frozen=True, slots=True)
class TestdirsConfig:
    """Resolved fixture configuration.

    Attributes:
        temp_root: Parent directory for fixtures created without an explicit
            ``dirname``.
        prefix: Name prefix of each fixture directory; a random UUID follows.
    """

    __test__ = False

    temp_root: Path
    prefix: str = DEFAULT_PREFIX


def load_config(
    path: Path | Mapping[str, object] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> TestdirsConfig:
    """Resolve where fixtures go and how they are named.

    Sources are layered, later ones winning: built-in defaults, the
    configuration file (``path``, else ``$TESTDIRS_CONFIG``),
    ``$TESTDIRS_TEMP_ROOT`` / ``$TESTDIRS_PREFIX`` and finally ``overrides``.
    A mapping passed as ``path`` is used in place of a file. ``None`` values
    in ``overrides`` leave the lower layers untouched.

    Raises:
        FileNotFoundError: ``path`` names a file that does not exist.
        ConfigError: The file cannot be parsed into known keys or a value
            fails validation.
    """

    environ = os.environ if env is None else env

    if isinstance(path, Mapping):
        layered: dict[str, object] = dict(path)
    elif path is not None:
        layered = _read_config_file(Path(path))
    elif environ.get(ENV_CONFIG_PATH):
        layered = _read_config_file(Path(environ[ENV_CONFIG_PATH]))
    else:
        layered = {}

    if unknown := sorted(set(layered) - _KNOWN_KEYS):
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}.")

    for key, variable in _ENV_KEYS.items():
        if variable in environ:
            layered[key] = environ[variable]

    for key, value in (overrides or {}).items():
        if key not in _KNOWN_KEYS:
            raise ConfigError(f"Unknown configuration override: {key}.")
        if value is not None:
            layered[key] = value

    return TestdirsConfig(
        temp_root=_temp_root(layered.get("temp_root")),
        prefix=_prefix(layered.get("prefix", DEFAULT_PREFIX)),
    )


def _parse_toml(path: Path) -> object:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _parse_yaml(path: Path) -> object:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


_PARSERS: Final[Mapping[str, Callable[[Path], object]]] = {
    ".toml": _parse_toml,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
}


def _read_config_file(path: Path) -> dict[str, object]:
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ConfigError(f"Unsupported configuration format: {path.suffix!r}")

    document = parser(path)
    if not isinstance(document, Mapping):
        raise ConfigError("Configuration file must contain a mapping at the root.")
    root = cast(Mapping[object, object], document)

    # Keys may live at the top level or under a [testdirs] table.
    section = root.get("testdirs", root)
    if not isinstance(section, Mapping):
        raise ConfigError("The [testdirs] section must be a mapping.")

    entries = cast(Mapping[object, object], section)
    if bad := [key for key in entries if not isinstance(key, str)]:
        raise ConfigError(f"Configuration keys must be strings (got {bad[0]!r}).")
    return {str(key): value for key, value in entries.items()}


def _temp_root(value: object) -> Path:
    if value is None:
        return Path(os.path.realpath(tempfile.gettempdir()))
    if not isinstance(value, str | os.PathLike):
        raise ConfigError(f"`temp_root` must be a path (got {value!r}).")
    return Path(os.path.abspath(os.path.expanduser(value)))


def _prefix(value: object) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"`prefix` must be a non-empty string (got {value!r}).")
    if any(sep and sep in value for sep in (os.sep, os.altsep)):
        raise ConfigError(f"`prefix` must not contain a path separator (got {value!r}).")
    return value
