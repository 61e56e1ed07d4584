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

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import pytest

from testdirs import (
    Content,
    DirectoryTree,
    ScanOptions,
    async_create_file_tree,
    async_from_file_system,
    create_file_tree,
    from_file_system,
)
from testdirs.config import ENV_CONFIG_PATH, ENV_PREFIX, ENV_TEMP_ROOT


class CreateTree(Protocol):
    def __call__(self, path: Path, files: Mapping[str, Content]) -> None:
        """Materialize ``files`` under ``path``."""


class ScanTree(Protocol):
    def __call__(
        self, path: Path, options: ScanOptions | None = None
    ) -> DirectoryTree:
        """Read ``path`` back into a tree description."""


@pytest.fixture(autouse=True)
def fixture_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Route fixtures created without ``dirname`` into the test's tmp_path."""

    root = tmp_path / "fixture-root"
    root.mkdir()
    monkeypatch.setenv(ENV_TEMP_ROOT, str(root))
    monkeypatch.delenv(ENV_PREFIX, raising=False)
    monkeypatch.delenv(ENV_CONFIG_PATH, raising=False)
    return root


@pytest.fixture(params=["sync", "async"])
def create_tree(request: pytest.FixtureRequest) -> CreateTree:
    """Run the blocking or the awaitable materializer."""

    if request.param == "sync":
        return create_file_tree

    def run(path: Path, files: Mapping[str, Content]) -> None:
        asyncio.run(async_create_file_tree(path, files))

    return run


@pytest.fixture(params=["sync", "async"])
def scan_tree(request: pytest.FixtureRequest) -> ScanTree:
    """Run the blocking or the awaitable scanner."""

    if request.param == "sync":
        return from_file_system

    def run(path: Path, options: ScanOptions | None = None) -> DirectoryTree:
        return asyncio.run(async_from_file_system(path, options))

    return run
