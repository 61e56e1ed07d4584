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

"""Declarative directory fixtures for tests.

Describe a directory tree as a nested mapping, write it to disk, read a real
directory back into the same shape, and hand out throwaway fixture
directories that clean up after themselves.

Example usage::

    from testdirs import capture_snapshot, metadata, symlink, testdir

    files = {
        "README.md": "# demo\\n",
        "src": {"main.py": "print('hi')\\n"},
        "latest": symlink("src/main.py"),
        "locked.txt": metadata("read only", mode=0o444),
    }

    with testdir(files) as fixture:
        print(capture_snapshot(fixture.path))

Every filesystem operation has a blocking and an awaitable form
(``create_file_tree`` / ``async_create_file_tree`` and so on). Both perform
the same calls in the same order.
"""

from __future__ import annotations

from ._fixture import (
    AsyncTestdir,
    Testdir,
    async_testdir,
    async_testdir_from,
    testdir,
    testdir_from,
)
from ._scan import async_from_file_system, from_file_system
from ._tree import async_create_file_tree, create_file_tree
from ._types import (
    Content,
    DirectoryTree,
    EncodingResolver,
    FSMetadata,
    Link,
    Metadata,
    Primitive,
    ScanOptions,
    Symlink,
)
from .config import TestdirsConfig, load_config
from .errors import (
    ConfigError,
    FactoryConfigurationError,
    MalformedTreeError,
    OptionsValidationError,
    TestdirsError,
)
from .factory import CustomTestdir, FactoryContext, create_custom_testdir
from .helpers import (
    async_capture_snapshot,
    capture_snapshot,
    has_metadata,
    is_directory_content,
    is_link,
    is_primitive,
    is_symlink,
    link,
    metadata,
    symlink,
)
from .logging import configure_logging

__all__ = [
    "AsyncTestdir",
    "ConfigError",
    "Content",
    "CustomTestdir",
    "DirectoryTree",
    "EncodingResolver",
    "FSMetadata",
    "FactoryConfigurationError",
    "FactoryContext",
    "Link",
    "MalformedTreeError",
    "Metadata",
    "OptionsValidationError",
    "Primitive",
    "ScanOptions",
    "Symlink",
    "Testdir",
    "TestdirsConfig",
    "TestdirsError",
    "async_capture_snapshot",
    "async_create_file_tree",
    "async_from_file_system",
    "async_testdir",
    "async_testdir_from",
    "capture_snapshot",
    "configure_logging",
    "create_custom_testdir",
    "create_file_tree",
    "from_file_system",
    "has_metadata",
    "is_directory_content",
    "is_link",
    "is_primitive",
    "is_symlink",
    "link",
    "load_config",
    "metadata",
    "symlink",
    "testdir",
    "testdir_from",
]
