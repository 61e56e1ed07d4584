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

"""Tests for writing tree descriptions to disk."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from testdirs import DirectoryTree, MalformedTreeError, link, metadata, symlink
from testdirs._fixture import remove_tree
from testdirs._tree import rebase_symlink_target
from tests.helpers import requires_posix_permissions, requires_symlinks

if TYPE_CHECKING:
    from tests.conftest import CreateTree


class TestPrimitives:
    """Primitive content becomes a regular file."""

    def test_writes_every_primitive_kind(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(
            tmp_path,
            {
                "text.txt": "Hello, world!",
                "int.txt": 42,
                "float.txt": 3.14,
                "bool.txt": True,
                "none.txt": None,
                "bytes.bin": b"testdirs",
                "bytearray.bin": bytearray(b"\x00\xff"),
                "view.bin": memoryview(b"view"),
            },
        )

        assert (tmp_path / "text.txt").read_text(encoding="utf-8") == "Hello, world!"
        assert (tmp_path / "int.txt").read_text(encoding="utf-8") == "42"
        assert (tmp_path / "float.txt").read_text(encoding="utf-8") == "3.14"
        assert (tmp_path / "bool.txt").read_text(encoding="utf-8") == "True"
        assert (tmp_path / "none.txt").read_text(encoding="utf-8") == "None"
        assert (tmp_path / "bytes.bin").read_bytes() == b"testdirs"
        assert (tmp_path / "bytearray.bin").read_bytes() == b"\x00\xff"
        assert (tmp_path / "view.bin").read_bytes() == b"view"

    def test_text_is_written_as_utf8_verbatim(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"crlf.txt": "Grüße\r\n"})

        assert (tmp_path / "crlf.txt").read_bytes() == "Grüße\r\n".encode()

    def test_existing_files_are_overwritten(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        (tmp_path / "a.txt").write_text("old", encoding="utf-8")

        create_tree(tmp_path, {"a.txt": "new"})

        assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "new"


class TestDirectories:
    def test_creates_destination_and_nested_directories(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        destination = tmp_path / "not" / "there" / "yet"

        create_tree(
            destination,
            {
                "file1.txt": "Hello, world!",
                "dir1": {
                    "file2.txt": "This is file 2",
                    "dir2": {"file3.txt": "This is file 3"},
                },
                "empty": {},
            },
        )

        assert (destination / "file1.txt").read_text(encoding="utf-8") == "Hello, world!"
        assert (destination / "dir1" / "dir2" / "file3.txt").read_text(
            encoding="utf-8"
        ) == "This is file 3"
        assert (destination / "empty").is_dir()
        assert list((destination / "empty").iterdir()) == []

    def test_separators_in_names_create_intermediate_directories(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"this/is/nested.txt": "This is a file"})

        assert (tmp_path / "this" / "is" / "nested.txt").read_text(
            encoding="utf-8"
        ) == "This is a file"

    def test_mapping_with_marker_like_keys_is_a_directory(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"entry": {"content": "x", "metadata": "y"}})

        assert (tmp_path / "entry").is_dir()
        assert (tmp_path / "entry" / "content").read_text(encoding="utf-8") == "x"

    def test_empty_tree_creates_only_the_destination(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        destination = tmp_path / "out"

        create_tree(destination, {})

        assert destination.is_dir()
        assert list(destination.iterdir()) == []


class TestLinks:
    def test_hard_link_shares_the_inode(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(
            tmp_path,
            {
                "dir1": {"file2.txt": "This is file 2"},
                "link2.txt": link("dir1/file2.txt"),
            },
        )

        original = tmp_path / "dir1" / "file2.txt"
        linked = tmp_path / "link2.txt"
        assert linked.read_text(encoding="utf-8") == "This is file 2"
        assert os.path.samefile(original, linked)
        assert not linked.is_symlink()

    @requires_symlinks
    def test_symlink_stores_relative_target(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(
            tmp_path,
            {
                "dir1": {"text.txt": "This is a text file"},
                "link1.txt": symlink("dir1/text.txt"),
            },
        )

        link_path = tmp_path / "link1.txt"
        assert link_path.is_symlink()
        assert os.readlink(link_path) == os.path.join("dir1", "text.txt")
        assert link_path.read_text(encoding="utf-8") == "This is a text file"

    @requires_symlinks
    def test_symlink_to_directory(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(
            tmp_path,
            {"nested": {"file.txt": "inside"}, "alias": symlink("nested")},
        )

        assert (tmp_path / "alias").is_symlink()
        assert (tmp_path / "alias" / "file.txt").read_text(encoding="utf-8") == "inside"

    @requires_symlinks
    def test_link_entries_create_missing_parents(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(
            tmp_path,
            {
                "file.txt": "root",
                "deep/nested/alias.txt": symlink("../../file.txt"),
                "other/copy.txt": link("../file.txt"),
            },
        )

        assert (tmp_path / "deep" / "nested" / "alias.txt").read_text(
            encoding="utf-8"
        ) == "root"
        assert (tmp_path / "other" / "copy.txt").read_text(encoding="utf-8") == "root"

    @requires_symlinks
    def test_dangling_symlink_is_allowed(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"broken": symlink("missing.txt")})

        assert (tmp_path / "broken").is_symlink()
        assert not (tmp_path / "broken").exists()

    def test_missing_hard_link_target_propagates(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        with pytest.raises(FileNotFoundError) as excinfo:
            create_tree(tmp_path, {"copy.txt": link("missing.txt")})

        assert any("hard_link" in note for note in excinfo.value.__notes__)


class TestMetadata:
    @requires_posix_permissions
    def test_applies_permissions_and_fails_inside_read_only_directory(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        destination = tmp_path / "with-permissions"
        files = {
            "file1.txt": metadata("Hello, world!", mode=0o644),
            "dir1": {
                "file2.txt": metadata("This is file 2", mode=0o444),
                "dir2": metadata({"file3.txt": "This is file 3"}, mode=0o555),
            },
        }

        try:
            with pytest.raises(PermissionError) as excinfo:
                create_tree(destination, files)

            assert any("write_file" in note for note in excinfo.value.__notes__)
            assert (destination / "file1.txt").read_text(encoding="utf-8") == "Hello, world!"
            assert stat.S_IMODE((destination / "file1.txt").stat().st_mode) == 0o644
            assert stat.S_IMODE((destination / "dir1" / "file2.txt").stat().st_mode) == 0o444
            assert stat.S_IMODE((destination / "dir1" / "dir2").stat().st_mode) == 0o555
            assert not (destination / "dir1" / "dir2" / "file3.txt").exists()
        finally:
            remove_tree(destination)

    @requires_posix_permissions
    def test_read_only_file_rejects_writes(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"locked.txt": metadata("frozen", mode=0o444)})

        with pytest.raises(PermissionError):
            (tmp_path / "locked.txt").write_text("thawed", encoding="utf-8")

    def test_metadata_without_mode_is_transparent(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        create_tree(tmp_path, {"plain.txt": metadata("plain")})

        assert (tmp_path / "plain.txt").read_text(encoding="utf-8") == "plain"


class TestMalformedTrees:
    """Invalid entries are rejected before any call for that entry."""

    @pytest.mark.parametrize(
        "content",
        [[1, 2], ("a", "b"), {"x"}, object(), len],
        ids=["list", "tuple", "set", "object", "callable"],
    )
    def test_unsupported_content(
        self, tmp_path: Path, create_tree: CreateTree, content: object
    ) -> None:
        with pytest.raises(MalformedTreeError) as excinfo:
            create_tree(tmp_path, {"ok.txt": "fine", "bad": content})  # type: ignore[dict-item]

        assert excinfo.value.path == str(tmp_path / "bad")
        assert (tmp_path / "ok.txt").exists()
        assert not (tmp_path / "bad").exists()

    def test_metadata_hidden_inside_a_plain_mapping_is_rejected(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        with pytest.raises(MalformedTreeError):
            create_tree(tmp_path, {"dir": {"bad": [metadata("x")]}})  # type: ignore[dict-item]

    @pytest.mark.parametrize("name", ["", os.path.abspath("escape.txt")])
    def test_empty_and_absolute_names(
        self, tmp_path: Path, create_tree: CreateTree, name: str
    ) -> None:
        with pytest.raises(MalformedTreeError):
            create_tree(tmp_path, {name: "x"})

    def test_malformed_error_is_a_value_error(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        with pytest.raises(ValueError, match="Unsupported entry content"):
            create_tree(tmp_path, {"bad": 3j})  # type: ignore[dict-item]

    def test_file_in_place_of_directory_propagates_os_error(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        with pytest.raises(OSError) as excinfo:
            create_tree(tmp_path, {"a": "file", "a/b.txt": "nested"})

        assert any("make_directory" in note for note in excinfo.value.__notes__)


class TestRebaseSymlinkTarget:
    def test_absolute_targets_are_unchanged(self) -> None:
        target = os.path.abspath("elsewhere.txt")

        assert (
            rebase_symlink_target(
                provenance=os.path.abspath("src"),
                name="link",
                target=target,
                link_path=os.path.abspath(os.path.join("out", "link")),
            )
            == target
        )

    def test_same_location_keeps_target(self) -> None:
        source = os.path.abspath("src")

        rebased = rebase_symlink_target(
            provenance=source,
            name="link",
            target=os.path.join("nested", "file.txt"),
            link_path=os.path.join(source, "link"),
        )

        assert rebased == os.path.join("nested", "file.txt")

    def test_deeper_destination_climbs_further(self) -> None:
        source = os.path.abspath(os.path.join("src", "fixture", "nested"))
        link_path = os.path.abspath(
            os.path.join("tmp", "out", "deeper", "nested", "link.txt")
        )

        rebased = rebase_symlink_target(
            provenance=source,
            name="link.txt",
            target=os.path.join("..", "sibling.txt"),
            link_path=link_path,
        )

        resolved = os.path.normpath(os.path.join(os.path.dirname(link_path), rebased))
        assert resolved == os.path.abspath(os.path.join("src", "fixture", "sibling.txt"))

    @requires_symlinks
    def test_directory_tree_provenance_triggers_rebasing(
        self, tmp_path: Path, create_tree: CreateTree
    ) -> None:
        source = tmp_path / "source"
        source.mkdir()
        (source / "target.txt").write_text("original", encoding="utf-8")
        tree = DirectoryTree({"alias": symlink("target.txt")}, provenance=str(source))

        create_tree(tmp_path / "copy" / "deep", tree)

        alias = tmp_path / "copy" / "deep" / "alias"
        assert alias.read_text(encoding="utf-8") == "original"
        assert os.path.samefile(alias, source / "target.txt")
