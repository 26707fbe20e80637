"""Tests for the file builder."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import yaml

from uim.core.files import (
    build_directory,
    delete_directory,
    parse,
    read_native_files,
    serialize,
    write_native_files,
)
from uim.core.model.models import NativeFileInformation
from uim.errors import FileSystemError

if TYPE_CHECKING:
    from pathlib import Path


class TestSerialize:
    def test_json_is_indented(self) -> None:
        assert serialize("a.json", {"a": 1}) == '{\n  "a": 1\n}\n'

    def test_yaml_keeps_key_order(self) -> None:
        text = serialize("a.yaml", {"b": 1, "a": 2})
        assert text == "b: 1\na: 2\n"

    def test_strings_are_verbatim(self) -> None:
        assert serialize("a.json", "raw") == "raw"

    def test_structured_content_needs_known_extension(self) -> None:
        with pytest.raises(ValueError, match="Cannot serialize"):
            serialize("README", {"a": 1})

    def test_parse_by_extension(self) -> None:
        assert parse("a.json", '{"a": 1}') == {"a": 1}
        assert parse("a.yml", "a: 1") == {"a": 1}
        assert parse("a.txt", "a: 1") == "a: 1"


class TestBuildDirectory:
    def test_materializes_tree(self, tmp_path: Path) -> None:
        tree = {
            "ask-resources.json": {"askcliResourcesVersion": "2020-03-31"},
            "skill-package/": {"skill.json": {"manifest": {}}},
            ".ask/": {},
            "README.md": "# skill\n",
        }

        build_directory(tree, tmp_path)

        assert json.loads((tmp_path / "ask-resources.json").read_text()) == {
            "askcliResourcesVersion": "2020-03-31"
        }
        assert json.loads((tmp_path / "skill-package" / "skill.json").read_text()) == {
            "manifest": {}
        }
        assert (tmp_path / ".ask").is_dir()
        assert (tmp_path / "README.md").read_text() == "# skill\n"

    def test_existing_files_are_merged(self, tmp_path: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("category: GAMES\nkeepsMicOpen: true\n")

        build_directory({"settings.yaml": {"category": "EDUCATION", "projectId": "p"}}, tmp_path)

        assert yaml.safe_load(settings.read_text()) == {
            "category": "EDUCATION",
            "keepsMicOpen": True,
            "projectId": "p",
        }

    @pytest.mark.parametrize(
        ("file_name", "raw"), [("skill.json", "{not json"), ("settings.yaml", "a: [b")]
    )
    def test_malformed_existing_file(self, tmp_path: Path, file_name: str, raw: str) -> None:
        (tmp_path / file_name).write_text(raw)

        with pytest.raises(FileSystemError, match=f"Cannot merge into .*{file_name}"):
            build_directory({file_name: {"projectId": "p"}}, tmp_path)

        assert (tmp_path / file_name).read_text() == raw

    def test_unwritable_target(self, tmp_path: Path) -> None:
        (tmp_path / "blocker").write_text("")
        with pytest.raises(FileSystemError):
            build_directory({"blocker/": {"a.json": {}}}, tmp_path)


class TestNativeFiles:
    def test_write_and_read(self, tmp_path: Path) -> None:
        files = [
            NativeFileInformation(path=["custom", "intents", "B.yaml"], content={"b": 1}),
            NativeFileInformation(path=["custom", "intents", "A.yaml"], content={"a": 1}),
            NativeFileInformation(path=["custom", "intents", "de", "A.yaml"], content={"a": 2}),
        ]
        write_native_files(files, tmp_path)

        read = read_native_files(tmp_path, ["custom", "intents"])

        assert [f.path for f in read] == [
            ["custom", "intents", "A.yaml"],
            ["custom", "intents", "B.yaml"],
        ]
        assert read[0].content == "a: 1\n"

    def test_read_missing_directory(self, tmp_path: Path) -> None:
        assert read_native_files(tmp_path, ["custom", "types"]) == []


class TestDeleteDirectory:
    def test_deletes_recursively(self, tmp_path: Path) -> None:
        target = tmp_path / "platform.alexa"
        (target / "skill-package").mkdir(parents=True)
        (target / "skill-package" / "skill.json").write_text("{}")

        delete_directory(target)

        assert not target.exists()

    def test_missing_directory_is_noop(self, tmp_path: Path) -> None:
        delete_directory(tmp_path / "missing")
