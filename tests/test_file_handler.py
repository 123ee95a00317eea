"""Tests for file_handler module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ibtools.errors import InputNotFoundError
from ibtools.file_handler import (
    atomic_copy,
    atomic_write_bytes,
    read_text_with_encoding,
    resolve_path,
    validate_file,
    validate_folder,
)

# =============================================================================
# Path Validation Tests
# =============================================================================


class TestResolvePath:
    def test_absolute_unchanged(self, tmp_path):
        assert resolve_path(str(tmp_path)) == tmp_path.resolve()

    def test_relative_against_base(self, tmp_path):
        assert resolve_path("a/b", tmp_path) == (tmp_path / "a" / "b").resolve()

    def test_relative_against_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert resolve_path("x") == (Path.cwd() / "x").resolve()


class TestValidateFolder:
    """Tests for validate_folder()."""

    def test_existing_folder(self, tmp_path):
        assert validate_folder(str(tmp_path)) == tmp_path.resolve()

    def test_missing_folder_raises(self, tmp_path):
        with pytest.raises(InputNotFoundError, match="does not exist") as exc:
            validate_folder(str(tmp_path / "absent"), "Project folder")
        assert exc.value.stage == "validate"
        assert "Project folder" in exc.value.message

    def test_file_is_not_folder(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(InputNotFoundError, match="not a folder"):
            validate_folder(path)


class TestValidateFile:
    """Tests for validate_file()."""

    def test_existing_file(self, tmp_path):
        path = tmp_path / "dump.xml"
        path.write_text("x")
        assert validate_file(path) == path.resolve()

    def test_directory_raises(self, tmp_path):
        with pytest.raises(InputNotFoundError, match="not a file"):
            validate_file(tmp_path)

    def test_symlink_resolves(self, tmp_path):
        real = tmp_path / "real.xml"
        real.write_text("x")
        link = tmp_path / "link.xml"
        link.symlink_to(real)
        assert validate_file(link) == real.resolve()


# =============================================================================
# Reading Tests
# =============================================================================


class TestReadTextWithEncoding:
    """Tests for read_text_with_encoding()."""

    def test_utf8_file(self, tmp_path):
        path = tmp_path / ".project"
        text = "<projectDescription>\n\t<name>Торговля</name>\n\t<comment>Управление торговлей</comment>\n</projectDescription>\n"
        path.write_text(text, encoding="utf-8")
        content, encoding = read_text_with_encoding(path)
        assert content == text
        assert encoding in ("utf_8", "utf-8")

    def test_bom_stripped(self, tmp_path):
        path = tmp_path / ".project"
        path.write_bytes(b"\xef\xbb\xbf<name>A</name>\n")
        content, _ = read_text_with_encoding(path)
        assert content == "<name>A</name>\n"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty"
        path.write_bytes(b"")
        assert read_text_with_encoding(path) == ("", "utf-8")

    def test_ascii_reported_as_utf8(self, tmp_path):
        path = tmp_path / "plain"
        path.write_bytes(b"<name>Plain</name>\n" * 4)
        _, encoding = read_text_with_encoding(path)
        assert encoding in ("utf-8", "utf_8")


# =============================================================================
# Atomic Write Tests
# =============================================================================


class TestAtomicWriteBytes:
    """Tests for atomic_write_bytes()."""

    def test_write_new(self, tmp_path):
        target = tmp_path / "index.idx"
        assert atomic_write_bytes(target, b"\x00\x01") == 2
        assert target.read_bytes() == b"\x00\x01"

    def test_replace_existing(self, tmp_path):
        target = tmp_path / "index.idx"
        target.write_bytes(b"old")
        atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["index.idx"]

    def test_failure_cleans_up_temp(self, tmp_path):
        target = tmp_path / "index.idx"
        target.write_bytes(b"old")
        with patch(
            "ibtools.file_handler.os.replace", side_effect=OSError("boom")
        ):
            with pytest.raises(OSError):
                atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["index.idx"]

    def test_missing_parent_raises(self, tmp_path):
        with pytest.raises(OSError):
            atomic_write_bytes(tmp_path / "missing" / "index.idx", b"x")


class TestAtomicCopy:
    """Tests for atomic_copy()."""

    def test_copy_verbatim(self, tmp_path):
        source = tmp_path / "src.xml"
        source.write_bytes(b"\xef\xbb\xbf<a/>\r\n")
        target = tmp_path / "out" / "ConfigDumpInfo.xml"
        target.parent.mkdir()
        atomic_copy(source, target)
        assert target.read_bytes() == source.read_bytes()

    def test_overwrites(self, tmp_path):
        source = tmp_path / "src.xml"
        source.write_bytes(b"new")
        target = tmp_path / "dst.xml"
        target.write_bytes(b"old content")
        atomic_copy(source, target)
        assert target.read_bytes() == b"new"
