"""Tests for file system traversal functionality."""

import logging
from pathlib import Path

import pytest

from safeprofile.traversal import (
    CPP_EXTENSIONS,
    DEFAULT_IGNORE_DIRS,
    collect_sources,
    find_cpp_sources,
    is_cpp_source,
    should_ignore_directory,
)


class TestFileTypeChecks:
    """Test file type checking functions."""

    def test_is_cpp_source_recognizes_sources_and_headers(self):
        """is_cpp_source() accepts every C++ source and header extension."""
        for ext in (".cpp", ".cxx", ".cc", ".c++", ".hpp", ".hxx", ".hh", ".h++", ".h"):
            assert is_cpp_source(Path(f"src/file{ext}")), ext
        assert len(CPP_EXTENSIONS) == 9

    def test_is_cpp_source_case_insensitive(self):
        """is_cpp_source() works with uppercase extensions."""
        assert is_cpp_source(Path("MAIN.CPP"))
        assert is_cpp_source(Path("api.H"))
        assert is_cpp_source(Path("Widget.Hpp"))

    def test_is_cpp_source_rejects_other_files(self):
        """is_cpp_source() returns False for C sources and non-code files."""
        assert not is_cpp_source(Path("main.c"))
        assert not is_cpp_source(Path("README.md"))
        assert not is_cpp_source(Path("Makefile"))
        assert not is_cpp_source(Path("main.o"))


class TestDirectoryFiltering:
    """Test directory ignore logic."""

    def test_should_ignore_directory_recognizes_ignored_dirs(self):
        ignore_set = {"build", "vendor"}
        assert should_ignore_directory(Path("build"), ignore_set)
        assert should_ignore_directory(Path("project/vendor"), ignore_set)

    def test_should_ignore_directory_allows_non_ignored_dirs(self):
        ignore_set = {"build"}
        assert not should_ignore_directory(Path("src"), ignore_set)
        assert not should_ignore_directory(Path("include"), ignore_set)

    def test_should_ignore_directory_case_sensitive(self):
        ignore_set = {"build"}
        assert not should_ignore_directory(Path("BUILD"), ignore_set)

    def test_default_ignore_dirs_includes_common_patterns(self):
        """Build output and VCS directories are skipped; test sources are analyzed."""
        assert "build" in DEFAULT_IGNORE_DIRS
        assert ".git" in DEFAULT_IGNORE_DIRS
        assert "__pycache__" in DEFAULT_IGNORE_DIRS
        assert "test" not in DEFAULT_IGNORE_DIRS
        assert "tests" not in DEFAULT_IGNORE_DIRS


class TestTraversal:
    """Test file traversal functions."""

    @pytest.fixture
    def temp_project(self, tmp_path):
        """
        tmp_path/
          src/main.cpp, widget.cc, widget.hpp
          include/api.h
          build/generated.cpp (ignored)
          test/test_main.cpp
          README.md, helper.c
        """
        for d in ("src", "include", "build", "test"):
            (tmp_path / d).mkdir()
        (tmp_path / "src" / "main.cpp").write_text("int main() { return 0; }")
        (tmp_path / "src" / "widget.cc").write_text("void widget() {}")
        (tmp_path / "src" / "widget.hpp").write_text("#pragma once")
        (tmp_path / "include" / "api.h").write_text("#define API_VERSION 1")
        (tmp_path / "build" / "generated.cpp").write_text("// build artifact")
        (tmp_path / "test" / "test_main.cpp").write_text("// test file")
        (tmp_path / "README.md").write_text("# Project")
        (tmp_path / "helper.c").write_text("int helper(void) { return 0; }")
        return tmp_path

    def test_find_cpp_sources_collects_sources_and_headers(self, temp_project):
        files = find_cpp_sources(temp_project)
        names = {f.name for f in files}
        assert names == {"main.cpp", "widget.cc", "widget.hpp", "api.h", "test_main.cpp"}
        assert all("build" not in f.parts for f in files)

    def test_find_cpp_sources_custom_ignore_dirs(self, temp_project):
        files = find_cpp_sources(temp_project, ignore_dirs={"test"})
        names = {f.name for f in files}
        assert "generated.cpp" in names
        assert "test_main.cpp" not in names

    def test_find_cpp_sources_returns_sorted_results(self, temp_project):
        files = find_cpp_sources(temp_project)
        assert files == sorted(files)

    def test_find_cpp_sources_empty_directory(self, tmp_path):
        (tmp_path / "empty").mkdir()
        (tmp_path / "empty" / "README.txt").write_text("No C++ files here")
        assert find_cpp_sources(tmp_path / "empty") == []

    def test_find_cpp_sources_nonexistent_directory(self):
        with pytest.raises(FileNotFoundError):
            find_cpp_sources(Path("/nonexistent/directory"))

    def test_find_cpp_sources_on_file_not_directory(self, tmp_path):
        file_path = tmp_path / "main.cpp"
        file_path.write_text("int main() {}")
        with pytest.raises(NotADirectoryError):
            find_cpp_sources(file_path)

    def test_find_cpp_sources_skips_symlinks_by_default(self, tmp_path):
        (tmp_path / "real.cpp").write_text("int x;")
        (tmp_path / "link.cpp").symlink_to(tmp_path / "real.cpp")
        names = {f.name for f in find_cpp_sources(tmp_path)}
        assert names == {"real.cpp"}
        names = {f.name for f in find_cpp_sources(tmp_path, follow_symlinks=True)}
        assert names == {"real.cpp", "link.cpp"}

    def test_find_cpp_sources_logs_progress(self, temp_project, caplog):
        with caplog.at_level(logging.INFO):
            find_cpp_sources(temp_project)
        assert "Starting traversal" in caplog.text
        assert "Traversal complete" in caplog.text


class TestCollectSources:
    """Test target resolution for the CLI."""

    def test_single_file_taken_as_is(self, tmp_path):
        """A file target is analyzed whatever its extension."""
        source = tmp_path / "legacy.inl"
        source.write_text("int x;")
        assert collect_sources(source) == [source.resolve()]

    def test_directory_is_traversed(self, tmp_path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        (nested / "deep.cpp").write_text("void deep() {}")
        files = collect_sources(tmp_path)
        assert [f.name for f in files] == ["deep.cpp"]

    def test_missing_target_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect_sources(tmp_path / "missing")
