"""Tests for per-file flag resolution and include-path inference."""

import json
import os
from pathlib import Path

from safeprofile.compile_commands import CompilationDatabase, CompilationFlags
from safeprofile.resolver import FlagResolver, build_compiler_args, infer_include_paths


def test_build_compiler_args_order():
    flags = CompilationFlags(
        include_paths=("inc", "/abs/inc"),
        defines=("A=1", "B"),
        std_version="c++17",
        working_directory="/work",
    )
    args = build_compiler_args(flags, ["-Wextra"])
    assert args == [
        "-x", "c++", "-fsyntax-only", "-Wno-everything",
        "-std=c++17",
        "-I" + os.path.join("/work", "inc"),
        "-I/abs/inc",
        "-DA=1",
        "-DB",
        "-Wextra",
    ]


def test_build_compiler_args_without_working_directory():
    args = build_compiler_args(CompilationFlags(include_paths=("inc",)))
    assert "-Iinc" in args
    assert "-std=c++20" in args


def test_infer_include_paths_plain_root(tmp_path):
    assert infer_include_paths(tmp_path, system_prefixes=()) == [str(tmp_path)]


def test_infer_include_paths_root_named_include(tmp_path):
    root = tmp_path / "boost-json" / "include"
    root.mkdir(parents=True)
    assert infer_include_paths(root, system_prefixes=()) == [str(root), str(root.parent)]


def test_infer_include_paths_nested_under_include(tmp_path):
    include = tmp_path / "lib" / "include"
    root = include / "boost" / "json"
    root.mkdir(parents=True)
    assert infer_include_paths(root, system_prefixes=()) == [str(root), str(include)]


def test_infer_include_paths_file_root_uses_parent(tmp_path):
    source = tmp_path / "main.cpp"
    source.write_text("")
    assert infer_include_paths(source, system_prefixes=()) == [str(tmp_path)]


def test_infer_include_paths_system_layout(tmp_path):
    first = tmp_path / "empty"
    first.mkdir()
    second = tmp_path / "usr-include"
    (second / "boost").mkdir(parents=True)
    (second / "boost" / "config.hpp").write_text("")
    root = tmp_path / "project"
    root.mkdir()

    assert infer_include_paths(root, system_prefixes=(first, second)) == [str(root), str(second)]


def test_infer_include_paths_superproject_layout(tmp_path):
    prefix = tmp_path / "boost-root"
    for lib in ("config", "json", "core"):
        (prefix / "libs" / lib / "include").mkdir(parents=True)
    (prefix / "libs" / "config" / "include" / "boost").mkdir()
    (prefix / "libs" / "config" / "include" / "boost" / "config.hpp").write_text("")
    (prefix / "libs" / "docs-only").mkdir()
    root = tmp_path / "project"
    root.mkdir()

    inferred = infer_include_paths(root, system_prefixes=(prefix,))

    assert inferred == [
        str(root),
        str(prefix),
        str(prefix / "libs" / "config" / "include"),
        str(prefix / "libs" / "core" / "include"),
        str(prefix / "libs" / "json" / "include"),
    ]


def test_resolve_uses_database_entry(tmp_path):
    src = tmp_path / "a.cpp"
    src.write_text("")
    (tmp_path / "compile_commands.json").write_text(
        json.dumps([{"directory": str(tmp_path), "file": "a.cpp", "command": "c++ -DFROM_DB -std=c++14 a.cpp"}])
    )
    db = CompilationDatabase()
    db.load_from_directory(tmp_path)

    flags = FlagResolver(database=db, target_root=tmp_path, system_prefixes=()).resolve(src)

    assert flags.defines == ("FROM_DB",)
    assert flags.std_version == "c++14"


def test_resolve_falls_back_to_inference(tmp_path):
    src = tmp_path / "a.cpp"
    src.write_text("")
    resolver = FlagResolver(target_root=tmp_path, default_std="c++17", system_prefixes=())

    flags = resolver.resolve(src)

    assert flags.include_paths == (str(tmp_path),)
    assert flags.defines == ()
    assert flags.std_version == "c++17"
    assert flags.working_directory == str(tmp_path)


def test_resolve_file_target_uses_parent_as_working_directory(tmp_path):
    src = tmp_path / "a.cpp"
    src.write_text("")
    flags = FlagResolver(target_root=src, system_prefixes=()).resolve(src)
    assert flags.working_directory == str(tmp_path)


def test_resolve_without_root_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    flags = FlagResolver(system_prefixes=()).resolve(Path("a.cpp"))
    assert flags.include_paths == ()
    assert flags.std_version == "c++20"
    assert flags.working_directory == os.getcwd()


def test_resolve_is_cached_per_normalized_path(tmp_path):
    src = tmp_path / "a.cpp"
    src.write_text("")
    (tmp_path / "sub").mkdir()
    resolver = FlagResolver(target_root=tmp_path, system_prefixes=())
    first = resolver.resolve(src)
    assert resolver.resolve(tmp_path / "sub" / ".." / "a.cpp") is first
