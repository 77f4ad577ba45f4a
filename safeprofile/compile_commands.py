"""
Compilation database intake: read compile_commands.json and extract per-file flags.

A compilation database is a JSON array of records, each with ``file`` and
``directory`` plus either ``command`` (a shell-style string) or ``arguments``
(a token list). Only the flags that influence how a file parses are kept:
include paths, defines and the language standard.

Typical usage:
    from pathlib import Path
    from safeprofile.compile_commands import CompilationDatabase

    db = CompilationDatabase()
    if db.load_from_directory(Path("./build")):
        flags = db.flags_for_file(Path("./src/main.cpp"))
"""

from __future__ import annotations

import json
import logging
import os
import shlex
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DATABASE_FILENAME = "compile_commands.json"
DEFAULT_STD_VERSION = "c++20"


class CompilationFlags(BaseModel):
    """
    The flags needed to parse one file as its author intended.

    ``include_paths`` order is search priority; ``defines`` keeps duplicates.
    """

    include_paths: tuple[str, ...] = ()
    defines: tuple[str, ...] = ()
    std_version: str = DEFAULT_STD_VERSION
    working_directory: str = ""

    model_config = ConfigDict(frozen=True)


def _tokenize(command: str) -> list[str]:
    """Split a shell-style command; fall back to whitespace for unbalanced quotes."""
    try:
        return shlex.split(command)
    except ValueError:
        logger.debug("Unbalanced quoting in command, splitting on whitespace: %s", command)
        return command.split()


def parse_command(
    command: str,
    working_directory: str = "",
    default_std: str = DEFAULT_STD_VERSION,
) -> CompilationFlags:
    """
    Extract include paths, defines and the language standard from a compiler command.

    Recognized forms: ``-I<path>``, ``-I <path>``, ``-isystem <path>``,
    ``-isystem<path>``, ``-D<name>``, ``-D <name>``, ``-std=<value>``.
    Everything else is ignored. Every ``-I``/``-D`` occurrence is kept in
    order, duplicates included; the last ``-std=`` wins.

    Examples:
        >>> parse_command("c++ -Iinc -I other -DX=1 -std=c++17 a.cpp").include_paths
        ('inc', 'other')
    """
    include_paths: list[str] = []
    defines: list[str] = []
    std_version = default_std

    tokens = _tokenize(command)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        following = tokens[i + 1] if i + 1 < len(tokens) else None

        if token in ("-I", "-isystem", "-D"):
            if following is None:
                logger.debug("Dangling %s at end of command", token)
                break
            if token == "-D":
                defines.append(following)
            else:
                include_paths.append(following)
            i += 2
            continue

        if token.startswith("-isystem"):
            include_paths.append(token[len("-isystem"):])
        elif token.startswith("-I"):
            include_paths.append(token[2:])
        elif token.startswith("-D"):
            defines.append(token[2:])
        elif token.startswith("-std="):
            std_version = token[len("-std="):]
        i += 1

    return CompilationFlags(
        include_paths=tuple(include_paths),
        defines=tuple(defines),
        std_version=std_version,
        working_directory=working_directory,
    )


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for database lookup.

    Absolute always; canonical (symlinks and ``..`` resolved) when the path
    exists on disk, otherwise the plain absolute form, since database paths
    may have been recorded from a different filesystem view.
    """
    absolute = os.path.abspath(os.fspath(path))
    if os.path.exists(absolute):
        return os.path.realpath(absolute)
    return absolute


def _entry_command(entry: dict[str, Any]) -> Optional[str]:
    """Return the command string for an entry, joining ``arguments`` if needed."""
    command = entry.get("command")
    if isinstance(command, str):
        return command
    arguments = entry.get("arguments")
    if isinstance(arguments, list) and all(isinstance(a, str) for a in arguments):
        return shlex.join(arguments)
    return None


class CompilationDatabase:
    """
    In-memory view of a compile_commands.json, keyed by normalized file path.

    Read-only once loaded; one instance may be shared by every file analysis
    of a run.
    """

    def __init__(self, default_std: str = DEFAULT_STD_VERSION) -> None:
        self.default_std = default_std
        self._commands: dict[str, CompilationFlags] = {}
        self._loaded = False
        self.source: Optional[Path] = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def entry_count(self) -> int:
        return len(self._commands)

    def load_from_directory(self, directory: Path) -> bool:
        """Load ``compile_commands.json`` from a directory. Returns True on success."""
        return self.load(Path(directory) / DATABASE_FILENAME)

    def load(self, db_path: Path) -> bool:
        """
        Load a compilation database file.

        Missing or malformed files are logged and leave the database unloaded;
        this method never raises for bad content.
        """
        db_path = Path(db_path)
        if not db_path.is_file():
            logger.debug("No compilation database at %s", db_path)
            return False

        try:
            doc = json.loads(db_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Error parsing %s: %s", db_path, e)
            return False

        if not isinstance(doc, list):
            logger.warning("%s is not a JSON array; ignoring it", db_path)
            return False

        commands: dict[str, CompilationFlags] = {}
        for index, entry in enumerate(doc):
            if not isinstance(entry, dict):
                logger.debug("Skipping non-object entry #%d in %s", index, db_path)
                continue
            file_field = entry.get("file")
            directory = entry.get("directory")
            if not isinstance(file_field, str) or not isinstance(directory, str):
                logger.debug("Skipping entry #%d without file/directory", index)
                continue
            command = _entry_command(entry)
            if command is None:
                logger.debug("Skipping entry #%d without command/arguments", index)
                continue

            file_path = Path(file_field)
            if not file_path.is_absolute():
                file_path = Path(directory) / file_path
            commands[normalize_path(file_path)] = parse_command(
                command, directory, default_std=self.default_std
            )

        self._commands = commands
        self._loaded = True
        self.source = db_path
        logger.info("Loaded %s (%d entries)", db_path, len(commands))
        return True

    def flags_for_file(self, source_file: Path) -> Optional[CompilationFlags]:
        """Return the recorded flags for a file, or None if it has no entry."""
        if not self._loaded:
            return None
        return self._commands.get(normalize_path(source_file))
