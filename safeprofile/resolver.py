# Compilation context resolution: choose the flags each file is parsed with.
# Database entry first, then inferred include paths, then bare defaults.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from safeprofile.compile_commands import (
    DEFAULT_STD_VERSION,
    CompilationDatabase,
    CompilationFlags,
    normalize_path,
)

logger = logging.getLogger(__name__)

# Directory name that marks a public-header layout (e.g. boost-json/include/boost/json)
PUBLIC_HEADER_DIR = "include"

# Checked in order; the first prefix holding the marker wins
SYSTEM_INCLUDE_PREFIXES: tuple[Path, ...] = (
    Path("/opt/homebrew/include"),
    Path("/usr/local/include"),
    Path("/usr/include"),
    Path.home() / ".local" / "include",
)

SYSTEM_MARKER = Path("boost") / "config.hpp"
SUPERPROJECT_MARKER = Path("libs") / "config" / "include" / "boost" / "config.hpp"

# Always passed: C++ mode, syntax only, no warnings (only parse success and tree shape matter)
BASE_COMPILER_ARGS: tuple[str, ...] = ("-x", "c++", "-fsyntax-only", "-Wno-everything")


def _existing_system_prefixes(prefixes: Sequence[Path]) -> list[str]:
    """Return include dirs from the first conventional prefix that holds the marker file."""
    for prefix in prefixes:
        if (prefix / SYSTEM_MARKER).exists():
            logger.debug("Found system headers at %s", prefix)
            return [str(prefix)]
        if (prefix / SUPERPROJECT_MARKER).exists():
            logger.debug("Found super-project layout at %s", prefix)
            libs = prefix / "libs"
            found = [str(prefix)]
            try:
                for lib in sorted(libs.iterdir()):
                    include_dir = lib / PUBLIC_HEADER_DIR
                    if include_dir.is_dir():
                        found.append(str(include_dir))
            except OSError as e:
                logger.warning("Error listing %s: %s", libs, e)
            return found
    return []


def infer_include_paths(
    root: Path,
    system_prefixes: Sequence[Path] = SYSTEM_INCLUDE_PREFIXES,
) -> list[str]:
    """
    Guess include paths for a target when no compilation database applies.

    - the target root itself (for relative includes);
    - if the root is named ``include``, its parent; otherwise the nearest
      ancestor named ``include``;
    - the first conventional installation prefix that contains the marker
      header, used only if found.
    """
    root = Path(os.path.abspath(root))
    if root.is_file():
        root = root.parent

    inferred = [str(root)]
    if root.name == PUBLIC_HEADER_DIR:
        inferred.append(str(root.parent))
    else:
        for ancestor in root.parents:
            if ancestor.name == PUBLIC_HEADER_DIR:
                inferred.append(str(ancestor))
                break

    inferred.extend(_existing_system_prefixes(system_prefixes))
    return inferred


def build_compiler_args(
    flags: CompilationFlags,
    extra_args: Sequence[str] = (),
) -> list[str]:
    """
    Turn resolved flags into a parser argument list.

    Relative include paths are anchored at ``flags.working_directory``.
    """
    args = list(BASE_COMPILER_ARGS)
    args.append(f"-std={flags.std_version}")
    for include in flags.include_paths:
        if flags.working_directory and not os.path.isabs(include):
            include = os.path.join(flags.working_directory, include)
        args.append(f"-I{include}")
    for define in flags.defines:
        args.append(f"-D{define}")
    args.extend(extra_args)
    return args


class FlagResolver:
    """
    Produces (and caches) the CompilationFlags for each analyzed file.

    The database is shared read-only; inference is computed once per
    resolver. ``resolve`` never raises.
    """

    def __init__(
        self,
        database: Optional[CompilationDatabase] = None,
        target_root: Optional[Path] = None,
        default_std: str = DEFAULT_STD_VERSION,
        system_prefixes: Sequence[Path] = SYSTEM_INCLUDE_PREFIXES,
    ) -> None:
        self.database = database
        self.target_root = target_root
        self.default_std = default_std
        self.system_prefixes = tuple(system_prefixes)
        self._cache: dict[str, CompilationFlags] = {}
        self._inferred: Optional[CompilationFlags] = None

    def resolve(self, source_file: Path) -> CompilationFlags:
        key = normalize_path(source_file)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        flags = None
        if self.database is not None and self.database.is_loaded:
            flags = self.database.flags_for_file(source_file)
            if flags is None:
                logger.debug("No database entry for %s", key)
            else:
                logger.debug("Using database flags for %s", key)
        if flags is None:
            flags = self._fallback_flags()

        self._cache[key] = flags
        return flags

    def _fallback_flags(self) -> CompilationFlags:
        if self._inferred is None:
            if self.target_root is not None:
                try:
                    includes = infer_include_paths(self.target_root, self.system_prefixes)
                except OSError as e:
                    logger.warning("Include path inference failed for %s: %s", self.target_root, e)
                    includes = []
                root = Path(os.path.abspath(self.target_root))
                working_directory = str(root.parent if root.is_file() else root)
            else:
                includes = []
                working_directory = os.getcwd()
            self._inferred = CompilationFlags(
                include_paths=tuple(includes),
                std_version=self.default_std,
                working_directory=working_directory,
            )
            logger.info(
                "No compilation database entry; using %d inferred include path(s) and -std=%s",
                len(includes),
                self.default_std,
            )
        return self._inferred
