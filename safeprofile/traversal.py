"""
File system traversal: walk directories and collect C++ source and header files.

This module recursively traverses a target directory to find the C++ files
(sources and headers) to analyze, skipping version-control, build-output and
cache directories.

Typical usage:
    from pathlib import Path
    from safeprofile.traversal import collect_sources, find_cpp_sources

    # Everything under a project
    files = find_cpp_sources(Path("./my_project"))

    # A single file or a directory
    files = collect_sources(Path("./my_project/src/main.cpp"))
"""

import logging
from pathlib import Path
from typing import Optional, Set

logger = logging.getLogger(__name__)

CPP_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".cpp", ".cxx", ".cc", ".c++",
        ".hpp", ".hxx", ".hh", ".h++", ".h",
    }
)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Build output
    "build",
    "Build",
    "cmake-build-debug",
    "cmake-build-release",
    "out",
    "obj",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vscode",
    ".idea",
    ".vs",

    # Python virtual environments and caches
    "venv",
    ".venv",
    "__pycache__",
    ".cache",
}


def is_cpp_source(path: Path) -> bool:
    """
    Check if a file is a C++ source or header, by extension (case-insensitive).

    Examples:
        >>> is_cpp_source(Path("main.cpp"))
        True
        >>> is_cpp_source(Path("api.H"))
        True
        >>> is_cpp_source(Path("main.c"))
        False
    """
    return path.suffix.lower() in CPP_EXTENSIONS


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Check the directory's name (not its full path) against the ignore set."""
    return dir_path.name in ignore_dirs


def find_cpp_sources(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
) -> list[Path]:
    """
    Recursively find all C++ source and header files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If True, follow symbolic links during traversal.

    Returns:
        Matching files, sorted by path for deterministic ordering.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If the root is not a directory.

    Notes:
        Permission errors on subdirectories are logged but do not stop traversal.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Path does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)
                elif entry.is_file() and is_cpp_source(entry):
                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)
    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )
    return collected_files


def collect_sources(target: Path) -> list[Path]:
    """
    Resolve a target path into the list of C++ files to analyze.

    - A file is analyzed as-is, whatever its extension.
    - A directory is traversed with find_cpp_sources().

    Raises:
        FileNotFoundError: If the target does not exist.
    """
    if target.is_file():
        return [target.resolve()]
    if target.is_dir():
        files = find_cpp_sources(target)
        if not files:
            logger.warning("No C++ source files found under %s", target)
        return files
    raise FileNotFoundError(f"Path does not exist: {target}")
