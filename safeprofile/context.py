# Per-file analysis context: file path, source bytes, resolved flags, and the parsed tree.
# Handles reading/parsing C++ files, turning unreadable or unparseable files into
# AnalysisError, and logging node/function counts once a tree is ready for rules.

import logging
from pathlib import Path
from typing import Optional, Sequence

from safeprofile.compile_commands import CompilationFlags
from safeprofile.errors import UnreadableFileError
from safeprofile.findings.models import SNIPPET_ELLIPSIS, SNIPPET_MAX_LENGTH, SNIPPET_UNAVAILABLE
from safeprofile.parser import SemanticParser, create_parser
from safeprofile.resolver import build_compiler_args
from safeprofile.tree import AstNode, NodeKind, walk

logger = logging.getLogger(__name__)


def count_tree_stats(root: AstNode) -> tuple[int, int]:
    """Return (total node count, function definition count) for the tree."""
    nodes = 0
    functions = 0
    for node in walk(root):
        nodes += 1
        if node.kind == NodeKind.FUNCTION_DECL:
            functions += 1
    return nodes, functions


class FileContext:
    """
    Per-file state for analysis: path, raw source bytes, resolved flags, and tree.

    Matchers only see nodes; the engine uses get_snippet(context, node) and
    get_line_col(node) to turn a match into a Finding.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        root: AstNode,
        flags: Optional[CompilationFlags] = None,
    ) -> None:
        self.path = path
        self.source = source
        self.root = root
        self.flags = flags


def get_source_span(context: FileContext, node: AstNode) -> str:
    """
    Return the text of the node's extent in the main file, or "" if it has none.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    if node.extent is None:
        return ""
    return context.source[node.extent.start : node.extent.end].decode("utf-8", errors="replace")


def truncate_snippet(text: str, limit: int = SNIPPET_MAX_LENGTH) -> str:
    """Clip text to ``limit`` characters, ending in an ellipsis when clipped."""
    if len(text) <= limit:
        return text
    return text[: limit - len(SNIPPET_ELLIPSIS)] + SNIPPET_ELLIPSIS


def get_snippet(context: FileContext, node: AstNode) -> str:
    """Bounded excerpt of the matched construct for reports."""
    span = get_source_span(context, node)
    if not span:
        return SNIPPET_UNAVAILABLE
    return truncate_snippet(span)


def get_line_col(node: AstNode) -> tuple[int, int]:
    """Return the node's 1-based (line, column) at the expansion point; (1, 1) if unknown."""
    if node.position is None:
        return 1, 1
    return node.position.line, node.position.column


def read_source(path: Path) -> bytes:
    """Read a source file, raising UnreadableFileError instead of OSError."""
    try:
        return path.read_bytes()
    except OSError as e:
        logger.warning("Failed to read file %s: %s", path, e)
        raise UnreadableFileError(path, f"Cannot read file: {e.strerror or e}") from e


def create_context(
    path: Path,
    flags: CompilationFlags,
    parser: Optional[SemanticParser] = None,
    extra_args: Sequence[str] = (),
) -> FileContext:
    """
    Read a C++ file and parse it under ``flags`` into a FileContext.

    - Unreadable file: raises UnreadableFileError.
    - Parse/semantic failure: raises CompilationError (from the parser).
    - Success: returns the context and logs node/function counts.
    """
    if parser is None:
        parser = create_parser()

    source = read_source(path)
    args = build_compiler_args(flags, extra_args)
    root = parser.parse(path, source, args)

    node_count, func_count = count_tree_stats(root)
    logger.info("Parsed %s: %d nodes, %d function(s)", path, node_count, func_count)
    return FileContext(path=path, source=source, root=root, flags=flags)
