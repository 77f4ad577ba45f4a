# libclang setup and semantic parsing: parse C++ source into the neutral AstNode tree.

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Protocol, Sequence

from clang import cindex

from safeprofile.errors import CompilationError, ParserUnavailableError
from safeprofile.tree import (
    ArrayKind,
    AstNode,
    Extent,
    NodeKind,
    SourcePosition,
    StorageDuration,
)

logger = logging.getLogger(__name__)

LIBCLANG_ENV = "SAFEPROFILE_LIBCLANG"

# How many diagnostics to quote in a failure message
MAX_REPORTED_DIAGNOSTICS = 3

_CK = cindex.CursorKind
_TK = cindex.TypeKind

_KIND_MAP = {
    _CK.TRANSLATION_UNIT: NodeKind.TRANSLATION_UNIT,
    _CK.VAR_DECL: NodeKind.VAR_DECL,
    _CK.PARM_DECL: NodeKind.PARAM_DECL,
    _CK.CXX_NEW_EXPR: NodeKind.NEW_EXPR,
    _CK.CXX_DELETE_EXPR: NodeKind.DELETE_EXPR,
    _CK.CSTYLE_CAST_EXPR: NodeKind.CSTYLE_CAST,
    _CK.RETURN_STMT: NodeKind.RETURN_STMT,
    _CK.UNARY_OPERATOR: NodeKind.UNARY_OPERATOR,
    _CK.DECL_REF_EXPR: NodeKind.DECL_REF,
    _CK.PAREN_EXPR: NodeKind.PAREN_EXPR,
    _CK.UNEXPOSED_EXPR: NodeKind.IMPLICIT_EXPR,
}

_FUNCTION_KINDS = frozenset(
    {
        _CK.FUNCTION_DECL,
        _CK.CXX_METHOD,
        _CK.CONSTRUCTOR,
        _CK.DESTRUCTOR,
        _CK.CONVERSION_FUNCTION,
        _CK.FUNCTION_TEMPLATE,
        _CK.LAMBDA_EXPR,
    }
)

_ARRAY_KINDS = {
    _TK.CONSTANTARRAY: ArrayKind.CONSTANT,
    _TK.INCOMPLETEARRAY: ArrayKind.INCOMPLETE,
    _TK.VARIABLEARRAY: ArrayKind.VARIABLE,
    _TK.DEPENDENTSIZEDARRAY: ArrayKind.DEPENDENT,
}

_REFERENCE_KINDS = frozenset({_TK.LVALUEREFERENCE, _TK.RVALUEREFERENCE})

_THREAD_LOCAL_KEYWORDS = frozenset({"thread_local", "_Thread_local", "__thread"})

_PREFIX_OPERATORS = frozenset({"&", "*", "+", "-", "!", "~", "++", "--"})

# identifiers, literals, "::" and single punctuators; enough to read new/delete shapes
_LEXEME = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|\w+|::|\S")

_MACRO_NAME = re.compile(rb"[A-Za-z_]\w*")
_MACRO_ARGS = re.compile(rb"\s*\(")


class SemanticParser(Protocol):
    """
    The parser boundary: (path, source bytes, args) -> tree, or CompilationError.

    Implementations must be stateless with respect to the files they parse.
    """

    def parse(self, path: Path, source: bytes, args: Sequence[str]) -> AstNode:
        ...


def _same_file(file: Optional[cindex.File], main: str) -> bool:
    return file is not None and os.path.abspath(file.name) == main


def _spelling_of(getter) -> str:
    """Read a libclang string, treating text that is not UTF-8 as empty."""
    try:
        return getter()
    except UnicodeDecodeError:
        return ""


def _token_spellings(cursor: cindex.Cursor) -> list[str]:
    return [_spelling_of(lambda token=token: token.spelling) for token in cursor.get_tokens()]


def _printed_spellings(cursor: cindex.Cursor) -> list[str]:
    """Spellings of the expression as clang prints it, for code expanded from a macro."""
    text = _spelling_of(lambda: cursor.pretty_printed(cindex.PrintingPolicy.create(cursor)))
    return _LEXEME.findall(text)


def _expression_spellings(cursor: cindex.Cursor, keyword: str) -> list[str]:
    spellings = _token_spellings(cursor)
    if keyword not in spellings:
        spellings = _printed_spellings(cursor)
    return spellings


def _matching_paren(spellings: list[str], open_index: int) -> int:
    """Index of the ')' closing the '(' at open_index (or the last index if unbalanced)."""
    depth = 0
    for i in range(open_index, len(spellings)):
        if spellings[i] == "(":
            depth += 1
        elif spellings[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return len(spellings) - 1


def _has_array_bound(spellings: list[str], start: int, stop: int) -> bool:
    """True if a top-level '[' appears in spellings[start:stop] before the new-initializer."""
    level = 0
    for spelling in spellings[start:stop]:
        if level == 0:
            if spelling == "[":
                return True
            if spelling in ("(", "{"):
                return False
        if spelling in ("(", "{", "["):
            level += 1
        elif spelling in (")", "}", "]"):
            level -= 1
    return False


def _top_level_items(spellings: list[str], start: int, stop: int) -> int:
    """Number of comma-separated items in spellings[start:stop]."""
    if start >= stop:
        return 0
    items, level = 1, 0
    for spelling in spellings[start:stop]:
        if spelling in ("(", "{", "["):
            level += 1
        elif spelling in (")", "}", "]"):
            level -= 1
        elif spelling == "," and level == 0:
            items += 1
    return items


def _starts_type_id(spelling: str) -> bool:
    return spelling == "::" or spelling[:1].isalpha() or spelling[:1] == "_"


def _new_expr_shape(cursor: cindex.Cursor) -> tuple[bool, int]:
    """Return (is_array_form, placement_arg_count) for a CXX_NEW_EXPR."""
    spellings = _expression_spellings(cursor, "new")
    if "new" not in spellings:
        return False, 0
    i = spellings.index("new") + 1
    if i < len(spellings) and spellings[i] == "(":
        close = _matching_paren(spellings, i)
        following = spellings[close + 1] if close + 1 < len(spellings) else ""
        if _starts_type_id(following):
            return _has_array_bound(spellings, close + 1, len(spellings)), _top_level_items(spellings, i + 1, close)
        # new (T) / new (T[n]): a parenthesized type-id, not placement
        return _has_array_bound(spellings, i + 1, close), 0
    return _has_array_bound(spellings, i, len(spellings)), 0


def _delete_is_array(cursor: cindex.Cursor) -> bool:
    spellings = _expression_spellings(cursor, "delete")
    if "delete" not in spellings:
        return False
    i = spellings.index("delete") + 1
    return i < len(spellings) and spellings[i] == "["


def _operator_of(spellings: list[str]) -> str:
    if spellings and spellings[0] in _PREFIX_OPERATORS:
        return spellings[0]
    if spellings and spellings[-1] in ("++", "--"):
        return spellings[-1]
    return ""


def _unary_operator(cursor: cindex.Cursor) -> str:
    return _operator_of(_token_spellings(cursor)) or _operator_of(_printed_spellings(cursor))


def _storage_duration(cursor: cindex.Cursor) -> StorageDuration:
    """Classify a VAR_DECL's storage duration."""
    for spelling in _token_spellings(cursor):
        # only the decl-specifiers before the declared name matter
        if spelling == cursor.spelling:
            break
        if spelling in _THREAD_LOCAL_KEYWORDS:
            return StorageDuration.THREAD
    if cursor.storage_class in (cindex.StorageClass.STATIC, cindex.StorageClass.EXTERN):
        return StorageDuration.STATIC
    parent = cursor.semantic_parent
    if parent is not None and parent.kind in _FUNCTION_KINDS:
        return StorageDuration.AUTOMATIC
    return StorageDuration.STATIC


def _macro_invocation_end(source: bytes, start: int) -> int:
    """Offset just past the macro invocation that begins at start (start if there is none)."""
    name = _MACRO_NAME.match(source, start)
    if name is None:
        return start
    args = _MACRO_ARGS.match(source, name.end())
    if args is None:
        return name.end()
    depth = 0
    for i in range(args.end() - 1, len(source)):
        if source[i] == ord("("):
            depth += 1
        elif source[i] == ord(")"):
            depth -= 1
            if depth == 0:
                return i + 1
    return name.end()


def _bound_variable(cursor: cindex.Cursor) -> Optional[cindex.Cursor]:
    """The variable a reference declaration is initialized from, when it names one directly."""
    initializers = [c for c in cursor.get_children() if c.kind.is_expression()]
    if not initializers:
        return None
    init = initializers[-1]
    while init.kind in (_CK.UNEXPOSED_EXPR, _CK.PAREN_EXPR):
        children = list(init.get_children())
        if len(children) != 1:
            return None
        init = children[0]
    if init.kind != _CK.DECL_REF_EXPR:
        return None
    return init.referenced


class ClangParser:
    """
    SemanticParser backed by libclang.

    The file is parsed from the given bytes (as an unsaved file) so that node
    offsets line up with the text the engine slices snippets from.
    """

    def __init__(self, library_file: Optional[str] = None) -> None:
        library_file = library_file or os.environ.get(LIBCLANG_ENV)
        if library_file and not cindex.Config.loaded:
            cindex.Config.set_library_file(library_file)
        try:
            self._index = cindex.Index.create()
        except cindex.LibclangError as e:
            raise ParserUnavailableError(f"libclang could not be loaded: {e}") from e

    def parse(self, path: Path, source: bytes, args: Sequence[str]) -> AstNode:
        filename = os.path.abspath(os.fspath(path))
        logger.debug("Parsing %s with args: %s", filename, " ".join(args))
        try:
            tu = self._index.parse(
                filename,
                args=list(args),
                unsaved_files=[(filename, source)],
                options=0,
            )
        except cindex.TranslationUnitLoadError as e:
            raise CompilationError(Path(path), f"Compilation failed: {e}") from e

        errors = [d for d in tu.diagnostics if d.severity >= cindex.Diagnostic.Error]
        if errors:
            raise CompilationError(Path(path), _format_diagnostics(errors))

        try:
            return _Translator(filename, source).translate(tu.cursor)
        except ValueError as e:
            raise CompilationError(Path(path), f"Could not translate the AST: {e}") from e


def create_parser() -> ClangParser:
    """Create a libclang-backed parser (honours SAFEPROFILE_LIBCLANG)."""
    return ClangParser()


def _format_diagnostics(errors: list[cindex.Diagnostic]) -> str:
    parts = []
    for diag in errors[:MAX_REPORTED_DIAGNOSTICS]:
        loc = diag.location
        where = os.path.basename(loc.file.name) if loc.file is not None else "<unknown>"
        parts.append(f"{where}:{loc.line}:{loc.column}: {diag.spelling}")
    message = f"Compilation failed with {len(errors)} error(s): " + "; ".join(parts)
    if len(errors) > MAX_REPORTED_DIAGNOSTICS:
        message += f" (and {len(errors) - MAX_REPORTED_DIAGNOSTICS} more)"
    return message


class _Translator:
    """Builds the AstNode tree for one translation unit, pruning header content."""

    def __init__(self, main_file: str, source: bytes = b"") -> None:
        self.main_file = main_file
        self.source = source
        self._declarations: dict[tuple[int, str], AstNode] = {}
        self.node_count = 0

    def translate(self, root: cindex.Cursor) -> AstNode:
        tu = AstNode(kind=NodeKind.TRANSLATION_UNIT, spelling=root.spelling)
        for child in root.get_children():
            # top-level declarations from included headers are never ours
            if not _same_file(child.extent.start.file, self.main_file):
                continue
            tu.add(self._visit(child))
        logger.debug("Translated %s: %d node(s)", self.main_file, self.node_count)
        return tu

    def _visit(self, cursor: cindex.Cursor) -> AstNode:
        node = self._make_node(cursor)
        for child in cursor.get_children():
            node.add(self._visit(child))
        return node

    def _position(self, cursor: cindex.Cursor) -> Optional[SourcePosition]:
        start = cursor.extent.start
        if start.file is None:
            start = cursor.location
        if start.file is None:
            return None
        return SourcePosition(
            line=start.line,
            column=start.column,
            in_main_file=_same_file(start.file, self.main_file),
        )

    def _extent(self, cursor: cindex.Cursor) -> Optional[Extent]:
        start, end = cursor.extent.start, cursor.extent.end
        if not _same_file(start.file, self.main_file):
            return None
        if _same_file(end.file, self.main_file) and end.offset > start.offset:
            return Extent(start=start.offset, end=end.offset)
        # ends inside a macro argument: span the whole invocation instead
        return Extent(start=start.offset, end=_macro_invocation_end(self.source, start.offset))

    def _make_node(self, cursor: cindex.Cursor) -> AstNode:
        self.node_count += 1
        kind = cursor.kind
        if kind in _FUNCTION_KINDS:
            node_kind = NodeKind.FUNCTION_DECL
        else:
            node_kind = _KIND_MAP.get(kind, NodeKind.OTHER)

        node = AstNode(
            kind=node_kind,
            spelling=_spelling_of(lambda: cursor.spelling),
            type_name=_spelling_of(lambda: cursor.type.spelling),
            position=self._position(cursor),
            extent=self._extent(cursor),
        )

        if node_kind == NodeKind.NEW_EXPR:
            node.is_array_form, node.placement_args = _new_expr_shape(cursor)
        elif node_kind == NodeKind.DELETE_EXPR:
            node.is_array_form = _delete_is_array(cursor)
        elif node_kind in (NodeKind.VAR_DECL, NodeKind.PARAM_DECL):
            self._annotate_variable(node, cursor)
        elif node_kind == NodeKind.CSTYLE_CAST:
            operands = [c for c in cursor.get_children() if c.kind.is_expression()]
            if operands:
                node.source_type = operands[-1].type.spelling
        elif node_kind == NodeKind.UNARY_OPERATOR:
            node.operator = _unary_operator(cursor)
        elif node_kind == NodeKind.DECL_REF:
            node.referenced = self._declaration(cursor.referenced)
        elif node_kind == NodeKind.FUNCTION_DECL and kind != _CK.LAMBDA_EXPR:
            node.returns_reference = cursor.result_type.kind in _REFERENCE_KINDS
        return node

    def _annotate_variable(self, node: AstNode, cursor: cindex.Cursor) -> None:
        node.is_parameter = cursor.kind == _CK.PARM_DECL
        node.is_reference = cursor.type.kind in _REFERENCE_KINDS
        if node.is_parameter:
            node.storage = StorageDuration.AUTOMATIC
        else:
            node.storage = _storage_duration(cursor)
            if node.is_reference:
                node.binds_to = self._declaration(_bound_variable(cursor))
            canonical = cursor.type.get_canonical()
            array_kind = _ARRAY_KINDS.get(canonical.kind)
            if array_kind is not None:
                node.array_kind = array_kind
                if array_kind == ArrayKind.CONSTANT:
                    node.array_extent = canonical.get_array_size()

    def _declaration(self, cursor: Optional[cindex.Cursor]) -> Optional[AstNode]:
        """Shallow node for a referenced declaration (no children), shared per declaration."""
        if cursor is None or cursor.kind not in (_CK.VAR_DECL, _CK.PARM_DECL):
            return None
        key = (cursor.hash, cursor.spelling)
        cached = self._declarations.get(key)
        if cached is None:
            cached = AstNode(
                kind=_KIND_MAP[cursor.kind],
                spelling=_spelling_of(lambda: cursor.spelling),
                type_name=_spelling_of(lambda: cursor.type.spelling),
                position=self._position(cursor),
            )
            self._declarations[key] = cached
            self._annotate_variable(cached, cursor)
        return cached
