# Neutral AST model: the semantically-annotated node tree the rule matchers walk.
# The libclang translation in parser.py produces it; tests build it by hand.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class NodeKind(str, Enum):
    TRANSLATION_UNIT = "translation_unit"
    FUNCTION_DECL = "function_decl"
    VAR_DECL = "var_decl"
    PARAM_DECL = "param_decl"
    NEW_EXPR = "new_expr"
    DELETE_EXPR = "delete_expr"
    CSTYLE_CAST = "cstyle_cast"
    RETURN_STMT = "return_stmt"
    UNARY_OPERATOR = "unary_operator"
    DECL_REF = "decl_ref"
    PAREN_EXPR = "paren_expr"
    IMPLICIT_EXPR = "implicit_expr"
    OTHER = "other"


class StorageDuration(str, Enum):
    AUTOMATIC = "automatic"
    STATIC = "static"
    THREAD = "thread"
    UNKNOWN = "unknown"


class ArrayKind(str, Enum):
    CONSTANT = "constant"
    VARIABLE = "variable"
    INCOMPLETE = "incomplete"
    DEPENDENT = "dependent"


@dataclass(frozen=True)
class SourcePosition:
    """1-based line/column at the macro-expansion point."""

    line: int
    column: int
    in_main_file: bool = True


@dataclass(frozen=True)
class Extent:
    """Half-open character range into the main file's text."""

    start: int
    end: int


@dataclass(eq=False)
class AstNode:
    """
    One node of the parsed translation unit.

    Only the attributes relevant to ``kind`` are populated:

    - NEW_EXPR: ``is_array_form``, ``placement_args``
    - DELETE_EXPR: ``is_array_form``
    - VAR_DECL / PARAM_DECL: ``spelling`` (name), ``type_name``, ``array_kind``,
      ``array_extent`` (outer dimension), ``storage``, ``is_parameter``,
      ``is_reference``, ``binds_to`` (for a reference initialized directly from a
      variable, that variable's declaration node)
    - CSTYLE_CAST: ``type_name`` (destination), ``source_type``
    - UNARY_OPERATOR: ``operator``
    - DECL_REF: ``spelling``, ``referenced`` (the declaration node)
    - FUNCTION_DECL: ``spelling``, ``returns_reference``
    """

    kind: NodeKind
    spelling: str = ""
    type_name: str = ""
    position: Optional[SourcePosition] = None
    extent: Optional[Extent] = None
    children: list[AstNode] = field(default_factory=list, repr=False)

    is_array_form: bool = False
    placement_args: int = 0
    array_kind: Optional[ArrayKind] = None
    array_extent: Optional[int] = None
    storage: StorageDuration = StorageDuration.UNKNOWN
    is_parameter: bool = False
    is_reference: bool = False
    operator: str = ""
    source_type: str = ""
    referenced: Optional[AstNode] = field(default=None, repr=False)
    binds_to: Optional[AstNode] = field(default=None, repr=False)
    returns_reference: bool = False

    # set by add(); lets matchers look up the enclosing function
    parent: Optional[AstNode] = field(default=None, repr=False, compare=False)

    @property
    def in_main_file(self) -> bool:
        return self.position is not None and self.position.in_main_file

    def add(self, *children: AstNode) -> AstNode:
        """Append children, set their parent link, and return self."""
        for child in children:
            child.parent = self
            self.children.append(child)
        return self


def walk(node: AstNode) -> Iterator[AstNode]:
    """Yield node and every descendant in document order (DFS)."""
    yield node
    for child in node.children:
        yield from walk(child)


def strip_implicit(node: Optional[AstNode]) -> Optional[AstNode]:
    """Skip implicit-conversion and parenthesis wrappers down to the meaningful expression."""
    while node is not None and node.kind in (NodeKind.IMPLICIT_EXPR, NodeKind.PAREN_EXPR):
        node = node.children[0] if node.children else None
    return node


def enclosing_function(node: AstNode) -> Optional[AstNode]:
    """Return the FUNCTION_DECL containing this node, or None at file scope."""
    current = node.parent
    while current is not None:
        if current.kind == NodeKind.FUNCTION_DECL:
            return current
        current = current.parent
    return None
