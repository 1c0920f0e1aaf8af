"""Read-only view over tree-sitter syntax trees.

Nodes are never annotated: parents are tracked in a :class:`ParentMap`
filled in by the traversal, and locations are computed from the original
source bytes so that columns count characters rather than bytes.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from treemetrics.core.errors import MalformedTreeError

COMMENT_TYPES = frozenset({"comment", "html_comment", "hash_bang_line"})


@dataclass(frozen=True)
class SourceLocation:
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "startLine": self.start_line,
            "startCol": self.start_col,
            "endLine": self.end_line,
            "endCol": self.end_col,
        }

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


class SourceText:
    """Maps byte offsets of a UTF-8 source to 1-based lines and 0-based columns."""

    def __init__(self, source: bytes) -> None:
        self.source = source
        self._line_starts = [0] + [match.end() for match in re.finditer(b"\n", source)]

    def position(self, offset: int) -> tuple[int, int]:
        row = bisect_right(self._line_starts, offset) - 1
        line_start = self._line_starts[row]
        column = len(self.source[line_start:offset].decode("utf-8", errors="replace"))
        return row + 1, column

    def location(self, start: int, end: int) -> SourceLocation:
        start_line, start_col = self.position(start)
        end_line, end_col = self.position(end)
        return SourceLocation(start_line, start_col, end_line, end_col)

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8", errors="replace")


class ParentMap:
    """Traversal-scoped side-table from node id to its syntactic parent."""

    def __init__(self) -> None:
        self._parents: Dict[int, object] = {}

    def record(self, child, parent) -> None:
        self._parents[child.id] = parent

    def parent(self, node) -> Optional[object]:
        return self._parents.get(node.id)

    def ancestors(self, node) -> Iterator[object]:
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)


def children_of(node) -> List[object]:
    """Ordered children of ``node``, rejecting error-recovery nodes."""
    if node.type == "ERROR" or node.is_missing:
        line = node.start_point[0] + 1
        raise MalformedTreeError(f"Unparsable syntax near line {line}")
    return node.children


def is_leaf(node) -> bool:
    return node.child_count == 0 and node.end_byte > node.start_byte


def first_token(node):
    current = node
    while current.child_count > 0:
        current = next(
            (child for child in current.children if child.type not in COMMENT_TYPES),
            current.children[0],
        )
    return current


def token_before(node):
    """Closest preceding non-comment sibling of ``node``."""
    sibling = node.prev_sibling
    while sibling is not None and sibling.type in COMMENT_TYPES:
        sibling = sibling.prev_sibling
    return sibling


def same_node(left, right) -> bool:
    return left is not None and right is not None and left.id == right.id


def strip_parentheses(node, parents: ParentMap):
    """Outermost ``parenthesized_expression`` wrapping ``node`` (or ``node`` itself)."""
    current = node
    parent = parents.parent(current)
    while parent is not None and parent.type == "parenthesized_expression":
        current = parent
        parent = parents.parent(current)
    return current
