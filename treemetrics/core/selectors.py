"""Composable node predicates for :class:`~treemetrics.core.dispatch.Dispatcher`.

Each helper returns a ``(node, context) -> bool`` callable, so a compound
condition such as "a function expression that is the callee of a call" is
built by combining them rather than by parsing a selector string.
"""

from __future__ import annotations

from typing import Iterable

from treemetrics.core.dispatch import Predicate, TraversalContext
from treemetrics.parsing.tree import same_node, strip_parentheses


def any_node(node, context: TraversalContext) -> bool:
    return True


def of_type(*types: str) -> Predicate:
    wanted = frozenset(types)

    def predicate(node, context: TraversalContext) -> bool:
        return node.is_named and node.type in wanted

    return predicate


def token(*values: str) -> Predicate:
    """Anonymous tokens (keywords, punctuators) with the given text."""
    wanted = frozenset(values)

    def predicate(node, context: TraversalContext) -> bool:
        return not node.is_named and node.type in wanted

    return predicate


def all_of(*predicates: Predicate) -> Predicate:
    def predicate(node, context: TraversalContext) -> bool:
        return all(check(node, context) for check in predicates)

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    def predicate(node, context: TraversalContext) -> bool:
        return any(check(node, context) for check in predicates)

    return predicate


def not_(check: Predicate) -> Predicate:
    def predicate(node, context: TraversalContext) -> bool:
        return not check(node, context)

    return predicate


def child_of(parent_check: Predicate, skip_parentheses: bool = False) -> Predicate:
    """The node's syntactic parent satisfies ``parent_check``."""

    def predicate(node, context: TraversalContext) -> bool:
        start = strip_parentheses(node, context.parents) if skip_parentheses else node
        parent = context.parent(start)
        return parent is not None and parent_check(parent, context)

    return predicate


def field_of(parent_types: Iterable[str], field_name: str, skip_parentheses: bool = False) -> Predicate:
    """The node fills ``field_name`` of a parent whose type is in ``parent_types``."""
    wanted = frozenset(parent_types)

    def predicate(node, context: TraversalContext) -> bool:
        start = strip_parentheses(node, context.parents) if skip_parentheses else node
        parent = context.parent(start)
        if parent is None or parent.type not in wanted:
            return False
        return same_node(parent.child_by_field_name(field_name), start)

    return predicate


def inside(ancestor_check: Predicate) -> Predicate:
    """Some ancestor of the node satisfies ``ancestor_check``."""

    def predicate(node, context: TraversalContext) -> bool:
        return any(ancestor_check(ancestor, context) for ancestor in context.ancestors(node))

    return predicate


def callee_named(name: str) -> Predicate:
    """A call expression whose callee is the plain identifier ``name``."""

    def predicate(node, context: TraversalContext) -> bool:
        if node.type != "call_expression":
            return False
        callee = node.child_by_field_name("function")
        return callee is not None and callee.type == "identifier" and context.text(callee) == name

    return predicate
