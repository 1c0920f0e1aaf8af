"""Cyclomatic complexity of JavaScript / TypeScript functions.

Every function-like node is scored on its own: the walk over a function
stops at nested functions, which are scored separately. Functions that are
invoked where they are defined (``(function () { ... })()``) and functions
handed directly to ``define(...)`` only wrap a module and are not scored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from treemetrics.core.dispatch import Dispatcher, TraversalContext
from treemetrics.core.errors import MalformedTreeError
from treemetrics.core.selectors import all_of, any_of, callee_named, child_of, field_of, of_type
from treemetrics.parsing.tree import SourceLocation, children_of, first_token, token_before
from treemetrics.parsing.treesitter import ParsedFile, node_text

logger = logging.getLogger(__name__)

FUNCTION_EXPRESSION_TYPES = ("function_expression", "function", "generator_function")
KEYWORD_DECISION_TYPES = frozenset(
    {
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
    }
)
LOGICAL_OPERATORS = frozenset({"&&", "||"})


@dataclass(frozen=True)
class ComplexityToken:
    location: SourceLocation


@dataclass(frozen=True)
class FunctionScope:
    node: object
    parent: Optional[object]
    name: str
    signature: SourceLocation


@dataclass(frozen=True)
class FunctionComplexity:
    scope: FunctionScope
    tokens: List[ComplexityToken] = field(default_factory=list)

    @property
    def complexity(self) -> int:
        return len(self.tokens)

    @property
    def name(self) -> str:
        return self.scope.name


def signature_location(parsed: ParsedFile, node) -> SourceLocation:
    """From the start of the function to the last token before its body."""
    body = node.child_by_field_name("body")
    if body is None:
        raise MalformedTreeError(f"{node.type} without a body at line {node.start_point[0] + 1}")
    before_body = token_before(body)
    end = before_body.end_byte if before_body is not None else body.start_byte
    return parsed.source_text.location(node.start_byte, end)


def function_name(parsed: ParsedFile, node, parent) -> str:
    name_node = node.child_by_field_name("name")
    if name_node is None and parent is not None:
        if parent.type == "variable_declarator":
            name_node = parent.child_by_field_name("name")
        elif parent.type in ("pair", "public_field_definition", "field_definition"):
            name_node = (
                parent.child_by_field_name("key")
                or parent.child_by_field_name("name")
                or parent.child_by_field_name("property")
            )
        elif parent.type == "assignment_expression":
            name_node = parent.child_by_field_name("left")
    if name_node is None:
        return "<anonymous>"
    return node_text(parsed, name_node)


class FunctionComplexityVisitor:
    def __init__(self, parsed: ParsedFile, scope: FunctionScope) -> None:
        self.parsed = parsed
        self.scope = scope
        self.tokens: List[ComplexityToken] = []

    def visit(self) -> List[ComplexityToken]:
        root = self.scope.node
        stack = [root]
        while stack:
            node = stack.pop()
            if node is not root and self.parsed.is_function(node):
                continue
            location = self._decision_location(node) if node is not root else self.scope.signature
            if location is not None:
                self.tokens.append(ComplexityToken(location))
            stack.extend(reversed(children_of(node)))
        return self.tokens

    def _decision_location(self, node) -> Optional[SourceLocation]:
        if not node.is_named:
            return None
        kind = node.type
        if kind == "ternary_expression":
            question = next((child for child in node.children if child.type == "?"), None)
            return self.parsed.location(question) if question is not None else None
        if kind == "switch_case":
            # default clauses are `switch_default` nodes; a case always has a value
            if node.child_by_field_name("value") is None:
                return None
            return self.parsed.location(first_token(node))
        if kind in KEYWORD_DECISION_TYPES:
            return self.parsed.location(first_token(node))
        if kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in LOGICAL_OPERATORS:
                return self.parsed.location(operator)
        return None


def compute_function_complexity(parsed: ParsedFile, scope: FunctionScope) -> FunctionComplexity:
    visitor = FunctionComplexityVisitor(parsed, scope)
    return FunctionComplexity(scope=scope, tokens=list(visitor.visit()))


class FunctionCollector:
    """Collects the functions of a file that deserve a complexity score."""

    owner = "complexity"

    def __init__(self, parsed: ParsedFile) -> None:
        self.parsed = parsed
        self.functions: List[FunctionScope] = []
        self._excluded: set[int] = set()

    def subscribe(self, dispatcher: Dispatcher, owner: Optional[str] = None) -> None:
        owner = owner or self.owner
        function_expression = of_type(*FUNCTION_EXPRESSION_TYPES)
        dispatcher.on_enter(self._is_function, self._record_function, owner=owner)
        dispatcher.on_enter(
            all_of(function_expression, child_of(all_of(of_type("arguments"), child_of(callee_named("define"))))),
            self._exclude,
            owner=owner,
        )
        immediately_invoked = any_of(
            field_of(("call_expression",), "function", skip_parentheses=True),
            # `new_expression` names its callee `constructor`
            field_of(("new_expression",), "constructor", skip_parentheses=True),
        )
        dispatcher.on_enter(all_of(function_expression, immediately_invoked), self._exclude, owner=owner)

    def scored_functions(self) -> List[FunctionScope]:
        return [scope for scope in self.functions if scope.node.id not in self._excluded]

    def _is_function(self, node, context: TraversalContext) -> bool:
        return self.parsed.is_function(node)

    def _record_function(self, node, context: TraversalContext) -> None:
        parent = context.parent(node)
        self.functions.append(
            FunctionScope(
                node=node,
                parent=parent,
                name=function_name(self.parsed, node, parent),
                signature=signature_location(self.parsed, node),
            )
        )

    def _exclude(self, node, context: TraversalContext) -> None:
        self._excluded.add(node.id)


def compute_complexity(parsed: ParsedFile) -> List[FunctionComplexity]:
    """Score every eligible function of ``parsed`` in source order."""
    collector = FunctionCollector(parsed)
    dispatcher = Dispatcher()
    collector.subscribe(dispatcher)
    report = dispatcher.run(parsed)
    if report.failed(collector.owner):
        logger.warning("Function discovery was incomplete for %s", parsed.path)
    return [compute_function_complexity(parsed, scope) for scope in collector.scored_functions()]
