"""Normalized token streams for copy-paste detection.

Tokens come from the leaves of the syntax tree in source order. Comments
are dropped, literals collapse to ``LITERAL`` so that fragments differing
only in constant values still match, and JSX text between tags becomes a
single token per run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from treemetrics.core.dispatch import Dispatcher, TraversalContext
from treemetrics.core.errors import TokenExtractionError
from treemetrics.parsing.tree import SourceLocation, is_leaf
from treemetrics.parsing.treesitter import ParsedFile

logger = logging.getLogger(__name__)

LITERAL_IMAGE = "LITERAL"
JSX_TEXT_TYPES = frozenset({"jsx_text", "html_character_reference"})
# `/>` and `</` are lexed as one token but counted as two punctuators.
SPLIT_PUNCTUATORS = frozenset({"/>", "</"})
# TypeScript template literal types are chunked like template strings.
TEMPLATE_TYPES = frozenset({"template_string", "template_literal_type"})
SUBSTITUTION_TYPES = frozenset({"template_substitution", "template_type"})
# Nodes whose inner leaves never surface as tokens of their own.
OPAQUE_PARENT_TYPES = frozenset({"string", "regex"}) | TEMPLATE_TYPES


@dataclass(frozen=True)
class CpdToken:
    location: SourceLocation
    image: str

    def to_dict(self) -> Dict[str, object]:
        return {"location": self.location.to_dict(), "image": self.image}


def _has_substitution(node) -> bool:
    return any(child.type in SUBSTITUTION_TYPES for child in node.children)


class CpdTokenCollector:
    owner = "cpd"

    def __init__(self, parsed: ParsedFile) -> None:
        self.parsed = parsed
        self.tokens: List[CpdToken] = []

    def subscribe(self, dispatcher: Dispatcher) -> None:
        dispatcher.on_enter(self._is_literal, self._emit_literal, owner=self.owner)
        dispatcher.on_enter(self._is_regex, self._emit_text, owner=self.owner)
        dispatcher.on_enter(self._is_substitution, self._emit_template_head, owner=self.owner)
        dispatcher.on_exit(self._is_template_with_substitutions, self._emit_template_tail, owner=self.owner)
        dispatcher.on_enter(self._starts_jsx_text_run, self._emit_jsx_text, owner=self.owner)
        dispatcher.on_enter(self._is_split_punctuator, self._emit_split_punctuator, owner=self.owner)
        dispatcher.on_enter(self._is_plain_token, self._emit_text, owner=self.owner)

    # -- predicates ---------------------------------------------------------

    def _is_literal(self, node, context: TraversalContext) -> bool:
        if not node.is_named:
            return False
        if node.type in TEMPLATE_TYPES:
            return not _has_substitution(node)
        if node.type not in self.parsed.spec.literal_node_types:
            return False
        parent = context.parent(node)
        return parent is None or parent.type not in OPAQUE_PARENT_TYPES

    def _is_regex(self, node, context: TraversalContext) -> bool:
        return node.is_named and node.type == "regex"

    def _is_substitution(self, node, context: TraversalContext) -> bool:
        return node.type in SUBSTITUTION_TYPES

    def _is_template_with_substitutions(self, node, context: TraversalContext) -> bool:
        return node.type in TEMPLATE_TYPES and _has_substitution(node)

    def _starts_jsx_text_run(self, node, context: TraversalContext) -> bool:
        if node.type not in JSX_TEXT_TYPES:
            return False
        previous = node.prev_sibling
        return previous is None or previous.type not in JSX_TEXT_TYPES

    def _is_split_punctuator(self, node, context: TraversalContext) -> bool:
        return not node.is_named and node.type in SPLIT_PUNCTUATORS

    def _is_plain_token(self, node, context: TraversalContext) -> bool:
        if not is_leaf(node) or self.parsed.is_comment(node):
            return False
        if node.is_named and node.type in self.parsed.spec.literal_node_types:
            return False
        if node.type in JSX_TEXT_TYPES or self._is_split_punctuator(node, context):
            return False
        parent = context.parent(node)
        if parent is None:
            return True
        if parent.type in OPAQUE_PARENT_TYPES:
            return False
        # `${` and `}` belong to the surrounding template chunks
        return not (parent.type in SUBSTITUTION_TYPES and node.type in ("${", "}"))

    # -- emitters -----------------------------------------------------------

    def _emit(self, start: int, end: int, image: str) -> None:
        self.tokens.append(CpdToken(self.parsed.source_text.location(start, end), image))

    def _emit_literal(self, node, context: TraversalContext) -> None:
        self._emit(node.start_byte, node.end_byte, LITERAL_IMAGE)

    def _emit_text(self, node, context: TraversalContext) -> None:
        self._emit(node.start_byte, node.end_byte, context.text(node))

    def _emit_template_head(self, node, context: TraversalContext) -> None:
        # chunk from the backtick (or the previous `}`) through this `${`
        opener = node.children[0]
        previous = node.prev_sibling
        while previous is not None and previous.type not in SUBSTITUTION_TYPES:
            previous = previous.prev_sibling
        if previous is None:
            start = context.parent(node).start_byte
        else:
            start = previous.children[-1].start_byte
        self._emit(start, opener.end_byte, LITERAL_IMAGE)

    def _emit_template_tail(self, node, context: TraversalContext) -> None:
        last = [child for child in node.children if child.type in SUBSTITUTION_TYPES][-1]
        self._emit(last.children[-1].start_byte, node.end_byte, LITERAL_IMAGE)

    def _emit_split_punctuator(self, node, context: TraversalContext) -> None:
        text = context.text(node)
        self._emit(node.start_byte, node.start_byte + 1, text[0])
        self._emit(node.start_byte + 1, node.end_byte, text[1])

    def _emit_jsx_text(self, node, context: TraversalContext) -> None:
        previous = node.prev_sibling
        following = node.next_sibling
        while following is not None and following.type in JSX_TEXT_TYPES:
            following = following.next_sibling
        start = previous.end_byte if previous is not None else node.start_byte
        end = following.start_byte if following is not None else context.parent(node).end_byte
        text = self.parsed.source_text.slice(start, end)
        if text.strip():
            self._emit(start, end, text)


def extract_cpd_tokens(parsed: ParsedFile) -> List[CpdToken]:
    """Token stream of ``parsed``; raises when any part of it could not be built."""
    collector = CpdTokenCollector(parsed)
    dispatcher = Dispatcher()
    collector.subscribe(dispatcher)
    report = dispatcher.run(parsed)
    if report.failed(collector.owner):
        raise TokenExtractionError(f"Token extraction failed for {parsed.path}")
    logger.debug("Extracted %d CPD tokens from %s", len(collector.tokens), parsed.path)
    return collector.tokens

