from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser

from treemetrics.core.errors import UnsupportedLanguageError
from treemetrics.parsing.tree import SourceLocation, SourceText

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LanguageSpec:
    name: str
    extensions: set[str]
    grammar: Callable[[], object]
    comment_types: set[str]
    function_node_types: set[str]
    literal_node_types: set[str]


_JS_FUNCTIONS = {
    "function_declaration",
    "function_expression",
    "function",
    "generator_function_declaration",
    "generator_function",
    "arrow_function",
    "method_definition",
}
_JS_COMMENTS = {"comment", "html_comment", "hash_bang_line"}
_JS_LITERALS = {"string", "number", "true", "false"}

LANGUAGE_SPECS = {
    "javascript": LanguageSpec(
        name="javascript",
        extensions={".js", ".jsx", ".mjs", ".cjs"},
        grammar=tree_sitter_javascript.language,
        comment_types=_JS_COMMENTS,
        function_node_types=_JS_FUNCTIONS,
        literal_node_types=_JS_LITERALS,
    ),
    "typescript": LanguageSpec(
        name="typescript",
        extensions={".ts", ".mts", ".cts"},
        grammar=tree_sitter_typescript.language_typescript,
        comment_types=_JS_COMMENTS,
        function_node_types=_JS_FUNCTIONS,
        literal_node_types=_JS_LITERALS,
    ),
    "tsx": LanguageSpec(
        name="tsx",
        extensions={".tsx"},
        grammar=tree_sitter_typescript.language_tsx,
        comment_types=_JS_COMMENTS,
        function_node_types=_JS_FUNCTIONS,
        literal_node_types=_JS_LITERALS,
    ),
}


@dataclass(frozen=True)
class ParsedFile:
    path: str
    language: str
    source: bytes
    tree: object
    spec: LanguageSpec
    source_text: SourceText = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_text", SourceText(self.source))

    @property
    def root(self):
        return self.tree.root_node

    def location(self, node) -> SourceLocation:
        return self.source_text.location(node.start_byte, node.end_byte)

    def is_function(self, node) -> bool:
        # `function` is also the type of the anonymous keyword token.
        return node.is_named and node.type in self.spec.function_node_types

    def is_comment(self, node) -> bool:
        return node.type in self.spec.comment_types


def language_for_path(path: str) -> Optional[str]:
    ext = Path(path).suffix.lower()
    for name, spec in LANGUAGE_SPECS.items():
        if ext in spec.extensions:
            return name
    return None


@lru_cache(maxsize=None)
def get_parser(language: str) -> Parser:
    spec = LANGUAGE_SPECS.get(language)
    if spec is None:
        raise UnsupportedLanguageError(f"Unsupported language: {language}")
    return Parser(Language(spec.grammar()))


def parse_source(source: str | bytes, language: str, path: str = "<source>") -> ParsedFile:
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = get_parser(language)
    tree = parser.parse(source)
    logger.debug("Parsed %s as %s (%d bytes)", path, language, len(source))
    return ParsedFile(
        path=path,
        language=language,
        source=source,
        tree=tree,
        spec=LANGUAGE_SPECS[language],
    )


def parse_file(path: str, language: Optional[str] = None) -> ParsedFile:
    language = language or language_for_path(path)
    if language is None:
        raise UnsupportedLanguageError(f"Unsupported language for path: {path}")
    return parse_source(Path(path).read_bytes(), language, path=path)


def node_text(parsed: ParsedFile, node) -> str:
    return parsed.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
