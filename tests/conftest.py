"""Pytest configuration and fixtures for treemetrics tests."""

from pathlib import Path

import pytest

from treemetrics.core.config import Config
from treemetrics.parsing.treesitter import parse_source


@pytest.fixture
def parse_js():
    """Parse a JavaScript snippet."""

    def _parse(code: str, path: str = "sample.js"):
        return parse_source(code, "javascript", path=path)

    return _parse


@pytest.fixture
def parse_tsx():
    """Parse a TSX snippet, the grammar that accepts both types and JSX."""

    def _parse(code: str, path: str = "sample.tsx"):
        return parse_source(code, "tsx", path=path)

    return _parse


@pytest.fixture
def strict_config() -> Config:
    """Config flagging every function with at least one decision point."""
    return Config.from_dict(
        {
            "rules": {"options": {"cyclomatic-complexity": {"threshold": 1}}},
            "cpd": {"enabled": False},
        }
    )


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A small project with a complex function, a broken file and ignored files."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "complex.js").write_text(
        "function route(req) {\n"
        "  if (req.a && req.b) {\n"
        "    return 1;\n"
        "  }\n"
        "  return req.c ? 2 : 3;\n"
        "}\n"
    )
    (tmp_path / "src" / "simple.ts").write_text(
        "export function id(x: number): number {\n"
        "  return x;\n"
        "}\n"
    )
    (tmp_path / "src" / "broken.js").write_text("function broken( {\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("function dep(a) { return a && a; }\n")
    (tmp_path / "README.md").write_text("# sample\n")
    return tmp_path
