from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from treemetrics.core.config import Config
from treemetrics.core.dispatch import Dispatcher
from treemetrics.core.finding import Issue
from treemetrics.parsing.treesitter import ParsedFile


@dataclass
class RuleContext:
    """Per-file state shared by the rules of one analysis run."""

    config: Config
    parsed: ParsedFile
    issues: List[Issue] = field(default_factory=list)

    def report(self, issue: Issue) -> None:
        self.issues.append(issue)


class Rule:
    rule_id = "GENERIC"
    name = "Generic Rule"
    description = ""
    languages: set[str] = set()

    def __init__(self, config: Config) -> None:
        self.config = config

    def enabled(self) -> bool:
        return self.config.rule_enabled(self.rule_id)

    def applies_to(self, parsed: ParsedFile) -> bool:
        return parsed.language in self.languages

    def subscribe(self, dispatcher: Dispatcher, context: RuleContext) -> None:
        """Register this rule's handlers for one file's traversal."""

    def severity(self) -> str:
        return self.config.rule_severity(self.rule_id)

    def options(self) -> dict:
        return self.config.rule_options(self.rule_id)
