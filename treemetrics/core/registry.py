from __future__ import annotations

from typing import Iterable, Type

from treemetrics.core.config import Config
from treemetrics.core.rule import Rule
from treemetrics.rules.complexity import CyclomaticComplexityRule


RULES: list[Type[Rule]] = [
    CyclomaticComplexityRule,
]


def load_rules(config: Config) -> Iterable[Rule]:
    for rule_cls in RULES:
        rule = rule_cls(config)
        if rule.enabled():
            yield rule
