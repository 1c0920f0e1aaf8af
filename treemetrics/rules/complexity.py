from __future__ import annotations

import logging
from typing import Optional

from treemetrics.analysis.complexity import FunctionCollector, FunctionComplexity, compute_function_complexity
from treemetrics.core.config import COMPLEXITY_RULE
from treemetrics.core.dispatch import Dispatcher, TraversalContext
from treemetrics.core.errors import MalformedTreeError
from treemetrics.core.finding import EncodedIssue, Issue, IssueLocation
from treemetrics.core.rule import Rule, RuleContext

logger = logging.getLogger(__name__)


def encode_complexity(complexity: FunctionComplexity, threshold: int) -> EncodedIssue:
    return EncodedIssue(
        message=(
            f"Function has a complexity of {complexity.complexity} "
            f"which is greater than {threshold} authorized."
        ),
        cost=complexity.complexity - threshold,
        secondary_locations=tuple(
            IssueLocation.from_source(token.location, "+1") for token in complexity.tokens
        ),
    )


class CyclomaticComplexityRule(Rule):
    rule_id = COMPLEXITY_RULE
    name = "Cyclomatic Complexity"
    description = "Flags functions whose cyclomatic complexity exceeds the configured threshold."
    languages = {"javascript", "typescript", "tsx"}

    def threshold(self) -> int:
        return self.options().get("threshold", 10)

    def subscribe(self, dispatcher: Dispatcher, context: RuleContext) -> None:
        collector = FunctionCollector(context.parsed)
        collector.subscribe(dispatcher, owner=self.rule_id)

        def on_file_end(traversal: TraversalContext) -> None:
            for scope in collector.scored_functions():
                try:
                    result = compute_function_complexity(context.parsed, scope)
                except MalformedTreeError:
                    raise
                except Exception as exc:
                    logger.warning(
                        "Skipping function %s in %s: %s", scope.name, context.parsed.path, exc
                    )
                    continue
                issue = self.check(result, context)
                if issue is not None:
                    context.report(issue)

        dispatcher.on_file_end(on_file_end, owner=self.rule_id)

    def check(self, result: FunctionComplexity, context: RuleContext) -> Optional[Issue]:
        threshold = self.threshold()
        if result.complexity <= threshold:
            return None
        return Issue(
            rule_id=self.rule_id,
            title="Function is too complex",
            severity=self.severity(),
            path=context.parsed.path,
            location=IssueLocation.from_source(result.scope.signature),
            payload=encode_complexity(result, threshold),
            function_name=result.name,
            tags=("brain-overload",),
        )
