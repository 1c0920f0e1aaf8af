"""Traversal-driven dispatch of analysis handlers.

Consumers register ``(predicate, phase, handler)`` subscriptions on a
:class:`Dispatcher`. A single walk over the tree then fires every matching
handler: entry events in source order, exit events once a node's subtree is
done, and file-end handlers exactly once after the walk.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from treemetrics.core.errors import MalformedTreeError
from treemetrics.parsing.tree import ParentMap, SourceLocation, children_of
from treemetrics.parsing.treesitter import ParsedFile, node_text

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    ENTER = "enter"
    EXIT = "exit"
    FILE_END = "file_end"


class TraversalContext:
    """What handlers and predicates may see of the current traversal."""

    def __init__(self, parsed: ParsedFile) -> None:
        self.parsed = parsed
        self.parents = ParentMap()

    def parent(self, node):
        return self.parents.parent(node)

    def ancestors(self, node):
        return self.parents.ancestors(node)

    def text(self, node) -> str:
        return node_text(self.parsed, node)

    def location(self, node) -> SourceLocation:
        return self.parsed.location(node)


Predicate = Callable[[object, TraversalContext], bool]
Handler = Callable[[object, TraversalContext], None]
FileEndHandler = Callable[[TraversalContext], None]


@dataclass(frozen=True)
class Subscription:
    phase: Phase
    handler: Callable
    predicate: Optional[Predicate] = None
    owner: str = ""
    priority: int = 0


@dataclass(frozen=True)
class HandlerFailure:
    owner: str
    phase: Phase
    node_type: Optional[str]
    location: Optional[SourceLocation]
    error: Exception


@dataclass
class DispatchReport:
    nodes_visited: int = 0
    failures: List[HandlerFailure] = field(default_factory=list)

    def failed(self, owner: str) -> bool:
        return any(failure.owner == owner for failure in self.failures)


class Dispatcher:
    def __init__(self) -> None:
        self._subscriptions: dict[Phase, list[Subscription]] = {phase: [] for phase in Phase}

    def subscribe(self, subscription: Subscription) -> None:
        bucket = self._subscriptions[subscription.phase]
        bucket.append(subscription)
        # sort is stable: equal priorities keep registration order
        bucket.sort(key=lambda sub: sub.priority)

    def on_enter(self, predicate: Predicate, handler: Handler, owner: str = "", priority: int = 0) -> None:
        self.subscribe(Subscription(Phase.ENTER, handler, predicate, owner, priority))

    def on_exit(self, predicate: Predicate, handler: Handler, owner: str = "", priority: int = 0) -> None:
        self.subscribe(Subscription(Phase.EXIT, handler, predicate, owner, priority))

    def on_file_end(self, handler: FileEndHandler, owner: str = "", priority: int = 0) -> None:
        self.subscribe(Subscription(Phase.FILE_END, handler, None, owner, priority))

    def run(self, parsed: ParsedFile) -> DispatchReport:
        context = TraversalContext(parsed)
        report = DispatchReport()
        enter = self._subscriptions[Phase.ENTER]
        leave = self._subscriptions[Phase.EXIT]

        stack: list[tuple[object, bool]] = [(parsed.root, False)]
        while stack:
            node, exiting = stack.pop()
            if exiting:
                self._fire(leave, node, context, report)
                continue
            report.nodes_visited += 1
            children = children_of(node)
            self._fire(enter, node, context, report)
            if leave:
                stack.append((node, True))
            for child in reversed(children):
                context.parents.record(child, node)
                stack.append((child, False))

        for subscription in self._subscriptions[Phase.FILE_END]:
            try:
                subscription.handler(context)
            except MalformedTreeError:
                raise
            except Exception as exc:
                self._record(report, subscription, None, context, exc)
        return report

    def _fire(self, subscriptions, node, context: TraversalContext, report: DispatchReport) -> None:
        for subscription in subscriptions:
            try:
                if subscription.predicate is not None and not subscription.predicate(node, context):
                    continue
                subscription.handler(node, context)
            except MalformedTreeError:
                raise
            except Exception as exc:
                self._record(report, subscription, node, context, exc)

    def _record(self, report, subscription: Subscription, node, context, exc: Exception) -> None:
        location = context.location(node) if node is not None else None
        logger.warning(
            "Handler %s failed during %s at %s:%s: %s",
            subscription.owner or subscription.handler,
            subscription.phase.value,
            context.parsed.path,
            location or "end of file",
            exc,
        )
        report.failures.append(
            HandlerFailure(
                owner=subscription.owner,
                phase=subscription.phase,
                node_type=node.type if node is not None else None,
                location=location,
                error=exc,
            )
        )
