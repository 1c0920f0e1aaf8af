from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from treemetrics.analysis.cpd import CpdToken, CpdTokenCollector
from treemetrics.core.config import Config
from treemetrics.core.dispatch import Dispatcher
from treemetrics.core.errors import TreeMetricsError
from treemetrics.core.finding import Issue
from treemetrics.core.registry import load_rules
from treemetrics.core.rule import RuleContext
from treemetrics.parsing.treesitter import ParsedFile, language_for_path, parse_file, parse_source
from treemetrics.utils.files import iter_source_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileResult:
    path: str
    language: Optional[str]
    issues: List[Issue] = field(default_factory=list)
    cpd_tokens: Optional[List[CpdToken]] = None
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.error is not None and not self.issues and self.cpd_tokens is None


@dataclass(frozen=True)
class AnalysisReport:
    files: List[FileResult]

    @property
    def issues(self) -> List[Issue]:
        issues = [issue for result in self.files for issue in result.issues]
        issues.sort(key=lambda issue: (issue.path, issue.location.line, issue.location.column))
        return issues

    @property
    def skipped(self) -> List[FileResult]:
        return [result for result in self.files if result.skipped]

    def cpd_tokens(self) -> Dict[str, List[CpdToken]]:
        return {
            result.path: result.cpd_tokens for result in self.files if result.cpd_tokens is not None
        }


class AnalysisEngine:
    def __init__(self, config: Config) -> None:
        self.config = config
        self.rules = list(load_rules(config))

    def analyze(self, path: str) -> AnalysisReport:
        paths = list(iter_source_files(path, self.config.languages()))
        jobs = self.config.jobs()
        if jobs > 1 and len(paths) > 1:
            logger.debug("Analyzing %d files with %d workers", len(paths), jobs)
            with ProcessPoolExecutor(max_workers=jobs) as executor:
                results = list(executor.map(_analyze_in_worker, [self.config.data] * len(paths), paths))
        else:
            results = [self.analyze_file(file_path) for file_path in paths]
        return AnalysisReport(files=results)

    def analyze_file(self, path: str) -> FileResult:
        language = language_for_path(path)
        try:
            parsed = parse_file(path, language)
        except (OSError, TreeMetricsError) as exc:
            logger.warning("Skipping %s: %s", path, exc)
            return FileResult(path=path, language=language, error=str(exc))
        return self.analyze_parsed(parsed)

    def analyze_source(self, source: str | bytes, language: str, path: str = "<source>") -> FileResult:
        return self.analyze_parsed(parse_source(source, language, path=path))

    def analyze_parsed(self, parsed: ParsedFile) -> FileResult:
        dispatcher = Dispatcher()
        context = RuleContext(config=self.config, parsed=parsed)
        for rule in self.rules:
            if rule.applies_to(parsed):
                rule.subscribe(dispatcher, context)
        collector = None
        if self.config.cpd_enabled():
            collector = CpdTokenCollector(parsed)
            collector.subscribe(dispatcher)

        try:
            report = dispatcher.run(parsed)
        except TreeMetricsError as exc:
            logger.warning("Skipping %s: %s", parsed.path, exc)
            return FileResult(path=parsed.path, language=parsed.language, error=str(exc))

        error = None
        tokens = None
        if collector is not None:
            if report.failed(collector.owner):
                error = "CPD token extraction failed"
                logger.warning("Discarding CPD tokens of %s: extraction failed", parsed.path)
            else:
                tokens = collector.tokens
        logger.debug(
            "Analyzed %s: %d nodes, %d issues", parsed.path, report.nodes_visited, len(context.issues)
        )
        return FileResult(
            path=parsed.path,
            language=parsed.language,
            issues=list(context.issues),
            cpd_tokens=tokens,
            error=error,
        )


def _analyze_in_worker(config_data: Dict[str, Any], path: str) -> FileResult:
    return AnalysisEngine(Config(config_data)).analyze_file(path)
