from __future__ import annotations

import json
from typing import Dict, Iterable, List

from treemetrics.analysis.cpd import CpdToken
from treemetrics.core.finding import Issue


def format_text(issues: Iterable[Issue], skipped: Iterable[str] = ()) -> str:
    lines = []
    issues_list = list(issues)
    for issue in issues_list:
        loc = issue.location
        payload = issue.payload
        lines.append(f"[{issue.severity}] {issue.rule_id}: {issue.title}")
        lines.append(f"  Location: {issue.path}:{loc.line}:{loc.column}")
        lines.append(f"  Function: {issue.function_name}")
        lines.append(f"  Message: {payload.message}")
        lines.append(f"  Cost: {payload.cost}")
        if payload.secondary_locations:
            lines.append("  Contributions:")
            for secondary in payload.secondary_locations:
                lines.append(f"    - {secondary.line}:{secondary.column} {secondary.message}")
        lines.append("")
    skipped_list = list(skipped)
    for path in skipped_list:
        lines.append(f"Skipped: {path}")
    lines.append(f"Issues: {len(issues_list)}")
    lines.append(f"Skipped files: {len(skipped_list)}")
    return "\n".join(lines).strip() + "\n"


def format_json(issues: Iterable[Issue], skipped: Iterable[str] = ()) -> str:
    issues_list = list(issues)
    skipped_list = list(skipped)
    data = {
        "summary": {
            "count": len(issues_list),
            "skipped": len(skipped_list),
        },
        "issues": [
            {
                "rule_id": issue.rule_id,
                "title": issue.title,
                "severity": issue.severity,
                "path": issue.path,
                "function": issue.function_name,
                "location": issue.location.to_dict(),
                "message": issue.message,
            }
            for issue in issues_list
        ],
        "skipped": skipped_list,
    }
    return json.dumps(data, indent=2)


def format_sarif(issues: Iterable[Issue]) -> str:
    issues_list = list(issues)
    rules = {}
    results = []
    for issue in issues_list:
        rules[issue.rule_id] = {
            "id": issue.rule_id,
            "name": issue.title,
            "shortDescription": {"text": issue.title},
            "properties": {
                "severity": issue.severity,
                "tags": list(issue.tags),
            },
        }
        results.append(
            {
                "ruleId": issue.rule_id,
                "level": _sarif_level(issue.severity),
                "message": {"text": issue.payload.message},
                "locations": [_sarif_location(issue.path, issue.location)],
                "relatedLocations": [
                    {
                        "id": index,
                        **_sarif_location(issue.path, secondary),
                        "message": {"text": secondary.message or ""},
                    }
                    for index, secondary in enumerate(issue.payload.secondary_locations)
                ],
                "properties": {"cost": issue.payload.cost},
            }
        )
    sarif = {
        "version": "2.1.0",
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "treemetrics",
                        "rules": list(rules.values()),
                    }
                },
                "results": results,
            }
        ],
    }
    return json.dumps(sarif, indent=2)


def format_cpd_json(tokens_by_path: Dict[str, List[CpdToken]]) -> str:
    data = {
        path: [token.to_dict() for token in tokens]
        for path, tokens in tokens_by_path.items()
    }
    return json.dumps(data, indent=2)


def _sarif_location(path: str, location) -> dict:
    # SARIF columns are 1-based
    return {
        "physicalLocation": {
            "artifactLocation": {"uri": path},
            "region": {
                "startLine": location.line,
                "startColumn": location.column + 1,
                "endLine": location.end_line,
                "endColumn": location.end_column + 1,
            },
        }
    }


def _sarif_level(severity: str) -> str:
    severity = severity.lower()
    if severity in {"blocker", "critical"}:
        return "error"
    if severity in {"major"}:
        return "warning"
    return "note"
