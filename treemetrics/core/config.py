import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from treemetrics.core.errors import ConfigError

logger = logging.getLogger(__name__)


COMPLEXITY_RULE = "cyclomatic-complexity"

DEFAULT_CONFIG: Dict[str, Any] = {
    "version": 1,
    "rules": {
        "enabled": [
            COMPLEXITY_RULE,
        ],
        "severities": {
            COMPLEXITY_RULE: "Critical",
        },
        "options": {
            COMPLEXITY_RULE: {
                "threshold": 10,
            },
        },
    },
    "languages": {
        "enabled": [
            "javascript",
            "typescript",
            "tsx",
        ]
    },
    "cpd": {
        "enabled": True,
    },
    "analysis": {
        "jobs": 1,
    },
    "reporting": {
        "format": "text",
        "fail_on_issues": True,
    },
    "logging": {
        "level": "WARNING",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _validate(data: Dict[str, Any]) -> None:
    options = data.get("rules", {}).get("options", {})
    for rule_id, rule_options in options.items():
        if "threshold" not in (rule_options or {}):
            continue
        threshold = rule_options["threshold"]
        # bool is an int subclass
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
            raise ConfigError(f"Invalid threshold for {rule_id}: {threshold!r} (expected a positive integer)")
    jobs = data.get("analysis", {}).get("jobs", 1)
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise ConfigError(f"Invalid analysis.jobs: {jobs!r} (expected a positive integer)")


@dataclass(frozen=True)
class Config:
    data: Dict[str, Any]

    def __post_init__(self) -> None:
        _validate(self.data)

    @classmethod
    def load(cls, path: str | None) -> "Config":
        if not path:
            return cls(DEFAULT_CONFIG)
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        raw = config_path.read_text(encoding="utf-8")
        try:
            if config_path.suffix.lower() in {".json"}:
                overrides = json.loads(raw)
            else:
                overrides = yaml.safe_load(raw) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        logger.debug("Loaded config overrides from %s", path)
        return cls.from_dict(overrides)

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "Config":
        return cls(_deep_merge(DEFAULT_CONFIG, overrides))

    def with_threshold(self, rule_id: str, threshold: int) -> "Config":
        return Config(_deep_merge(self.data, {"rules": {"options": {rule_id: {"threshold": threshold}}}}))

    def rule_enabled(self, rule_id: str) -> bool:
        enabled = set(self.data.get("rules", {}).get("enabled", []))
        return rule_id in enabled

    def rule_severity(self, rule_id: str) -> str:
        return self.data.get("rules", {}).get("severities", {}).get(rule_id, "Major")

    def rule_options(self, rule_id: str) -> Dict[str, Any]:
        return self.data.get("rules", {}).get("options", {}).get(rule_id) or {}

    def languages(self) -> set[str]:
        return set(self.data.get("languages", {}).get("enabled", []))

    def cpd_enabled(self) -> bool:
        return bool(self.data.get("cpd", {}).get("enabled", True))

    def jobs(self) -> int:
        return self.data.get("analysis", {}).get("jobs", 1)

    def reporting(self) -> Dict[str, Any]:
        return self.data.get("reporting", {})

    def log_level(self) -> str:
        return str(self.data.get("logging", {}).get("level", "WARNING")).upper()
