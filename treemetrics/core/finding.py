import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from treemetrics.parsing.tree import SourceLocation


@dataclass(frozen=True)
class IssueLocation:
    line: int
    column: int
    end_line: int
    end_column: int
    message: Optional[str] = None

    @classmethod
    def from_source(cls, location: SourceLocation, message: Optional[str] = None) -> "IssueLocation":
        return cls(
            line=location.start_line,
            column=location.start_col,
            end_line=location.end_line,
            end_column=location.end_col,
            message=message,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "line": self.line,
            "column": self.column,
            "endLine": self.end_line,
            "endColumn": self.end_column,
        }
        if self.message is not None:
            data["message"] = self.message
        return data


@dataclass(frozen=True)
class EncodedIssue:
    message: str
    cost: int
    secondary_locations: Tuple[IssueLocation, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "cost": self.cost,
            "secondaryLocations": [location.to_dict() for location in self.secondary_locations],
        }

    def encode(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class Issue:
    rule_id: str
    title: str
    severity: str
    path: str
    location: IssueLocation
    payload: EncodedIssue
    function_name: str = ""
    tags: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return self.payload.encode()
