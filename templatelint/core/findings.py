"""
Finding data structures for the template linter.

This module defines the raw messages rules log during a walk, the final
severity-annotated findings, and the aggregated results of a lint run.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class Severity(IntEnum):
    """Severity levels for findings."""
    WARNING = 1
    ERROR = 2

    @property
    def label(self) -> str:
        return self.name.lower()


class MessageKind(Enum):
    """Where a raw message came from."""
    RULE = "rule"
    INTERNAL_ERROR = "internal-error"
    CONFIG_ERROR = "config-error"


@dataclass(frozen=True)
class RawMessage:
    """A violation logged by a rule before severity classification."""
    rule: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    source: Optional[str] = None
    kind: MessageKind = MessageKind.RULE


class MessageAccumulator:
    """
    Append-only collection of raw messages for a single walk.

    Rules only ever append; nothing logged during a walk is replaced or
    removed.
    """

    def __init__(self):
        self._messages: List[RawMessage] = []

    def append(self, message: RawMessage):
        self._messages.append(message)

    @property
    def messages(self) -> Tuple[RawMessage, ...]:
        return tuple(self._messages)

    def for_rule(self, rule_name: str) -> List[RawMessage]:
        return [m for m in self._messages if m.rule == rule_name]

    def __iter__(self) -> Iterator[RawMessage]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)


@dataclass
class Finding:
    """
    Represents one reported issue for a template module.

    Synthetic findings (missing rule, stale pending entry) carry no
    location; fatal findings have no rule.
    """
    message: str
    module_id: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    source: Optional[str] = None
    rule: Optional[str] = None
    severity: Severity = Severity.ERROR
    fatal: bool = False

    def __post_init__(self):
        """Normalize the severity."""
        if not isinstance(self.severity, Severity):
            self.severity = Severity(self.severity)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity == Severity.WARNING

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary, omitting unset fields."""
        result = {
            "message": self.message,
            "moduleId": self.module_id,
            "line": self.line,
            "column": self.column,
            "source": self.source,
            "rule": self.rule,
            "severity": int(self.severity),
        }
        result = {key: value for key, value in result.items() if value is not None}
        if self.fatal:
            result["fatal"] = True
        return result


@dataclass
class FileResult:
    """Findings for one linted file."""
    file_path: str
    module_id: Optional[str]
    findings: List[Finding] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings if f.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if f.is_warning)

    @property
    def failing_rules(self) -> List[str]:
        return sorted({f.rule for f in self.findings if f.rule})

    def without_warnings(self) -> "FileResult":
        return FileResult(self.file_path, self.module_id, [f for f in self.findings if not f.is_warning])


@dataclass
class LintReport:
    """Results from linting a set of files."""
    results: List[FileResult] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(r.error_count for r in self.results)

    @property
    def warning_count(self) -> int:
        return sum(r.warning_count for r in self.results)

    @property
    def total_findings(self) -> int:
        return sum(len(r.findings) for r in self.results)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def without_warnings(self) -> "LintReport":
        return LintReport([r.without_warnings() for r in self.results])

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {r.file_path: [f.to_dict() for f in r.findings] for r in self.results}
