"""CoverPlane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Tree (decorated AST construction defects)
- 4xxx: Counts (instrumentation / counter store defects)

Tree and count errors are programming-error class: they mean the input was
built wrong upstream, not that the target program behaved unusually. Missing
counters and unknown node kinds are not errors.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Tree (3xxx)
    TREE_MISSING_SLOT = 3001
    TREE_MISSING_TRACKER = 3002
    TREE_UNKNOWN_KIND = 3003
    TREE_INVALID_RANGE = 3004
    TREE_INVALID_DOCUMENT = 3005
    TREE_WRONG_CHILD_KIND = 3006
    TREE_MISSING_LOC = 3007

    # Counts (4xxx)
    COUNT_INVALID_VALUE = 4001
    COUNT_NEGATIVE = 4002
    COUNT_COMPLETION_EXCEEDS_ENTRY = 4003
    COUNT_INVALID_SNAPSHOT = 4004
    COUNT_EXECUTION_EXCEEDS_ENTRY = 4005


@dataclass(frozen=True, slots=True)
class CoverPlaneError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TREE_MISSING_SLOT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CoverPlaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class TreeError(CoverPlaneError):
    """Decorated AST violates its own kind invariants."""

    @classmethod
    def missing_slot(cls, kind: str, slot: str, index: int | None = None) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_MISSING_SLOT,
            message=f"{kind} node requires child slot '{slot}'",
            details={"kind": kind, "slot": slot, "node": index},
        )

    @classmethod
    def missing_tracker(cls, kind: str, role: str, index: int | None = None) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_MISSING_TRACKER,
            message=f"{kind} node requires tracker '{role}'",
            details={"kind": kind, "role": role, "node": index},
        )

    @classmethod
    def missing_loc(cls, kind: str, loc: str, index: int | None = None) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_MISSING_LOC,
            message=f"{kind} node requires keyword location '{loc}'",
            details={"kind": kind, "loc": loc, "node": index},
        )

    @classmethod
    def missing_range(cls, kind: str, index: int) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_INVALID_RANGE,
            message=f"{kind} node {index} has no source range",
            details={"kind": kind, "node": index},
        )

    @classmethod
    def wrong_child_kind(
        cls, kind: str, slot: str, expected: list[str], actual: str
    ) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_WRONG_CHILD_KIND,
            message=f"{kind} slot '{slot}' expects {' or '.join(expected)}, got {actual}",
            details={"kind": kind, "slot": slot, "expected": expected, "actual": actual},
        )

    @classmethod
    def unknown_kind(cls, kind: Any) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_UNKNOWN_KIND,
            message=f"Unknown node kind: {kind!r}",
            details={"kind": str(kind)},
        )

    @classmethod
    def invalid_range(cls, value: Any, reason: str) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_INVALID_RANGE,
            message=f"Invalid source range {value!r}: {reason}",
            details={"value": str(value), "reason": reason},
        )

    @classmethod
    def invalid_document(cls, reason: str, **details: Any) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_INVALID_DOCUMENT,
            message=f"Invalid tree document: {reason}",
            details=details,
        )


class CountError(CoverPlaneError):
    """Counter values or derived counts are inconsistent."""

    @classmethod
    def invalid_value(cls, tracker: str, value: Any) -> "CountError":
        return cls(
            code=ErrorCode.COUNT_INVALID_VALUE,
            message=f"Counter '{tracker}' is not a non-negative integer: {value!r}",
            details={"tracker": tracker, "value": str(value)},
        )

    @classmethod
    def invalid_snapshot(cls, path: str, reason: str) -> "CountError":
        return cls(
            code=ErrorCode.COUNT_INVALID_SNAPSHOT,
            message=f"Failed to read counter snapshot at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def negative(cls, metric: str, index: int, value: int) -> "CountError":
        return cls(
            code=ErrorCode.COUNT_NEGATIVE,
            message=f"Derived {metric} of node {index} is negative: {value}",
            details={"metric": metric, "node": index, "value": value},
        )

    @classmethod
    def completion_exceeds_entry(cls, index: int, entry: int, completion: int) -> "CountError":
        return cls(
            code=ErrorCode.COUNT_COMPLETION_EXCEEDS_ENTRY,
            message=(
                f"Node {index} completed {completion} times but was entered {entry} times"
            ),
            details={"node": index, "entry": entry, "completion": completion},
        )

    @classmethod
    def execution_exceeds_entry(cls, index: int, entry: int, execution: int) -> "CountError":
        return cls(
            code=ErrorCode.COUNT_EXECUTION_EXCEEDS_ENTRY,
            message=f"Node {index} executed {execution} times but was entered {entry} times",
            details={"node": index, "entry": entry, "execution": execution},
        )
