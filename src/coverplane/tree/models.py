"""Decorated AST model with arena storage.

Nodes live in a single `Tree` and refer to each other by integer index.
Parent, children and sibling relations are computed once when the tree is
assembled, so lookups are O(1) and no node holds a back-pointer.

Coordinates follow the reference runtime: lines are 1-based, columns are
0-based, and a range's end column is exclusive.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from coverplane.core.errors import TreeError


class NodeKind(str, Enum):
    """Closed set of node kinds understood by the engine."""

    # Generic statements and expressions
    ROOT = "root"
    SEQUENCE = "sequence"
    STATEMENT = "statement"
    EXIT = "exit"  # raise, return, break, next
    DEFINITION = "definition"
    EMPTY_BODY = "empty_body"
    # Branching constructs
    CONDITIONAL = "conditional"
    MULTIWAY_DISPATCH = "multiway_dispatch"
    DISPATCH_ARM = "dispatch_arm"
    SHORT_CIRCUIT = "short_circuit"
    SAFE_NAVIGATION_CALL = "safe_navigation_call"
    LOOP = "loop"
    # Exception handling
    TRY_HANDLER = "try_handler"
    HANDLER_ARM = "handler_arm"
    ELSE_CLAUSE = "else_clause"
    FINALLY_BLOCK = "finally_block"

    @classmethod
    def parse(cls, value: Any) -> "NodeKind":
        if isinstance(value, NodeKind):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise TreeError.unknown_kind(value) from None


@dataclass(frozen=True, slots=True, order=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class SourceRange:
    """A span of source text."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __post_init__(self) -> None:
        for value in (self.start_line, self.start_column, self.end_line, self.end_column):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise TreeError.invalid_range(self.as_tuple(), "coordinates must be ints >= 0")
        if self.start_line < 1:
            raise TreeError.invalid_range(self.as_tuple(), "lines are 1-based")
        if self.end < self.begin:
            raise TreeError.invalid_range(self.as_tuple(), "end precedes start")

    @classmethod
    def at(cls, position: Position) -> "SourceRange":
        """Zero-width range at a position."""
        return cls(position.line, position.column, position.line, position.column)

    @classmethod
    def coerce(cls, value: Any) -> "SourceRange":
        """Accept a SourceRange, a 4-item sequence or a mapping."""
        if isinstance(value, SourceRange):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(
                    value["start_line"],
                    value["start_column"],
                    value["end_line"],
                    value["end_column"],
                )
            except KeyError as e:
                raise TreeError.invalid_range(dict(value), f"missing {e.args[0]}") from e
        if isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 4:
            return cls(*value)
        raise TreeError.invalid_range(value, "expected [line, column, end_line, end_column]")

    @property
    def begin(self) -> Position:
        return Position(self.start_line, self.start_column)

    @property
    def end(self) -> Position:
        return Position(self.end_line, self.end_column)

    def with_begin(self, position: Position) -> "SourceRange":
        return SourceRange(position.line, position.column, self.end_line, self.end_column)

    def with_end(self, position: Position) -> "SourceRange":
        return SourceRange(self.start_line, self.start_column, position.line, position.column)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.start_line, self.start_column, self.end_line, self.end_column)


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, slots=True, eq=False)
class Node:
    """An immutable AST element.

    `range` is None only for an EMPTY_BODY standing in for a slot that has no
    syntax at all (e.g. an `if` without `else`). An EMPTY_BODY with a range is
    a clause that was written but left empty.
    """

    index: int
    kind: NodeKind
    range: SourceRange | None = None
    slots: Mapping[str, int | None] = field(default_factory=dict)
    items: Mapping[str, tuple[int, ...]] = field(default_factory=dict)
    trackers: Mapping[str, str] = field(default_factory=dict)
    locs: Mapping[str, SourceRange] = field(default_factory=dict)
    style: str | None = None
    operator: str | None = None
    polarity: str | None = None
    post_test: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "slots", _frozen(self.slots))
        object.__setattr__(
            self, "items", _frozen({k: tuple(v) for k, v in self.items.items()})
        )
        object.__setattr__(self, "trackers", _frozen(self.trackers))
        object.__setattr__(self, "locs", _frozen(self.locs))

    def slot(self, name: str) -> int | None:
        return self.slots.get(name)

    def item(self, name: str) -> tuple[int, ...]:
        return self.items.get(name, ())

    def tracker(self, role: str) -> str | None:
        return self.trackers.get(role)

    def loc(self, name: str) -> SourceRange | None:
        return self.locs.get(name)

    @property
    def is_empty_body(self) -> bool:
        return self.kind is NodeKind.EMPTY_BODY


class Tree:
    """Arena holding every node of one compiled unit."""

    def __init__(self, nodes: Sequence[Node], root: int) -> None:
        from coverplane.tree.schema import flow_order

        self._nodes: tuple[Node, ...] = tuple(nodes)
        for position, node in enumerate(self._nodes):
            if node.index != position:
                raise TreeError.invalid_document(
                    "node index does not match arena position", node=node.index, position=position
                )
        if not 0 <= root < len(self._nodes):
            raise TreeError.invalid_document("root index out of range", root=root)
        self._root = root

        self._children: list[tuple[int, ...]] = [flow_order(node) for node in self._nodes]
        self._parent: list[int | None] = [None] * len(self._nodes)
        self._sibling_pos: list[int] = [0] * len(self._nodes)
        for parent, children in enumerate(self._children):
            for pos, child in enumerate(children):
                if not 0 <= child < len(self._nodes):
                    raise TreeError.invalid_document(
                        "child index out of range", node=parent, child=child
                    )
                if self._parent[child] is not None or child == root:
                    raise TreeError.invalid_document("node is shared", node=child)
                self._parent[child] = parent
                self._sibling_pos[child] = pos

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def root(self) -> Node:
        return self._nodes[self._root]

    def node(self, index: int) -> Node:
        return self._nodes[index]

    def children(self, index: int) -> tuple[int, ...]:
        """Child indices in flow (evaluation) order."""
        return self._children[index]

    def parent(self, index: int) -> int | None:
        return self._parent[index]

    def previous_sibling(self, index: int) -> int | None:
        parent = self._parent[index]
        pos = self._sibling_pos[index]
        if parent is None or pos == 0:
            return None
        return self._children[parent][pos - 1]

    def next_sibling(self, index: int) -> int | None:
        parent = self._parent[index]
        if parent is None:
            return None
        siblings = self._children[parent]
        pos = self._sibling_pos[index] + 1
        return siblings[pos] if pos < len(siblings) else None

    def walk(self) -> Iterator[int]:
        """Pre-order traversal: parent first, children in flow order."""
        stack = [self._root]
        while stack:
            index = stack.pop()
            yield index
            stack.extend(reversed(self._children[index]))

    def walk_postorder(self) -> Iterator[int]:
        """Post-order traversal: children (in flow order) before their parent."""
        stack: list[tuple[int, bool]] = [(self._root, False)]
        while stack:
            index, expanded = stack.pop()
            if expanded:
                yield index
                continue
            stack.append((index, True))
            stack.extend((child, False) for child in reversed(self._children[index]))
