"""Incremental construction of decorated trees.

Children are added before their parents; `add` returns the new node's index,
which is then passed to the parent's slot. Kind invariants are checked here so
that the engine can rely on them: a missing required slot or tracker role is
an upstream defect and raises `TreeError` immediately.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from coverplane.core.errors import TreeError
from coverplane.tree.models import Node, NodeKind, SourceRange, Tree
from coverplane.tree.schema import (
    CONDITIONAL_STYLES,
    LOOP_POLARITIES,
    SHORT_CIRCUIT_OPERATORS,
    schema_for,
)


class TreeBuilder:
    """Collects nodes into an arena and assembles a `Tree`."""

    def __init__(self) -> None:
        self._nodes: list[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def empty(self, range: Any = None) -> int:
        """Add an EMPTY_BODY; with a range it marks a written-but-empty clause."""
        return self.add(NodeKind.EMPTY_BODY, range=range)

    def add(
        self,
        kind: NodeKind | str,
        *,
        range: Any = None,
        trackers: Mapping[str, Any] | None = None,
        locs: Mapping[str, Any] | None = None,
        style: str | None = None,
        operator: str | None = None,
        polarity: str | None = None,
        post_test: bool = False,
        **children: Any,
    ) -> int:
        kind = NodeKind.parse(kind)
        schema = schema_for(kind)

        for name in children:
            if schema.spec(name) is None:
                raise TreeError.invalid_document(
                    f"{kind.value} has no slot '{name}'", kind=kind.value, slot=name
                )

        slots: dict[str, int | None] = {}
        items: dict[str, tuple[int, ...]] = {}
        for spec in schema.slots:
            value = children.get(spec.name)
            if spec.many:
                indices = tuple(self._check_index(i) for i in (value or ()))
                if spec.required and not indices:
                    raise TreeError.missing_slot(kind.value, spec.name)
                for index in indices:
                    self._check_kind(kind, spec.name, spec.kinds, index)
                items[spec.name] = indices
                continue
            if value is None:
                if spec.required:
                    raise TreeError.missing_slot(kind.value, spec.name)
                if spec.empty_body:
                    value = self.empty()
            else:
                value = self._check_index(value)
                self._check_kind(kind, spec.name, spec.kinds, value)
            slots[spec.name] = value

        tracker_ids = {
            str(role): str(tid) for role, tid in (trackers or {}).items() if tid is not None
        }
        for role in schema.trackers:
            if role not in tracker_ids:
                raise TreeError.missing_tracker(kind.value, role)
        for role in tracker_ids:
            if role not in schema.tracker_roles:
                raise TreeError.invalid_document(
                    f"{kind.value} has no tracker role '{role}'", kind=kind.value, role=role
                )

        node = Node(
            index=len(self._nodes),
            kind=kind,
            range=None if range is None else SourceRange.coerce(range),
            slots=slots,
            items=items,
            trackers=tracker_ids,
            locs={str(name): SourceRange.coerce(loc) for name, loc in (locs or {}).items()},
            style=self._style(kind, style),
            operator=self._operator(kind, operator),
            polarity=self._polarity(kind, polarity),
            post_test=bool(post_test) if kind is NodeKind.LOOP else False,
        )
        self._nodes.append(node)
        return node.index

    def build(self, root: int) -> Tree:
        return Tree(list(self._nodes), root)

    def _check_index(self, value: Any) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TreeError.invalid_document(
                "child reference must be a node index", value=str(value)
            )
        if not 0 <= value < len(self._nodes):
            raise TreeError.invalid_document("child index out of range", child=value)
        return value

    def _check_kind(
        self, kind: NodeKind, slot: str, expected: Sequence[NodeKind], index: int
    ) -> None:
        actual = self._nodes[index].kind
        if expected and actual not in expected:
            raise TreeError.wrong_child_kind(
                kind.value, slot, [k.value for k in expected], actual.value
            )

    @staticmethod
    def _style(kind: NodeKind, style: str | None) -> str | None:
        if kind is not NodeKind.CONDITIONAL:
            return None
        style = style or "if"
        if style not in CONDITIONAL_STYLES:
            raise TreeError.invalid_document(f"unknown conditional style '{style}'", style=style)
        return style

    @staticmethod
    def _operator(kind: NodeKind, operator: str | None) -> str | None:
        if kind is not NodeKind.SHORT_CIRCUIT:
            return None
        if operator not in SHORT_CIRCUIT_OPERATORS:
            raise TreeError.invalid_document(
                f"unknown short-circuit operator '{operator}'", operator=str(operator)
            )
        return operator

    @staticmethod
    def _polarity(kind: NodeKind, polarity: str | None) -> str | None:
        if kind is not NodeKind.LOOP:
            return None
        polarity = polarity or "while"
        if polarity not in LOOP_POLARITIES:
            raise TreeError.invalid_document(
                f"unknown loop polarity '{polarity}'", polarity=polarity
            )
        return polarity
