"""Branch report derivation.

Each branching kind reproduces the reference runtime's own conventions for
where a branch is located and what it counts. Conditions are reported in
pre-order (parent before children, children in flow order), and location
ids are handed out in that same order, the condition before its branches.
"""

from __future__ import annotations

from collections.abc import Sequence

from coverplane.analysis.flow import FlowModel
from coverplane.analysis.locations import LocationIndex, resolve_branch_location
from coverplane.core.errors import TreeError
from coverplane.report.models import BranchReport, Descriptor
from coverplane.tree.models import Node, NodeKind, SourceRange, Tree
from coverplane.tree.source import SourceBuffer

Branches = dict[Descriptor, int]


class BranchReportBuilder:
    """Builds the branch report of one tree for one counter snapshot."""

    def __init__(
        self,
        tree: Tree,
        model: FlowModel,
        source: SourceBuffer | None = None,
        locations: LocationIndex | None = None,
    ) -> None:
        self.tree = tree
        self.model = model
        self.source = source or SourceBuffer()
        self.locations = locations or LocationIndex()

    def build(self) -> BranchReport:
        report = BranchReport()
        for index in self.tree.walk():
            entry = self._derive(self.tree.node(index))
            if entry is not None:
                report.add(*entry)
        return report

    def _derive(self, node: Node) -> tuple[Descriptor, Branches] | None:
        match node.kind:
            case NodeKind.CONDITIONAL:
                return self._conditional(node)
            case NodeKind.MULTIWAY_DISPATCH:
                return self._dispatch(node)
            case NodeKind.SHORT_CIRCUIT:
                return self._short_circuit(node)
            case NodeKind.SAFE_NAVIGATION_CALL:
                return self._safe_navigation(node)
            case NodeKind.LOOP:
                return self._loop(node)
            case (
                NodeKind.ROOT
                | NodeKind.SEQUENCE
                | NodeKind.STATEMENT
                | NodeKind.EXIT
                | NodeKind.DEFINITION
                | NodeKind.EMPTY_BODY
                | NodeKind.DISPATCH_ARM
                | NodeKind.TRY_HANDLER
                | NodeKind.HANDLER_ARM
                | NodeKind.ELSE_CLAUSE
                | NodeKind.FINALLY_BLOCK
            ):
                return None

    # -- helpers -------------------------------------------------------------

    def _node(self, index: int | None) -> Node:
        if index is None:
            raise TreeError.invalid_document("dangling child slot")
        return self.tree.node(index)

    @staticmethod
    def _range(node: Node) -> SourceRange:
        if node.range is None:
            raise TreeError.missing_range(node.kind.value, node.index)
        return node.range

    @staticmethod
    def _required_loc(node: Node, name: str) -> SourceRange:
        loc = node.loc(name)
        if loc is None:
            raise TreeError.missing_loc(node.kind.value, name, node.index)
        return loc

    def _branches(
        self,
        enclosing: SourceRange,
        branches: Sequence[Node | SourceRange],
        keys: Sequence[str],
        markers: Sequence[SourceRange | None],
        counts: Sequence[int],
    ) -> Branches:
        result: Branches = {}
        for branch, key, marker, count in zip(branches, keys, markers, counts, strict=True):
            location = resolve_branch_location(enclosing, branch, marker)
            result[self.locations.describe(key, location)] = count
        return result

    def _statements(self, body: Node) -> tuple[int, ...]:
        match body.kind:
            case NodeKind.SEQUENCE:
                return body.item("statements")
            case NodeKind.EMPTY_BODY:
                return ()
            case _:
                return (body.index,)

    def _span(self, statements: Sequence[int]) -> SourceRange:
        first = self._range(self.tree.node(statements[0]))
        last = self._range(self.tree.node(statements[-1]))
        return first.with_end(last.end)

    # -- conditionals --------------------------------------------------------

    def _is_elsif(self, node: Node) -> bool:
        return node.kind is NodeKind.CONDITIONAL and node.style == "elsif"

    def _root_conditional(self, node: Node) -> Node:
        """Outermost `if` of an if/elsif chain."""
        while self._is_elsif(node):
            parent = self.tree.parent(node.index)
            if parent is None:
                break
            owner = self.tree.node(parent)
            if owner.kind is not NodeKind.CONDITIONAL or owner.slot("false_branch") != node.index:
                break
            node = owner
        return node

    def _extend_elsif(self, node: Node) -> Node | SourceRange:
        # The reference runtime stretches an elsif whose chain ends without a
        # non-empty else up to the `end` of the whole chain.
        if not self._is_elsif(node):
            return node
        deepest = node
        while True:
            nested = self._node(deepest.slot("false_branch"))
            if not self._is_elsif(nested):
                break
            deepest = nested
        if not self._node(deepest.slot("false_branch")).is_empty_body:
            return node
        end = self._required_loc(self._root_conditional(node), "end")
        return self._range(node).with_end(end.begin)

    def _conditional(self, node: Node) -> tuple[Descriptor, Branches]:
        tag = "unless" if node.style == "unless" else "if"
        extended = self._extend_elsif(node)
        node_range = extended if isinstance(extended, SourceRange) else self._range(node)
        condition = self.locations.describe(tag, node_range)

        true_branch = self._node(node.slot("true_branch"))
        false_branch = self._node(node.slot("false_branch"))
        keys = ["then", "else"]
        markers: list[SourceRange | None]
        if node.style == "ternary":
            markers = [None, None]
        else:
            begin_loc = node.loc("begin")
            else_loc = node.loc("else")
            first = second = None
            if begin_loc is not None:
                first = self.source.empty_marker(begin_loc)
            elif else_loc is not None:
                first = SourceRange.at(else_loc.begin)
            if else_loc is not None:
                second = self.source.empty_marker(else_loc)
            end_loc = self._root_conditional(node).loc("end")
            end_marker = None if end_loc is None else SourceRange.at(end_loc.begin)
            markers = [first or end_marker, second or end_marker]
        if tag == "unless":
            keys.reverse()
            markers.reverse()

        counts = [
            self.model.execution_count(true_branch.index),
            self.model.execution_count(false_branch.index),
        ]
        branches = [true_branch, self._extend_elsif(false_branch)]
        return condition, self._branches(node_range, branches, keys, markers, counts)

    # -- multiway dispatch ---------------------------------------------------

    def _dispatch(self, node: Node) -> tuple[Descriptor, Branches]:
        node_range = self._range(node)
        condition = self.locations.describe("case", node_range)

        arms = [self.tree.node(index) for index in node.item("arms")]
        branches: list[Node | SourceRange] = [self._arm_location(arm) for arm in arms]
        counts = [self.model.execution_count(arm.index) for arm in arms]

        else_branch = self._node(node.slot("else_branch"))
        branches.append(else_branch)
        counts.append(self.model.execution_count(else_branch.index))
        if else_branch.range is None:
            # No else was written: reported at the subject, not the whole case.
            subject = node.slot("subject")
            enclosing = node_range if subject is None else self._range(self.tree.node(subject))
            else_marker = None
        else:
            enclosing = node_range
            else_marker = SourceRange.at(self._required_loc(node, "end").begin)

        keys = ["when"] * len(arms) + ["else"]
        markers = [None] * len(arms) + [else_marker]
        return condition, self._branches(enclosing, branches, keys, markers, counts)

    def _arm_location(self, arm: Node) -> SourceRange:
        body = self._node(arm.slot("body"))
        begin_loc = arm.loc("begin")
        if body.is_empty_body:
            return self.source.empty_marker(begin_loc or self._range(arm))
        body_range = self._range(body)
        if begin_loc is None:
            return body_range
        return body_range.with_begin(self.source.skip_to_content_start(begin_loc))

    # -- short-circuit and safe navigation -----------------------------------

    def _short_circuit(self, node: Node) -> tuple[Descriptor, Branches]:
        tag = "&&" if node.operator in ("&&", "and") else "||"
        node_range = self._range(node)
        condition = self.locations.describe(tag, node_range)

        left = self._node(node.slot("left"))
        right = self._node(node.slot("right"))
        keys = ["then", "else"] if tag == "&&" else ["else", "then"]
        short_circuited = self.model.flow_completion_count(
            left.index
        ) - self.model.flow_entry_count(right.index)
        counts = [self.model.execution_count(right.index), short_circuited]
        # The short-circuit path has no syntax of its own.
        branches: list[Node | SourceRange] = [right, node_range]
        return condition, self._branches(node_range, branches, keys, [None, None], counts)

    def _safe_navigation(self, node: Node) -> tuple[Descriptor, Branches]:
        node_range = self._range(node)
        condition = self.locations.describe("&.", node_range)
        hits = self.model.counters.hits
        return condition, {
            self.locations.describe("then", node_range): hits(node.tracker("called")),
            self.locations.describe("else", node_range): hits(node.tracker("skipped")),
        }

    # -- loops -----------------------------------------------------------------

    def _loop(self, node: Node) -> tuple[Descriptor, Branches]:
        tag = "until" if node.polarity == "until" else "while"
        node_range = self._range(node)
        condition = self.locations.describe(tag, node_range)

        body = self._node(node.slot("body"))
        statements = self._statements(body)
        if node.post_test:
            if statements:
                location = self._span(statements)
            else:
                end = body.loc("end") or self._required_loc(node, "end")
                location = SourceRange.at(end.begin)
        elif body.kind is NodeKind.SEQUENCE and statements:
            location = self._span(statements)
        elif body.range is not None:
            location = body.range
        else:
            location = node_range

        branch = self.locations.describe("body", location)
        return condition, {branch: self.model.execution_count(body.index)}
