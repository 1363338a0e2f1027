"""Flow count model.

Three metrics are derived per node from the tracker hits and from the
node's relationships:

- execution count: how many times control reached the node's own work
  (for a conditional, how many times the condition was decided);
- flow entry count: how many times control entered the node;
- flow completion count: how many times the node fell through normally
  instead of leaving by raise, return, break or next.

A child's flow entry is decided by its parent. Unless the parent's kind says
otherwise, the first child inherits the parent's entry and every later child
is entered as often as its previous sibling completed, so linear fall-through
keeps `entry(next) == completion(previous)`.
"""

from __future__ import annotations

from collections.abc import Iterator

from coverplane.core.errors import CountError
from coverplane.counters.store import CounterStore
from coverplane.tree.models import Node, NodeKind, Tree

# Kinds whose execution count comes straight from their own tracker. Their
# derived entry count is diagnostic only and never overrides the tracker.
TRACKER_AUTHORITATIVE = frozenset({NodeKind.HANDLER_ARM, NodeKind.DISPATCH_ARM})


class FlowModel:
    """Memoised flow counts for one tree and one counter snapshot."""

    def __init__(self, tree: Tree, counters: CounterStore) -> None:
        self.tree = tree
        self.counters = counters
        self._entry: dict[int, int] = {}
        self._completion: dict[int, int] = {}
        self._execution: dict[int, int] = {}

    # -- public metrics -----------------------------------------------------

    def execution_count(self, index: int) -> int:
        if index not in self._execution:
            self._execution[index] = self._checked(
                "execution_count", index, self._execution_rule(self.tree.node(index))
            )
        return self._execution[index]

    def flow_entry_count(self, index: int) -> int:
        if index not in self._entry:
            parent = self.tree.parent(index)
            if parent is None:
                value = self._hits(self.tree.node(index), "entered")
            else:
                value = self._child_entry_rule(self.tree.node(parent), index)
            self._entry[index] = self._checked("flow_entry_count", index, value)
        return self._entry[index]

    def flow_completion_count(self, index: int) -> int:
        if index not in self._completion:
            self._completion[index] = self._checked(
                "flow_completion_count", index, self._completion_rule(self.tree.node(index))
            )
        return self._completion[index]

    def compute(self) -> None:
        """Evaluate every metric of every node.

        Nodes are visited children-first, so each lookup only recurses as
        deep as the tree, not as long as a statement list.
        """
        for index in self._evaluation_order():
            self.flow_entry_count(index)
            self.flow_completion_count(index)
            self.execution_count(index)

    def violations(self) -> list[CountError]:
        """Flow invariants that the counter snapshot breaks."""
        self.compute()
        found: list[CountError] = []
        for index in self.tree.walk():
            node = self.tree.node(index)
            completion = self.flow_completion_count(index)
            execution = self.execution_count(index)
            if node.kind in TRACKER_AUTHORITATIVE:
                # Only the tracker is trusted for arms: check against it.
                if completion > execution:
                    found.append(CountError.completion_exceeds_entry(index, execution, completion))
                continue
            entry = self.flow_entry_count(index)
            if completion > entry:
                found.append(CountError.completion_exceeds_entry(index, entry, completion))
            if execution > entry:
                found.append(CountError.execution_exceeds_entry(index, entry, execution))
        return found

    def verify(self) -> None:
        """Raise the first flow invariant violation, if any."""
        found = self.violations()
        if found:
            raise found[0]

    # -- helpers -------------------------------------------------------------

    def _hits(self, node: Node, role: str) -> int:
        return self.counters.hits(node.tracker(role))

    @staticmethod
    def _checked(metric: str, index: int, value: int) -> int:
        if value < 0:
            raise CountError.negative(metric, index, value)
        return value

    def _evaluation_order(self) -> Iterator[int]:
        # Post-order, except that a loop's body is settled before its
        # condition: a pre-test condition is entered once per completed body.
        stack: list[tuple[int, bool]] = [(self.tree.root.index, False)]
        while stack:
            index, expanded = stack.pop()
            if expanded:
                yield index
                continue
            stack.append((index, True))
            children = list(self.tree.children(index))
            node = self.tree.node(index)
            if node.kind is NodeKind.LOOP and not node.post_test:
                children.reverse()
            stack.extend((child, False) for child in reversed(children))

    def _default_child_entry(self, parent: Node, child: int) -> int:
        previous = self.tree.previous_sibling(child)
        if previous is None:
            return self.flow_entry_count(parent.index)
        return self.flow_completion_count(previous)

    def _last_child_completion(self, node: Node) -> int:
        children = self.tree.children(node.index)
        if children:
            return self.flow_completion_count(children[-1])
        return self.flow_entry_count(node.index)

    def _completion_of(self, index: int | None, default: int) -> int:
        return default if index is None else self.flow_completion_count(index)

    # -- per-kind rules ------------------------------------------------------

    def _child_entry_rule(self, parent: Node, child: int) -> int:
        match parent.kind:
            case NodeKind.ROOT:
                return self.flow_entry_count(parent.index)
            case NodeKind.DEFINITION:
                return self._hits(parent, "called")
            case NodeKind.CONDITIONAL:
                if child == parent.slot("true_branch"):
                    return self._hits(parent, "truthy")
                if child == parent.slot("false_branch"):
                    condition = self.flow_completion_count(parent.slot("condition"))
                    return condition - self._hits(parent, "truthy")
                return self.flow_entry_count(parent.index)
            case NodeKind.MULTIWAY_DISPATCH:
                return self._dispatch_child_entry(parent, child)
            case NodeKind.DISPATCH_ARM:
                if child == parent.slot("body"):
                    return self._hits(parent, "body_entered")
                return self._default_child_entry(parent, child)
            case NodeKind.SHORT_CIRCUIT:
                if child == parent.slot("right"):
                    return self._hits(parent, "conditional")
                return self.flow_entry_count(parent.index)
            case NodeKind.SAFE_NAVIGATION_CALL:
                if child == parent.slot("receiver"):
                    return self.flow_entry_count(parent.index)
                if self.tree.previous_sibling(child) == parent.slot("receiver"):
                    return self._hits(parent, "called")
                return self._default_child_entry(parent, child)
            case NodeKind.LOOP:
                return self._loop_child_entry(parent, child)
            case NodeKind.TRY_HANDLER:
                return self._try_child_entry(parent, child)
            case NodeKind.HANDLER_ARM:
                if child == parent.slot("exception"):
                    return self.flow_entry_count(parent.index)
                return self._hits(parent, "entered_body")
            case NodeKind.FINALLY_BLOCK:
                body = parent.slot("body")
                if child == parent.slot("finally_body") and body is not None:
                    return self.flow_entry_count(body)
                return self.flow_entry_count(parent.index)
            case (
                NodeKind.SEQUENCE
                | NodeKind.STATEMENT
                | NodeKind.EXIT
                | NodeKind.EMPTY_BODY
                | NodeKind.ELSE_CLAUSE
            ):
                return self._default_child_entry(parent, child)

    def _dispatch_child_entry(self, parent: Node, child: int) -> int:
        subject = parent.slot("subject")
        if child == subject:
            return self.flow_entry_count(parent.index)
        arms = parent.item("arms")
        if child == arms[0]:
            return self._completion_of(subject, self.flow_entry_count(parent.index))
        # Later arms and the else see whatever the previous arm did not match.
        previous = self.tree.previous_sibling(child)
        return self.flow_entry_count(previous) - self.execution_count(previous)

    def _loop_child_entry(self, parent: Node, child: int) -> int:
        body = parent.slot("body")
        if child == body:
            return self._hits(parent, "body_entered")
        # condition
        if parent.post_test:
            return self.flow_completion_count(body)
        return self.flow_entry_count(parent.index) + self.flow_completion_count(body)

    def _try_child_entry(self, parent: Node, child: int) -> int:
        watched = parent.slot("watched_body")
        if child == watched:
            return self.flow_entry_count(parent.index)
        if child == parent.slot("else_clause"):
            return self.execution_count(parent.index)
        # A handler arm.
        previous = self.tree.previous_sibling(child)
        if previous is None:
            return self.flow_entry_count(parent.index)
        if previous == watched:
            return self.flow_entry_count(watched) - self.flow_completion_count(watched)
        # Whatever the previous arm's exception list let through.
        arm = self.tree.node(previous)
        matched = self._completion_of(arm.slot("exception"), self.flow_entry_count(previous))
        return matched - self.execution_count(previous)

    def _execution_rule(self, node: Node) -> int:
        match node.kind:
            case NodeKind.CONDITIONAL:
                return self.flow_completion_count(node.slot("condition"))
            case NodeKind.MULTIWAY_DISPATCH:
                return self._completion_of(node.slot("subject"), self.flow_entry_count(node.index))
            case NodeKind.DISPATCH_ARM:
                return self._hits(node, "body_entered")
            case NodeKind.SHORT_CIRCUIT:
                return self.flow_completion_count(node.slot("left"))
            case NodeKind.SAFE_NAVIGATION_CALL:
                return self.flow_completion_count(node.slot("receiver"))
            case NodeKind.TRY_HANDLER:
                return self._completion_of(
                    node.slot("watched_body"), self.flow_entry_count(node.index)
                )
            case NodeKind.HANDLER_ARM:
                return self._hits(node, "entered_body")
            case (
                NodeKind.ROOT
                | NodeKind.SEQUENCE
                | NodeKind.STATEMENT
                | NodeKind.EXIT
                | NodeKind.DEFINITION
                | NodeKind.EMPTY_BODY
                | NodeKind.LOOP
                | NodeKind.ELSE_CLAUSE
                | NodeKind.FINALLY_BLOCK
            ):
                return self.flow_entry_count(node.index)

    def _completion_rule(self, node: Node) -> int:
        match node.kind:
            case NodeKind.ROOT | NodeKind.SEQUENCE | NodeKind.ELSE_CLAUSE:
                return self._last_child_completion(node)
            case NodeKind.STATEMENT:
                if node.tracker("completed") is not None:
                    return self._hits(node, "completed")
                return self._last_child_completion(node)
            case NodeKind.EXIT:
                return 0
            case NodeKind.DEFINITION | NodeKind.EMPTY_BODY:
                return self.flow_entry_count(node.index)
            case NodeKind.CONDITIONAL:
                return self.flow_completion_count(
                    node.slot("true_branch")
                ) + self.flow_completion_count(node.slot("false_branch"))
            case NodeKind.MULTIWAY_DISPATCH:
                arms = sum(self.flow_completion_count(arm) for arm in node.item("arms"))
                return arms + self.flow_completion_count(node.slot("else_branch"))
            case NodeKind.DISPATCH_ARM:
                return self.flow_completion_count(node.slot("body"))
            case NodeKind.SHORT_CIRCUIT:
                left = self.flow_completion_count(node.slot("left"))
                right_entry = self.flow_entry_count(node.slot("right"))
                return self.flow_completion_count(node.slot("right")) + left - right_entry
            case NodeKind.SAFE_NAVIGATION_CALL:
                called = (
                    self._hits(node, "completed")
                    if node.tracker("completed") is not None
                    else self._hits(node, "called")
                )
                return self._hits(node, "skipped") + called
            case NodeKind.LOOP:
                condition = self.flow_completion_count(node.slot("condition"))
                repeats = self._hits(node, "body_entered")
                if node.post_test:
                    repeats -= self.flow_entry_count(node.index)
                return condition - repeats + self._hits(node, "broke")
            case NodeKind.TRY_HANDLER:
                watched = node.slot("watched_body")
                if watched is None:
                    return self.flow_entry_count(node.index)
                arms = sum(self.flow_completion_count(arm) for arm in node.item("arms"))
                tail = node.slot("else_clause")
                return arms + self.flow_completion_count(watched if tail is None else tail)
            case NodeKind.HANDLER_ARM:
                return self._completion_of(node.slot("body"), self.execution_count(node.index))
            case NodeKind.FINALLY_BLOCK:
                body = node.slot("body")
                if body is not None:
                    return self.flow_completion_count(body)
                return self._completion_of(
                    node.slot("finally_body"), self.execution_count(node.index)
                )
