"""Run demotion for branching constructs.

A branching construct that ran is still reported as unexecuted when one of
its branches never ran: the reference runtime judges a condition by its worst
branch. Runs are computed in two phases. Raw runs are the flow model's
execution counts; demotion then rewrites them bottom-up, so an uncovered
branch nested deep inside a construct propagates outward one level at a time.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from coverplane.analysis.flow import FlowModel
from coverplane.tree.models import NodeKind, Tree


@dataclass(frozen=True, slots=True)
class SyntheticBranch:
    """A branch with no node of its own, such as the short-circuit path."""

    runs: int


SubBranch = int | SyntheticBranch


def sub_branches(tree: Tree, model: FlowModel, index: int) -> list[SubBranch]:
    """Immediate branches of a branching construct; empty for other kinds."""
    node = tree.node(index)
    match node.kind:
        case NodeKind.CONDITIONAL:
            return [node.slot("true_branch"), node.slot("false_branch")]
        case NodeKind.MULTIWAY_DISPATCH:
            return [*node.item("arms"), node.slot("else_branch")]
        case NodeKind.SHORT_CIRCUIT:
            right = node.slot("right")
            short_circuited = model.flow_completion_count(
                node.slot("left")
            ) - model.flow_entry_count(right)
            return [right, SyntheticBranch(short_circuited)]
        case NodeKind.SAFE_NAVIGATION_CALL:
            hits = model.counters.hits
            return [
                SyntheticBranch(hits(node.tracker("called"))),
                SyntheticBranch(hits(node.tracker("skipped"))),
            ]
        case _:
            return []


def raw_runs(tree: Tree, model: FlowModel) -> list[int]:
    """Execution count of every node, indexed by node."""
    model.compute()
    return [model.execution_count(index) for index in range(len(tree))]


def demote_runs(
    tree: Tree,
    raw: Sequence[int],
    branches_of: Callable[[int], Sequence[SubBranch]],
) -> list[int]:
    """Replace a covered construct's runs by its worst branch when that is uncovered."""
    runs = list(raw)
    for index in tree.walk_postorder():
        if runs[index] <= 0:
            continue
        branches = branches_of(index)
        if not branches:
            continue
        worst = min(
            branch.runs if isinstance(branch, SyntheticBranch) else runs[branch]
            for branch in branches
        )
        if worst <= 0:
            runs[index] = worst
    return runs
