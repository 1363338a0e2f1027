"""End-to-end derivation of one unit's branch report."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

import structlog

from coverplane.analysis.branches import BranchReportBuilder
from coverplane.analysis.demotion import demote_runs, raw_runs, sub_branches
from coverplane.analysis.flow import FlowModel
from coverplane.analysis.locations import LocationIndex
from coverplane.counters.store import CounterStore
from coverplane.report.models import BranchReport
from coverplane.tree.models import Tree
from coverplane.tree.source import SourceBuffer

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class Derivation:
    """Branch report plus per-node runs before and after demotion."""

    report: BranchReport
    runs: tuple[int, ...]
    raw_runs: tuple[int, ...]


def derive(
    tree: Tree,
    counters: CounterStore,
    *,
    source: SourceBuffer | None = None,
    verify: bool = True,
) -> Derivation:
    """Derive the branch report and reported runs of `tree`.

    With `verify`, a counter snapshot that breaks a flow invariant raises
    `CountError`; without it the violations are logged and derivation goes on.
    A negative derived count always raises.
    """
    model = FlowModel(tree, counters)
    if verify:
        model.verify()
    else:
        for violation in model.violations():
            logger.warning(
                "flow_invariant_violated",
                code=violation.code.value,
                error=violation.error_name,
                **violation.details,
            )

    raw = raw_runs(tree, model)
    runs = demote_runs(tree, raw, partial(sub_branches, tree, model))
    report = BranchReportBuilder(tree, model, source, LocationIndex()).build()
    logger.debug(
        "branches_derived",
        nodes=len(tree),
        conditions=len(report),
        branches=report.branch_count,
    )
    return Derivation(report=report, runs=tuple(runs), raw_runs=tuple(raw))
