"""Flow counts, branch locations, demotion and the derivation pipeline."""

from coverplane.analysis.branches import BranchReportBuilder
from coverplane.analysis.demotion import SyntheticBranch, demote_runs, raw_runs, sub_branches
from coverplane.analysis.flow import FlowModel
from coverplane.analysis.locations import LocationIndex, resolve_branch_location
from coverplane.analysis.pipeline import Derivation, derive

__all__ = [
    "BranchReportBuilder",
    "Derivation",
    "FlowModel",
    "LocationIndex",
    "SyntheticBranch",
    "demote_runs",
    "derive",
    "raw_runs",
    "resolve_branch_location",
    "sub_branches",
]
