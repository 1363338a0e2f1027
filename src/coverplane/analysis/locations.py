"""Branch location resolution and location ids."""

from __future__ import annotations

from coverplane.core.errors import TreeError
from coverplane.report.models import Descriptor
from coverplane.tree.models import Node, SourceRange


def resolve_branch_location(
    enclosing: SourceRange,
    branch: Node | SourceRange | None,
    explicit_empty_marker: SourceRange | None,
) -> SourceRange:
    """Pick the range a branch is reported at.

    1. A branch with content is reported at its own range (an explicit range
       may be passed instead of the node).
    2. A clause that was written but left empty is reported at the empty
       marker, a zero-width range chosen by the caller.
    3. A clause with no syntax at all is reported at the enclosing range.
    """
    if isinstance(branch, SourceRange):
        return branch
    if branch is None or (branch.is_empty_body and branch.range is None):
        return enclosing
    if not branch.is_empty_body:
        if branch.range is None:
            raise TreeError.missing_range(branch.kind.value, branch.index)
        return branch.range
    if explicit_empty_marker is not None:
        return explicit_empty_marker
    # No marker applies to this form (ternary, or a modifier without keyword locs).
    return branch.range


class LocationIndex:
    """Hands out location ids for one reporting pass, starting at 1."""

    def __init__(self) -> None:
        self._last = 0

    @property
    def last(self) -> int:
        return self._last

    def describe(self, kind: str, source_range: SourceRange) -> Descriptor:
        self._last += 1
        return Descriptor(
            kind,
            self._last,
            source_range.start_line,
            source_range.start_column,
            source_range.end_line,
            source_range.end_column,
        )
