"""Branch report data model.

The report mirrors the reference runtime's native branch coverage result:
an insertion-ordered mapping of condition descriptors to an insertion-ordered
mapping of branch descriptors to hit counts.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, NamedTuple


class Descriptor(NamedTuple):
    """`(kind, location_id, start_line, start_column, end_line, end_column)`."""

    kind: str
    location_id: int
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def as_list(self) -> list[Any]:
        return list(self)


class BranchReport(Mapping[Descriptor, Mapping[Descriptor, int]]):
    """Branch coverage of one compiled unit.

    Conditions and their branches keep the order in which they were added,
    which is the pre-order traversal order of the tree.
    """

    def __init__(self) -> None:
        self._conditions: dict[Descriptor, dict[Descriptor, int]] = {}

    def add(self, condition: Descriptor, branches: Mapping[Descriptor, int]) -> None:
        self._conditions[condition] = dict(branches)

    def __getitem__(self, condition: Descriptor) -> Mapping[Descriptor, int]:
        return self._conditions[condition]

    def __iter__(self) -> Iterator[Descriptor]:
        return iter(self._conditions)

    def __len__(self) -> int:
        return len(self._conditions)

    def __repr__(self) -> str:
        return f"BranchReport({len(self._conditions)} conditions)"

    @property
    def branch_count(self) -> int:
        return sum(len(branches) for branches in self._conditions.values())

    @property
    def covered_branch_count(self) -> int:
        return sum(
            1 for branches in self._conditions.values() for hits in branches.values() if hits > 0
        )

    def to_payload(self) -> list[dict[str, Any]]:
        """JSON-able form: descriptors become lists, branch counts are appended."""
        return [
            {
                "condition": condition.as_list(),
                "branches": [[*branch, hits] for branch, hits in branches.items()],
            }
            for condition, branches in self._conditions.items()
        ]
