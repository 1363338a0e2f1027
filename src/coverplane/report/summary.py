"""Branch coverage summaries.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "total_conditions": int,
        "total_branches": int,
        "covered_branches": int,
        "branch_coverage_percent": float | null
    },
    "files": [
        {
            "path": str,
            "conditions": int,
            "branches": int,
            "covered_branches": int,
            "coverage_percent": float | null,
            "uncovered_conditions": [[kind, id, line, col, end_line, end_col], ...]
        },
        ...
    ]
}
"""

from collections.abc import Mapping
from typing import Any

from coverplane.report.models import BranchReport


def _percent(covered: int, total: int) -> float | None:
    if total == 0:
        return None
    return round(covered / total * 100.0, 2)


def compute_file_stats(reports: Mapping[str, BranchReport]) -> list[dict[str, Any]]:
    """Per-file branch statistics, sorted by path."""
    file_stats = []
    for path in sorted(reports):
        report = reports[path]
        uncovered = [
            condition.as_list()
            for condition, branches in report.items()
            if any(hits == 0 for hits in branches.values())
        ]
        file_stats.append(
            {
                "path": path,
                "conditions": len(report),
                "branches": report.branch_count,
                "covered_branches": report.covered_branch_count,
                "coverage_percent": _percent(report.covered_branch_count, report.branch_count),
                "uncovered_conditions": uncovered,
            }
        )
    return file_stats


def build_summary(
    reports: Mapping[str, BranchReport] | BranchReport,
    *,
    include_files: bool = True,
) -> dict[str, Any]:
    """Build a structured branch coverage summary.

    Args:
        reports: Reports keyed by unit path, or a single report.
        include_files: Whether to include per-file details.

    Returns:
        Structured dict suitable for JSON serialization.
    """
    if isinstance(reports, BranchReport):
        reports = {"<unit>": reports}

    total_conditions = sum(len(r) for r in reports.values())
    total_branches = sum(r.branch_count for r in reports.values())
    covered_branches = sum(r.covered_branch_count for r in reports.values())

    result: dict[str, Any] = {
        "summary": {
            "total_files": len(reports),
            "total_conditions": total_conditions,
            "total_branches": total_branches,
            "covered_branches": covered_branches,
            "branch_coverage_percent": _percent(covered_branches, total_branches),
        }
    }
    if include_files:
        result["files"] = compute_file_stats(reports)
    return result


def build_text_summary(reports: Mapping[str, BranchReport]) -> str:
    """One-line summary for console output."""
    total = sum(r.branch_count for r in reports.values())
    if total == 0:
        return "No branches"
    covered = sum(r.covered_branch_count for r in reports.values())
    percent = covered / total * 100.0
    return f"Branch coverage: {percent:.1f}% ({covered}/{total} branches)"
