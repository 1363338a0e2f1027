"""Branch report model, summaries and rendering.

Usage:
    from coverplane.report import build_payload, build_summary, render

    payload = build_payload({"lib/example.rb": derivation.report}, include_summary=True)
    print(render(payload, "yaml"))
"""

from coverplane.report.models import BranchReport, Descriptor
from coverplane.report.render import build_payload, render
from coverplane.report.summary import build_summary, build_text_summary, compute_file_stats

__all__ = [
    "BranchReport",
    "Descriptor",
    "build_payload",
    "build_summary",
    "build_text_summary",
    "compute_file_stats",
    "render",
]
