"""Serialization of branch reports."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import yaml

from coverplane.config.models import ReportFormat
from coverplane.core.errors import ConfigError
from coverplane.report.models import BranchReport
from coverplane.report.summary import build_summary


def build_payload(
    reports: Mapping[str, BranchReport], *, include_summary: bool = False
) -> dict[str, Any]:
    """Per-unit payloads, in the order the units were given."""
    payload: dict[str, Any] = {
        "files": [
            {"path": path, "conditions": report.to_payload()} for path, report in reports.items()
        ]
    }
    if include_summary:
        payload["summary"] = build_summary(reports, include_files=False)["summary"]
    return payload


def render(payload: Any, fmt: ReportFormat = "json", *, indent: int = 2) -> str:
    if fmt == "json":
        return json.dumps(payload, indent=indent or None) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(payload, sort_keys=False, indent=max(indent, 2))
    raise ConfigError.invalid_value("report.format", fmt, "expected 'json' or 'yaml'")
