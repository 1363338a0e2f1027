"""Tests for report payloads and rendering."""

from __future__ import annotations

import json

import pytest
import yaml

from coverplane.core.errors import ConfigError
from coverplane.report.models import BranchReport, Descriptor
from coverplane.report.render import build_payload, render


@pytest.fixture
def report() -> BranchReport:
    report = BranchReport()
    report.add(
        Descriptor("if", 1, 1, 0, 1, 15),
        {Descriptor("then", 2, 1, 10, 1, 11): 1, Descriptor("else", 3, 1, 0, 1, 15): 0},
    )
    return report


class TestBuildPayload:
    """Payload structure."""

    def test_payload_descriptors_with_hits(self, report: BranchReport) -> None:
        payload = build_payload({"lib/a.rb": report})

        assert payload == {
            "files": [
                {
                    "path": "lib/a.rb",
                    "conditions": [
                        {
                            "condition": ["if", 1, 1, 0, 1, 15],
                            "branches": [
                                ["then", 2, 1, 10, 1, 11, 1],
                                ["else", 3, 1, 0, 1, 15, 0],
                            ],
                        }
                    ],
                }
            ]
        }

    def test_payload_keeps_unit_order(self, report: BranchReport) -> None:
        payload = build_payload({"z.rb": report, "a.rb": BranchReport()})
        assert [entry["path"] for entry in payload["files"]] == ["z.rb", "a.rb"]

    def test_payload_with_summary(self, report: BranchReport) -> None:
        payload = build_payload({"lib/a.rb": report}, include_summary=True)

        assert payload["summary"]["total_branches"] == 2
        assert payload["summary"]["covered_branches"] == 1


class TestRender:
    """JSON and YAML output."""

    def test_json_parses_back(self, report: BranchReport) -> None:
        payload = build_payload({"lib/a.rb": report})

        text = render(payload, "json")

        assert text.endswith("\n")
        assert json.loads(text) == payload

    def test_zero_indent_single_line(self, report: BranchReport) -> None:
        text = render(build_payload({"lib/a.rb": report}), "json", indent=0)
        assert text.count("\n") == 1

    def test_yaml_keeps_payload_order(self, report: BranchReport) -> None:
        payload = build_payload({"lib/a.rb": report}, include_summary=True)

        text = render(payload, "yaml")

        assert yaml.safe_load(text) == payload
        assert text.index("files:") < text.index("summary:")

    def test_unknown_format_fails(self, report: BranchReport) -> None:
        with pytest.raises(ConfigError, match="report.format"):
            render(build_payload({"lib/a.rb": report}), "xml")  # type: ignore[arg-type]
