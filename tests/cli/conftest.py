"""Shared fixtures for cvp command tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


def if_then_document(path: str = "lib/example.rb") -> dict[str, Any]:
    return {
        "path": path,
        "source": "if x then a end\n",
        "root": {
            "kind": "root",
            "trackers": {"entered": "t0"},
            "body": {
                "kind": "conditional",
                "range": [1, 0, 1, 15],
                "trackers": {"truthy": "t1"},
                "locs": {"begin": [1, 5, 1, 9], "end": [1, 12, 1, 15]},
                "condition": {"kind": "statement", "range": [1, 3, 1, 4]},
                "true_branch": {"kind": "statement", "range": [1, 10, 1, 11]},
            },
        },
    }


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory, so no repo config is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def tree_file(workdir: Path) -> Path:
    path = workdir / "example.tree.json"
    path.write_text(json.dumps(if_then_document()))
    return path


@pytest.fixture
def counters_file(workdir: Path) -> Path:
    path = workdir / "hits.json"
    path.write_text(json.dumps({"t0": 1, "t1": 1}))
    return path
