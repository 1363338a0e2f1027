"""Tree documents produced by the external parser/instrumenter.

A document is a JSON or YAML mapping::

    path: lib/example.rb
    source: "if x then a end\\n"
    root:
      kind: root
      trackers: {entered: "t0"}
      body:
        kind: conditional
        range: [1, 0, 1, 15]
        trackers: {truthy: "t1"}
        locs: {begin: [1, 5, 1, 9], end: [1, 12, 1, 15]}
        condition: {kind: statement, range: [1, 3, 1, 4]}
        true_branch: {kind: statement, range: [1, 10, 1, 11]}

Every key of a node mapping that is not one of the node attributes below is a
child slot: a mapping for a single child, a list for a list slot, or null.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from coverplane.core.errors import TreeError
from coverplane.tree.builder import TreeBuilder
from coverplane.tree.models import Tree
from coverplane.tree.source import SourceBuffer

_ATTRIBUTES = frozenset(
    {"kind", "range", "trackers", "locs", "style", "operator", "polarity", "post_test"}
)


@dataclass(frozen=True)
class TreeDocument:
    """One compiled unit: its tree plus the source text it was parsed from."""

    path: str
    tree: Tree
    source: SourceBuffer


def tree_from_document(document: Mapping[str, Any]) -> TreeDocument:
    if not isinstance(document, Mapping):
        raise TreeError.invalid_document("top level must be a mapping")
    root = document.get("root")
    if not isinstance(root, Mapping):
        raise TreeError.invalid_document("missing 'root' node")
    source = document.get("source")
    if source is not None and not isinstance(source, str):
        raise TreeError.invalid_document("'source' must be a string")

    builder = TreeBuilder()
    root_index = _add_node(builder, root)
    return TreeDocument(
        path=str(document.get("path", "<unknown>")),
        tree=builder.build(root_index),
        source=SourceBuffer(source),
    )


def _add_node(builder: TreeBuilder, data: Any) -> int:
    if not isinstance(data, Mapping):
        raise TreeError.invalid_document("node must be a mapping", value=str(data))
    if "kind" not in data:
        raise TreeError.invalid_document("node without 'kind'")

    children: dict[str, Any] = {}
    for key, value in data.items():
        if key in _ATTRIBUTES:
            continue
        if value is None:
            children[key] = None
        elif isinstance(value, list):
            children[key] = [_add_node(builder, item) for item in value]
        else:
            children[key] = _add_node(builder, value)

    for key in ("trackers", "locs"):
        if data.get(key) is not None and not isinstance(data[key], Mapping):
            raise TreeError.invalid_document(f"'{key}' must be a mapping")
    post_test = data.get("post_test", False)
    if not isinstance(post_test, bool):
        raise TreeError.invalid_document("'post_test' must be a boolean", value=str(post_test))

    return builder.add(
        data["kind"],
        range=data.get("range"),
        trackers=data.get("trackers"),
        locs=data.get("locs"),
        style=data.get("style"),
        operator=data.get("operator"),
        polarity=data.get("polarity"),
        post_test=post_test,
        **children,
    )


def load_tree(path: Path) -> TreeDocument:
    """Read a tree document from a `.json` or YAML file."""
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw) if path.suffix == ".json" else yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise TreeError.invalid_document(f"cannot parse {path}: {e}", path=str(path)) from e
    if isinstance(data, Mapping) and "path" not in data:
        data = {**data, "path": str(path)}
    return tree_from_document(data)
