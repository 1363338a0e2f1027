"""Decorated AST: arena model, kind schema, builder and document loading."""

from coverplane.tree.builder import TreeBuilder
from coverplane.tree.document import TreeDocument, load_tree, tree_from_document
from coverplane.tree.models import Node, NodeKind, Position, SourceRange, Tree
from coverplane.tree.source import SourceBuffer

__all__ = [
    "Node",
    "NodeKind",
    "Position",
    "SourceBuffer",
    "SourceRange",
    "Tree",
    "TreeBuilder",
    "TreeDocument",
    "load_tree",
    "tree_from_document",
]
