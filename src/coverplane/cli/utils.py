"""CLI utilities."""

from pathlib import Path

import click

from coverplane.analysis.pipeline import Derivation, derive
from coverplane.config.models import CoverPlaneConfig
from coverplane.counters.store import CounterStore, load_counters
from coverplane.core.errors import CoverPlaneError
from coverplane.tree.document import TreeDocument, load_tree

INPUT_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)


def get_config(ctx: click.Context) -> CoverPlaneConfig:
    """Config loaded by the `cvp` group, or defaults when a command runs alone."""
    obj = ctx.find_object(dict) or {}
    config = obj.get("config")
    return config if isinstance(config, CoverPlaneConfig) else CoverPlaneConfig()


def derive_unit(
    tree_path: Path, counters: CounterStore, *, verify: bool
) -> tuple[TreeDocument, Derivation]:
    """Load one tree document and derive it.

    Raises:
        click.ClickException: If the tree or the counters are malformed
    """
    try:
        document = load_tree(tree_path)
        return document, derive(document.tree, counters, source=document.source, verify=verify)
    except CoverPlaneError as e:
        raise click.ClickException(f"{tree_path}: {e}") from e


def read_counters(path: Path) -> CounterStore:
    try:
        return load_counters(path)
    except CoverPlaneError as e:
        raise click.ClickException(str(e)) from e
