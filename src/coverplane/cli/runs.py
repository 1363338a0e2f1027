"""cvp runs command - show per-node runs before and after demotion."""

import json
from pathlib import Path

import click

from coverplane.cli.utils import INPUT_PATH, derive_unit, get_config, read_counters
from coverplane.tree.models import SourceRange


def _format_range(node_range: SourceRange | None) -> str:
    if node_range is None:
        return "-"
    start_line, start_column, end_line, end_column = node_range.as_tuple()
    return f"{start_line}:{start_column}-{end_line}:{end_column}"


@click.command()
@click.argument("tree", type=INPUT_PATH)
@click.option(
    "--counters", "counters_path", required=True, type=INPUT_PATH, help="Counter snapshot"
)
@click.option("--demoted-only", is_flag=True, help="Only list nodes whose runs were demoted")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def runs_command(
    ctx: click.Context, tree: Path, counters_path: Path, demoted_only: bool, as_json: bool
) -> None:
    """Show raw and reported runs of every node in TREE.

    Reported runs differ from raw runs where a branching construct was
    demoted because one of its branches never ran.
    """
    verify = get_config(ctx).report.verify_flow
    document, derivation = derive_unit(tree, read_counters(counters_path), verify=verify)

    rows = []
    for index in document.tree.walk():
        raw = derivation.raw_runs[index]
        runs = derivation.runs[index]
        if demoted_only and raw == runs:
            continue
        node = document.tree.node(index)
        rows.append(
            {
                "node": index,
                "kind": node.kind.value,
                "range": _format_range(node.range),
                "raw_runs": raw,
                "runs": runs,
            }
        )

    if as_json:
        click.echo(json.dumps({"path": document.path, "nodes": rows}))
        return

    click.echo(f"Unit: {document.path}")
    for row in rows:
        marker = "  (demoted)" if row["raw_runs"] != row["runs"] else ""
        click.echo(
            f"{row['node']:>5}  {row['kind']:<22} {row['range']:<16} "
            f"raw={row['raw_runs']:<6} runs={row['runs']}{marker}"
        )
