"""cvp report command - derive branch reports."""

from pathlib import Path

import click
import structlog

from coverplane.cli.utils import INPUT_PATH, derive_unit, get_config, read_counters
from coverplane.core.errors import CoverPlaneError
from coverplane.core.logging import clear_run_id, set_run_id
from coverplane.report.models import BranchReport
from coverplane.report.render import build_payload, render
from coverplane.report.summary import build_text_summary

logger = structlog.get_logger()


@click.command()
@click.argument("trees", nargs=-1, required=True, type=INPUT_PATH)
@click.option(
    "--counters", "counters_path", required=True, type=INPUT_PATH, help="Counter snapshot"
)
@click.option(
    "--format", "fmt", type=click.Choice(["json", "yaml"]), default=None, help="Output format"
)
@click.option("--summary/--no-summary", default=None, help="Append branch totals")
@click.option(
    "--verify/--no-verify",
    default=None,
    help="Fail on inconsistent flow counts (--no-verify logs them instead)",
)
@click.option(
    "-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write to FILE"
)
@click.pass_context
def report_command(
    ctx: click.Context,
    trees: tuple[Path, ...],
    counters_path: Path,
    fmt: str | None,
    summary: bool | None,
    verify: bool | None,
    output: Path | None,
) -> None:
    """Derive the branch report of each TREE document.

    All trees are read against the same counter snapshot. Options left unset
    fall back to the `report` section of the configuration.
    """
    settings = get_config(ctx).report
    fmt = fmt or settings.format
    summary = settings.include_summary if summary is None else summary
    verify = settings.verify_flow if verify is None else verify

    set_run_id()
    try:
        counters = read_counters(counters_path)
        logger.info("report_started", units=len(trees), trackers=len(counters))
        reports: dict[str, BranchReport] = {}
        for tree_path in trees:
            document, derivation = derive_unit(tree_path, counters, verify=verify)
            if document.path in reports:
                raise click.ClickException(
                    f"{tree_path}: unit '{document.path}' was already given by another tree"
                )
            reports[document.path] = derivation.report
        try:
            payload = build_payload(reports, include_summary=summary)
            text = render(payload, fmt, indent=settings.indent)  # type: ignore[arg-type]
        except CoverPlaneError as e:
            raise click.ClickException(str(e)) from e
        logger.info("report_finished", units=len(reports))
    finally:
        clear_run_id()

    if output is None:
        click.echo(text, nl=False)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        click.echo(f"Wrote {len(reports)} report(s) to {output}", err=True)
        click.echo(build_text_summary(reports), err=True)
