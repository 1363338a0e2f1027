"""CoverPlane CLI - cvp command."""

import click

from coverplane.cli.report import report_command
from coverplane.cli.runs import runs_command
from coverplane.config import load_config
from coverplane.core.errors import CoverPlaneError
from coverplane.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="cvp")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """CoverPlane - branch coverage derivation from instrumented trees."""
    ctx.ensure_object(dict)
    try:
        config = load_config()
    except CoverPlaneError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config.logging.level = "DEBUG"
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    configure_logging(config=config.logging)


cli.add_command(report_command, name="report")
cli.add_command(runs_command, name="runs")


if __name__ == "__main__":
    cli()
