import typer

from debuggate.common import bus, needle
from debuggate.needle import L
from .rendering import CliRenderer

from .commands.check import check_command

app = typer.Typer(
    name="debuggate",
    help=needle.get(L.cli.app.description),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help=needle.get(L.cli.option.verbose.help)
    ),
):
    # The CLI is the composition root: it decides which renderer the bus uses.
    cli_renderer = CliRenderer(verbose=verbose)
    bus.set_renderer(cli_renderer)


app.command(name="check", help=needle.get(L.cli.command.check.help))(check_command)


if __name__ == "__main__":
    app()
