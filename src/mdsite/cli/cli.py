"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from mdsite.cli.commands import build_cmd, check_cmd, list_cmd, query_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Static site build pipeline over typed markdown content")


@app.callback()
def main(
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="-v for info, -vv for debug logging")] = 0,
    ):
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


app.command(name="build")(build_cmd)
app.command(name="check")(check_cmd)
app.command(name="query")(query_cmd)
app.command(name="list")(list_cmd)
