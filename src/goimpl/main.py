#!/usr/bin/env python3
"""
goimpl
------
Generates method stubs so that a Go type implements an interface:
- finds the interface's methods, through any depth of embedding
- compares them with the type's method set (value and pointer receivers)
- rewrites package qualifiers in the missing signatures for the type's file
- appends `panic("unimplemented")` stubs and any imports they need

USAGE EXAMPLES
--------------
goimpl implement --iface io.Writer --impl example.com/app/goer.Goer
goimpl implement --iface io.ReadCloser --impl example.com/app/goer.Goer -w
goimpl list                    # interfaces in the current module and its dependencies
goimpl list --path io/...      # interfaces under a path pattern

DEPENDENCIES
------------
    pip install tree-sitter tree-sitter-go typer
The standard library is read from GOROOT (or `go env GOROOT`), modules from
GOMODCACHE.
"""
import logging
from pathlib import Path
from typing import Optional

import typer

from goimpl.config import Settings
from goimpl.errors import ImplError
from goimpl.implement import implement, list_workspace_interfaces
from goimpl.outputs.output import interfaces_to_json, summary, to_json

log = logging.getLogger(__name__)

app = typer.Typer(
    name="goimpl",
    help="Generate Go method stubs for the interface methods a type is missing.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolution details to stderr."),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(name="implement", help="Print (or write) the type's file with the missing methods added.")
def implement_command(
    iface: str = typer.Option(..., "--iface", help="Interface: path.to/my/pkg.MyInterface"),
    impl: str = typer.Option(..., "--impl", help="Implementing type: path.to/my/pkg.MyType"),
    write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file instead of printing it."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    workdir: Optional[Path] = typer.Option(None, "--workdir", help="Where to look for go.mod."),
):
    settings = Settings.from_env(workdir)
    try:
        result = implement(settings, iface, impl, write_back=write)
    except ImplError as e:
        log.debug("implement failed", exc_info=True)
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)

    if result is None:
        if as_json:
            typer.echo(to_json(None))
        return
    if write:
        typer.echo(summary(result), err=True)
    elif as_json:
        typer.echo(to_json(result))
    else:
        typer.echo(result.file_content, nl=False)
    if result.error is not None:
        typer.echo(f"error: {result.error}", err=True)
        raise typer.Exit(code=1)


@app.command(name="list", help="List the interfaces available to implement.")
def list_command(
    path: Optional[str] = typer.Option(None, "--path", help="Package pattern, e.g. io/... (default: this module)"),
    as_json: bool = typer.Option(False, "--json", help="Print the names as a JSON array."),
    workdir: Optional[Path] = typer.Option(None, "--workdir", help="Where to look for go.mod."),
):
    settings = Settings.from_env(workdir)
    try:
        names = list_workspace_interfaces(settings, path)
    except ImplError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)
    if as_json:
        typer.echo(interfaces_to_json(names))
    else:
        for name in names:
            typer.echo(name)


if __name__ == "__main__":
    app()
