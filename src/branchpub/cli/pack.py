"""
branchpub CLI - Pack command.

Run the external bundling engine on an entry point and write the
generated module, shim and declaration files.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Annotated

import typer

from branchpub.cli.errors import ExitCode, console, print_error
from branchpub.core.pack import (
    BundleEngineError,
    BundleFailedError,
    Diagnostic,
    SubprocessBundleEngine,
    pack,
)


def _print_diagnostic(diagnostic: Diagnostic) -> None:
    console.print(f"[red]{diagnostic.format()}[/red]", highlight=False)


def pack_command(
    entry_point: Annotated[
        Path,
        typer.Argument(help="Module to bundle (e.g. mod.ts)"),
    ],
    output_folder: Annotated[
        Path,
        typer.Argument(help="Folder the output files are written to"),
    ],
    engine: Annotated[
        str,
        typer.Option(
            "--engine",
            envvar="BRANCHPUB_ENGINE",
            help="Bundle engine command; receives the request as JSON on stdin",
        ),
    ],
    import_map: Annotated[
        Path | None,
        typer.Option("--import-map", help="Import map used to resolve specifiers"),
    ] = None,
) -> None:
    """
    Bundle an entry point into a folder.

    Examples:

        branchpub pack mod.ts dist --engine "deno-pack-engine"
        branchpub pack mod.ts dist --engine ./engine --import-map deno.json
    """
    try:
        bundle_engine = SubprocessBundleEngine(shlex.split(engine))
        result = pack(
            bundle_engine,
            entry_point,
            output_folder,
            import_map=import_map,
            on_diagnostic=_print_diagnostic,
        )
    except BundleFailedError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except (BundleEngineError, ValueError) as e:
        print_error(str(e), reason="The bundle engine could not produce output")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Wrote {result.js_path.name} to {result.js_path.parent}")
