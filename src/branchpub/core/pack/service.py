"""
Pack step: run the external bundling engine and write its output files.

For an entry point ``mod.ts`` and output folder ``dist`` this writes:
- ``dist/mod.js``: generated source with a types reference header
- ``dist/mod.d.ts``: declarations
- ``dist/mod.ts``: a typed shim re-exporting mod.js

Any diagnostic fails the step before a single file is written, so a
broken build never reaches the publish branch.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from branchpub.core.pack.models import (
    BundleOutput,
    BundleRequest,
    Diagnostic,
    EngineResponse,
    PackResult,
)

logger = logging.getLogger(__name__)

DiagnosticHandler = Callable[[Diagnostic], None]


class BundleEngineError(Exception):
    """The engine could not be run or returned something unusable."""

    pass


class BundleFailedError(Exception):
    """The engine reported one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]):
        self.diagnostics = diagnostics
        count = len(diagnostics)
        super().__init__(f"Failed. Had {count} diagnostic{'s' if count != 1 else ''}.")


class BundleEngine(Protocol):
    """External bundler: entry points in, generated source out."""

    def bundle(
        self, request: BundleRequest, on_diagnostic: DiagnosticHandler
    ) -> BundleOutput | None: ...


class SubprocessBundleEngine:
    """
    Bundle engine backed by an external command.

    The request is written to the command's stdin as JSON; the command
    answers on stdout with ``{"output": {...} | null, "diagnostics": [...]}``.
    """

    def __init__(self, command: list[str], timeout: int = 600) -> None:
        if not command:
            raise ValueError("command must not be empty")
        self.command = command
        self.timeout = timeout

    def bundle(
        self, request: BundleRequest, on_diagnostic: DiagnosticHandler
    ) -> BundleOutput | None:
        payload = request.model_dump_json(by_alias=True, exclude_none=True)
        logger.debug("Running bundle engine: %s", " ".join(self.command))

        try:
            result = subprocess.run(
                self.command,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise BundleEngineError(f"Bundle engine timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise BundleEngineError(f"Bundle engine not found: {self.command[0]}") from e

        try:
            response = EngineResponse.model_validate_json(result.stdout)
        except (ValidationError, json.JSONDecodeError) as e:
            stderr = (result.stderr or "").strip()
            raise BundleEngineError(
                f"Bundle engine exited with {result.returncode} and invalid output"
                + (f": {stderr}" if stderr else "")
            ) from e

        for diagnostic in response.diagnostics:
            on_diagnostic(diagnostic)

        if result.returncode != 0 and not response.diagnostics:
            raise BundleEngineError(f"Bundle engine exited with {result.returncode}")

        return response.output


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default diagnostic handler."""
    logger.error(diagnostic.format())


def shim_source(base_name: str, has_default_export: bool) -> str:
    """TypeScript module re-exporting the generated JS with its declarations."""
    text = (
        f'// @deno-types="./{base_name}.d.ts"\n'
        f'export * from "./{base_name}.js";\n'
    )
    if has_default_export:
        text += f'// @deno-types="./{base_name}.d.ts"\n'
        text += f'import defaultExport from "./{base_name}.js";\n'
        text += "export default defaultExport;"
    return text


def write_outputs(output: BundleOutput, entry_point: Path, output_folder: Path) -> PackResult:
    """Write the js, shim and declaration files for a bundled entry point."""
    base_name = entry_point.stem
    output_folder = output_folder.resolve()
    output_folder.mkdir(parents=True, exist_ok=True)

    js_path = output_folder / f"{base_name}.js"
    ts_path = output_folder / f"{base_name}.ts"
    dts_path = output_folder / f"{base_name}.d.ts"

    js_path.write_text(f'/// <reference types="./{base_name}.d.ts" />\n{output.js}')
    ts_path.write_text(shim_source(base_name, output.has_default_export))
    # the engine glues a comment's closing marker to the next declaration
    dts_path.write_text(output.dts.replace("*/ ", "*/\n"))

    logger.info("Wrote %s, %s and %s", js_path.name, ts_path.name, dts_path.name)
    return PackResult(
        js_path=js_path,
        ts_path=ts_path,
        dts_path=dts_path,
        has_default_export=output.has_default_export,
    )


def pack(
    engine: BundleEngine,
    entry_point: Path,
    output_folder: Path,
    *,
    import_map: Path | None = None,
    on_diagnostic: DiagnosticHandler | None = None,
) -> PackResult:
    """
    Bundle an entry point and write the output files.

    Args:
        engine: The bundling engine
        entry_point: Path to the module to bundle
        output_folder: Directory the output files are written to
        import_map: Optional import map (e.g. deno.json) for resolution
        on_diagnostic: Called for each diagnostic (logs by default)

    Returns:
        PackResult with the written paths

    Raises:
        BundleFailedError: If the engine reported any diagnostic
        BundleEngineError: If the engine produced no output
    """
    request = BundleRequest(
        entry_points=[entry_point.resolve().as_uri()],
        import_map=import_map.resolve().as_uri() if import_map is not None else None,
    )

    handler = on_diagnostic or log_diagnostic
    diagnostics: list[Diagnostic] = []

    def collect(diagnostic: Diagnostic) -> None:
        diagnostics.append(diagnostic)
        handler(diagnostic)

    output = engine.bundle(request, collect)

    if diagnostics:
        raise BundleFailedError(diagnostics)
    if output is None:
        raise BundleEngineError("Bundle engine returned no output")

    return write_outputs(output, entry_point, output_folder)
