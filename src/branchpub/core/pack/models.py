"""
Data models for the bundling engine contract.

The engine itself is external; these models pin down what goes in and
what comes back so the rest of the build step can be typed and tested.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class LineAndColumn(BaseModel):
    """Display position of a diagnostic (1-based, as rendered by the engine)."""

    model_config = ConfigDict(populate_by_name=True)

    line_number: str = Field(alias="lineNumber")
    column_number: str = Field(alias="columnNumber")


class Diagnostic(BaseModel):
    """A problem the engine found while bundling."""

    model_config = ConfigDict(populate_by_name=True)

    specifier: str
    message: str
    line_and_column: LineAndColumn | None = Field(default=None, alias="lineAndColumn")

    def format(self) -> str:
        """Render as ``ERROR: <message> -- <specifier>[:line:col]``."""
        location = self.specifier
        if self.line_and_column is not None:
            location += (
                f":{self.line_and_column.line_number}:{self.line_and_column.column_number}"
            )
        return f"ERROR: {self.message} -- {location}"


class BundleRequest(BaseModel):
    """Input to the engine: entry point URLs and an optional import map URL."""

    model_config = ConfigDict(populate_by_name=True)

    entry_points: list[str] = Field(alias="entryPoints", min_length=1)
    import_map: str | None = Field(default=None, alias="importMap")


class BundleOutput(BaseModel):
    """What the engine returns for a successful bundle."""

    model_config = ConfigDict(populate_by_name=True)

    js: str = Field(description="Generated JavaScript source")
    dts: str = Field(description="Declaration file text")
    import_map: str | None = Field(default=None, alias="importMap")
    has_default_export: bool = Field(default=False, alias="hasDefaultExport")


class EngineResponse(BaseModel):
    """Envelope a subprocess engine writes to stdout."""

    output: BundleOutput | None = None
    diagnostics: list[Diagnostic] = Field(default_factory=list)


class PackResult(BaseModel):
    """Files written by a successful pack."""

    js_path: Path
    ts_path: Path
    dts_path: Path
    has_default_export: bool = False
