"""Configuration inspection commands."""

from __future__ import annotations

from typing import Any

import typer

from cli.common import emit_json
from core.config import Settings, get_settings
from schemas.requests import AnalysisOptions


app = typer.Typer(
    help="Inspect the effective configuration",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("show", help="Show the effective settings")
def show_config(
    json_out: bool = typer.Option(True, "--json/--no-json", help="Print JSON"),
) -> None:
    payload = get_settings().model_dump()
    if json_out:
        emit_json(payload)
        return
    for key, value in payload.items():
        typer.echo(f"{key}={value}")


@app.command("diff", help="Show settings that differ from the defaults")
def diff_config() -> None:
    defaults = _settings_defaults()
    diff: dict[str, dict[str, Any]] = {}
    for key, value in get_settings().model_dump().items():
        default = defaults.get(key)
        if value != default:
            diff[key] = {"value": value, "default": default}
    emit_json(diff)


@app.command("options", help="Show the per-run AnalysisOptions schema")
def list_run_options() -> None:
    emit_json(AnalysisOptions.model_json_schema())


@app.command("analyzers", help="List registered analyzers per tier")
def list_analyzers() -> None:
    from services.analysis_runner import get_registry

    emit_json(get_registry().names())


def _settings_defaults() -> dict[str, Any]:
    return {name: field.default for name, field in Settings.model_fields.items()}


__all__ = ["app"]
