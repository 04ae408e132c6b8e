"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from schemas.requests import AnalysisOptions
from schemas.responses import AnalysisResult

console = Console()

_TEXT_PREVIEW = 40


def load_options_payload(
    options: str | None,
    options_file: Path | None,
    set_values: list[str] | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {}

    if options:
        payload.update(_parse_json_string(options))

    if options_file:
        payload.update(load_mapping_file(options_file))

    if set_values:
        payload.update(_parse_set_values(set_values))

    return payload


def build_options(payload: dict[str, Any]) -> AnalysisOptions:
    try:
        return AnalysisOptions.model_validate(payload)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def parse_value(value: str) -> Any:
    if value == "":
        return ""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def load_mapping_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML file that must hold an object."""
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    else:
        data = _parse_json_string(text)
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a JSON/YAML object.")
    return data


def load_document_payload(path: Path) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Return ``(document, metadata)`` from a document file.

    The file holds either the document tree itself or an object with
    ``document`` and optional ``metadata`` keys.
    """
    data = load_mapping_file(path)
    if "document" in data:
        document = data["document"]
        metadata = data.get("metadata")
    else:
        document = data
        metadata = None
    if not isinstance(document, dict):
        raise typer.BadParameter(f"{path}: 'document' must be an object.")
    if metadata is not None and not isinstance(metadata, dict):
        raise typer.BadParameter(f"{path}: 'metadata' must be an object.")
    return document, metadata


def preview(text: str, limit: int = _TEXT_PREVIEW) -> str:
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 3] + "..."


def render_result(result: AnalysisResult) -> None:
    table = Table(title=f"Suggestions ({len(result.suggestions)})", show_lines=False)
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Source")
    table.add_column("Text")
    table.add_column("Fix")
    table.add_column("Message")
    for suggestion in result.suggestions:
        table.add_row(
            suggestion.category,
            suggestion.severity,
            suggestion.source,
            preview(suggestion.original_text) if suggestion.original_text else "(document)",
            preview(suggestion.primary_fix or ""),
            suggestion.message,
        )
    console.print(table)

    metrics = result.metrics
    if metrics is not None:
        console.print(
            f"Words: {metrics.word_count}  Sentences: {metrics.sentence_count}  "
            f"Flesch: {metrics.flesch_reading_ease:.1f}  "
            f"Reading time: {metrics.reading_time_minutes:.1f} min"
        )
    if result.ai_skipped:
        console.print("[yellow]AI tiers skipped (no user id or daily limit reached).[/yellow]")
    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")


def _parse_json_string(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("Expected a JSON object.")
    return data


def _parse_set_values(items: list[str]) -> dict[str, Any]:
    parsed: dict[str, Any] = {}
    for item in items:
        if "=" not in item:
            raise typer.BadParameter("--set requires key=value syntax.")
        key, raw_value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter("--set requires a non-empty key.")
        parsed[key] = parse_value(raw_value.strip())
    return parsed
