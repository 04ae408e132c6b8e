"""Typer CLI entrypoint for WordWise analysis runs."""

from __future__ import annotations

import os
import shlex
import sys
from importlib import import_module
from pathlib import Path

import typer

from wordwise import __version__

_SUBCOMMAND_SPECS: list[tuple[str, str, str]] = [
    ("config", "cli.commands.config", "Inspect the effective configuration"),
    ("cache", "cli.commands.cache", "Inspect or clear the result cache"),
]
_SUBCOMMAND_NAMES = {name for name, _, _ in _SUBCOMMAND_SPECS}
_SUBCOMMANDS_REGISTERED = False

app = typer.Typer(
    help="WordWise command line tools\n\nAnalyze rich-text documents and apply suggested fixes.\n",
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    add_completion=True,
)


@app.callback()
def root(
    ctx: typer.Context,
    version_flag: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Show the installed version and exit.",
    ),
) -> None:
    from core.config import get_settings
    from core.log import configure_logging

    if version_flag:
        typer.echo(__version__)
        raise typer.Exit()
    configure_logging(get_settings().log_level)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command(help="Analyze a document and print its suggestions")
def analyze(
    document_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        metavar="DOCUMENT",
        help="JSON/YAML document tree, or an object with document and metadata keys",
    ),
    metadata_file: Path | None = typer.Option(
        None,
        "--metadata-file",
        help="JSON/YAML file with title, target_keyword, meta_description, keywords",
    ),
    options: str | None = typer.Option(
        None,
        "--options",
        help="AnalysisOptions as a JSON string",
    ),
    options_file: Path | None = typer.Option(
        None,
        "--options-file",
        help="JSON/YAML file holding AnalysisOptions",
    ),
    set_values: list[str] | None = typer.Option(
        None,
        "--set",
        help="Override a single option with key=value; repeatable",
    ),
    user_id: str | None = typer.Option(
        None,
        "--user-id",
        help="User id for AI quota accounting (AI tiers are skipped without it)",
    ),
    fast: bool = typer.Option(
        False,
        "--fast",
        help="Run only the fast tier",
    ),
    json_out: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON",
    ),
) -> None:
    import asyncio

    from pydantic import ValidationError

    from cli.common import (
        build_options,
        emit_json,
        load_document_payload,
        load_mapping_file,
        load_options_payload,
        render_result,
    )
    from engine.errors import InvalidInputError
    from schemas.requests import AnalysisInput
    from services.analysis_runner import run_analysis, run_fast_analysis

    document, metadata = load_document_payload(document_path)
    if metadata_file is not None:
        metadata = load_mapping_file(metadata_file)
    options_obj = build_options(load_options_payload(options, options_file, set_values))

    try:
        input_obj = AnalysisInput(
            document=document,
            metadata=metadata,
            options=options_obj,
            user_id=user_id,
        )
        if fast:
            result = run_fast_analysis(input_obj)
        else:
            result = asyncio.run(run_analysis(input_obj))
    except (InvalidInputError, ValidationError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    if json_out:
        emit_json(result.model_dump(mode="json", by_alias=True))
        return
    render_result(result)


@app.command(help="Apply a suggestion's fix to a document")
def fix(
    document_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        metavar="DOCUMENT",
    ),
    suggestion_file: Path | None = typer.Option(
        None,
        "--suggestion-file",
        help="JSON file holding a suggestion from a previous analysis",
    ),
    suggestion_id: str | None = typer.Option(
        None,
        "--suggestion-id",
        help="Analyze the document first and fix the suggestion with this id",
    ),
    replacement: str | None = typer.Option(
        None,
        "--replacement",
        help="Replacement text (defaults to the suggestion's primary fix)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        help="Write the fixed document to this file instead of stdout",
    ),
) -> None:
    import json

    from pydantic import ValidationError

    from cli.common import console, emit_json, load_document_payload, load_mapping_file
    from editor.fix import FixError, TextNotFoundError
    from schemas.internal.suggestions import Suggestion
    from schemas.requests import FixRequest

    if (suggestion_file is None) == (suggestion_id is None):
        raise typer.BadParameter("Provide exactly one of --suggestion-file or --suggestion-id.")

    document, metadata = load_document_payload(document_path)
    try:
        if suggestion_file is not None:
            suggestion = Suggestion.model_validate(load_mapping_file(suggestion_file))
        else:
            suggestion = _find_suggestion(document, metadata, suggestion_id or "")
        request = FixRequest(document=document, suggestion=suggestion, replacement=replacement)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    from services.analysis_runner import apply_fix_request

    try:
        result = apply_fix_request(request)
    except TextNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    except FixError as exc:
        console.print(f"[red]Fix failed: {exc}[/red]")
        raise typer.Exit(code=1)

    fixed = result.document.model_dump(exclude_none=True)
    if output is None:
        emit_json(fixed)
        return
    output.write_text(json.dumps(fixed, ensure_ascii=False, indent=2), encoding="utf-8")
    console.print(
        f"Replaced [bold]{result.applied_range.plain_start}-{result.applied_range.plain_end}[/bold] "
        f"({result.applied_range.strategy}) and wrote {output}"
    )


def _find_suggestion(document: dict, metadata: dict | None, suggestion_id: str):
    import asyncio

    from schemas.requests import AnalysisInput
    from services.analysis_runner import run_analysis

    result = asyncio.run(
        run_analysis(AnalysisInput(document=document, metadata=metadata))
    )
    for suggestion in result.suggestions:
        if suggestion.id == suggestion_id:
            return suggestion
    raise typer.BadParameter(f"No suggestion with id {suggestion_id!r} in the current analysis.")


def _parse_invoked_subcommand() -> str | None:
    completion_args = os.getenv("_TYPER_COMPLETE_ARGS")
    tokens: list[str]
    if completion_args:
        try:
            tokens = shlex.split(completion_args)
        except ValueError:
            tokens = completion_args.split()
        if tokens:
            tokens = tokens[1:]
    else:
        tokens = sys.argv[1:]

    for token in tokens:
        if token in _SUBCOMMAND_NAMES:
            return token
        if token.startswith("-"):
            continue
        break
    return None


def _register_subcommands() -> None:
    global _SUBCOMMANDS_REGISTERED
    if _SUBCOMMANDS_REGISTERED:
        return

    selected = _parse_invoked_subcommand()
    for name, module_path, help_text in _SUBCOMMAND_SPECS:
        if selected == name:
            module = import_module(module_path)
            app.add_typer(module.app, name=name)
            continue
        app.add_typer(
            typer.Typer(
                help=help_text,
                add_completion=False,
                no_args_is_help=True,
            ),
            name=name,
        )

    _SUBCOMMANDS_REGISTERED = True


def main() -> None:
    _register_subcommands()
    app()


__all__ = ["app", "main"]
