"""Result cache commands."""

from __future__ import annotations

import typer

from cli.common import emit_json


app = typer.Typer(
    help="Inspect or clear the result cache",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("stats", help="Show result cache size and hit/miss counters")
def cache_stats() -> None:
    from services.analysis_runner import cache_stats as current_stats

    emit_json(current_stats().model_dump(mode="json"))


@app.command("clear", help="Drop every cached tier result")
def cache_clear() -> None:
    from services.analysis_runner import clear_cache

    emit_json({"removed": clear_cache()})


@app.command("prune", help="Drop expired cache entries")
def cache_prune() -> None:
    from services.analysis_runner import get_result_cache

    emit_json({"removed": get_result_cache().prune()})


__all__ = ["app"]
