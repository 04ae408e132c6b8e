from __future__ import annotations

import json

from typer.testing import CliRunner

from cli.app import app
from cli.commands import cache as cache_commands
from cli.commands import config as config_commands
from cli.common import load_options_payload, preview
from wordwise import __version__

runner = CliRunner()


def _write_doc(tmp_path, make_doc, *paragraphs):
    path = tmp_path / "doc.json"
    path.write_text(json.dumps({"document": make_doc(*paragraphs)}), encoding="utf-8")
    return path


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_analyze_prints_json(tmp_path, make_doc) -> None:
    path = _write_doc(tmp_path, make_doc, "Teh cat sat.")

    result = runner.invoke(app, ["analyze", str(path), "--json", "--fast"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["state"] == "fast_ready"
    assert [s["id"] for s in payload["suggestions"]] == ["spelling/common-typo-teh-0"]


def test_analyze_renders_table(tmp_path, make_doc) -> None:
    path = _write_doc(tmp_path, make_doc, "Teh cat sat.")

    result = runner.invoke(app, ["analyze", str(path)])

    assert result.exit_code == 0, result.output


def test_analyze_rejects_bad_options(tmp_path, make_doc) -> None:
    path = _write_doc(tmp_path, make_doc, "Body.")

    result = runner.invoke(app, ["analyze", str(path), "--set", "enable_seo=true"])

    assert result.exit_code != 0


def test_fix_by_suggestion_id(tmp_path, make_doc) -> None:
    path = _write_doc(tmp_path, make_doc, "Teh cat sat.")
    output = tmp_path / "fixed.json"

    result = runner.invoke(
        app,
        [
            "fix",
            str(path),
            "--suggestion-id",
            "spelling/common-typo-teh-0",
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    fixed = json.loads(output.read_text(encoding="utf-8"))
    assert fixed["content"][0]["content"][0]["text"] == "The cat sat."


def test_fix_requires_exactly_one_source(tmp_path, make_doc) -> None:
    path = _write_doc(tmp_path, make_doc, "Teh cat sat.")

    result = runner.invoke(app, ["fix", str(path)])

    assert result.exit_code != 0


def test_cache_and_config_commands() -> None:
    stats = runner.invoke(cache_commands.app, ["stats"])
    analyzers = runner.invoke(config_commands.app, ["analyzers"])

    assert stats.exit_code == 0
    assert json.loads(stats.output)["size"] == 0
    assert analyzers.exit_code == 0
    assert "typos" in json.loads(analyzers.output)["fast"]


def test_option_helpers(tmp_path) -> None:
    options_file = tmp_path / "options.yaml"
    options_file.write_text("enable_deep: false\n", encoding="utf-8")

    payload = load_options_payload('{"enable_ai": true}', options_file, ["use_cache=false"])

    assert payload == {"enable_ai": True, "enable_deep": False, "use_cache": False}
    assert preview("a   b\nc") == "a b c"
    assert preview("x" * 50, limit=10) == "xxxxxxx..."
