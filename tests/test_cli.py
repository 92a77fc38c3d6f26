import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tagsmith import cli


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TAGSMITH_LOG_LEVEL", raising=False)
    cli.get_settings.cache_clear()


def test_help_exits_zero(runner: CliRunner) -> None:
    result = runner.invoke(cli.app, ["--help"])

    assert result.exit_code == 0
    assert "Usage" in result.output
    assert "--depth" in result.output


def test_version_flag(runner: CliRunner) -> None:
    result = runner.invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert "tagsmith" in result.output


def test_missing_source_directory_fails(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(cli.app, [str(tmp_path / "nowhere")])

    assert result.exit_code != 0


def test_missing_source_argument_fails(runner: CliRunner) -> None:
    result = runner.invoke(cli.app, [])

    assert result.exit_code != 0


def test_build_writes_output_tree(runner: CliRunner, sample_site: dict) -> None:
    result = runner.invoke(
        cli.app,
        [
            str(sample_site["source"]),
            "--out",
            str(sample_site["output"]),
            "--components",
            str(sample_site["components"]),
            "--depth",
            "1",
            "--no-trace-markers",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Build Summary" in result.output
    assert "Unresolved Components" in result.output
    index = (sample_site["output"] / "index.html").read_text(encoding="utf-8")
    assert index == '<body><div class="card">Home</div></body>'
    post = (sample_site["output"] / "blog" / "2024" / "post.html").read_text(encoding="utf-8")
    assert post == '<article><card title="Deep"/></article>'


def test_names_option_is_comma_separated(runner: CliRunner, sample_site: dict) -> None:
    result = runner.invoke(
        cli.app,
        [
            str(sample_site["source"]),
            "--out",
            str(sample_site["output"]),
            "--components",
            str(sample_site["components"]),
            "--names",
            "plain, missing",
        ],
    )

    assert result.exit_code == 0, result.output
    index = (sample_site["output"] / "index.html").read_text(encoding="utf-8")
    assert index == '<body><card title="Home"/></body>'


def test_missing_components_directory_exits_one(runner: CliRunner, sample_site: dict, tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        [
            str(sample_site["source"]),
            "--out",
            str(sample_site["output"]),
            "--components",
            str(tmp_path / "none"),
        ],
    )

    assert result.exit_code == 1
    assert "Error" in result.output


def test_default_output_is_next_to_working_directory(runner: CliRunner, sample_site: dict, tmp_path: Path) -> None:
    result = runner.invoke(cli.app, [str(sample_site["source"]), "--components", str(sample_site["components"])])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "site_processed" / "index.html").exists()


def test_config_file_supplies_defaults(runner: CliRunner, sample_site: dict, tmp_path: Path) -> None:
    (sample_site["source"] / "vars.html").write_text("<title>{{site_name}}</title>", encoding="utf-8")
    config_path = tmp_path / "tagsmith.toml"
    config_path.write_text(
        textwrap.dedent(
            """
            components = "components"
            output = "public"
            trace_markers = false

            [variables]
            site_name = "Field Notes"
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )

    result = runner.invoke(cli.app, [str(sample_site["source"])])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "public" / "vars.html").read_text(encoding="utf-8") == "<title>Field Notes</title>"


def test_invalid_config_exits_one(runner: CliRunner, sample_site: dict, tmp_path: Path) -> None:
    config_path = tmp_path / "broken.toml"
    config_path.write_text('surprise = "yes"\n', encoding="utf-8")

    result = runner.invoke(cli.app, [str(sample_site["source"]), "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
