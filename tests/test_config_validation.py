from pathlib import Path
import textwrap

import pytest

from tagsmith.config import BuildConfig, ConfigError, load_config


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "tagsmith.toml"
    path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return path


def test_rejects_unknown_keys(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        source = "site"
        unexpected = "nope"
        """,
    )

    with pytest.raises(ConfigError) as exc:
        load_config(path)

    assert "extra" in str(exc.value).lower()


def test_rejects_empty_extensions(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        extensions = []
        """,
    )

    with pytest.raises(ConfigError) as exc:
        load_config(path)

    assert "extensions" in str(exc.value)


def test_rejects_negative_depth(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "depth = -1")

    with pytest.raises(ConfigError) as exc:
        load_config(path)

    assert "depth" in str(exc.value)


def test_invalid_toml_and_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.toml")

    path = _write_config(tmp_path, "source = ")
    with pytest.raises(ConfigError) as exc:
        load_config(path)

    assert "Invalid TOML" in str(exc.value)


def test_relative_paths_resolve_against_config_file(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        source = "site"
        output = "public"
        components = "parts"
        extensions = ["HTML", ".htm"]

        [variables]
        title = "Docs"
        sections = ["intro", "usage"]
        """,
    )

    config = load_config(path)

    assert config.source_dir() == (tmp_path / "site").resolve()
    assert config.output_dir() == (tmp_path / "public").resolve()
    assert config.components_dir() == (tmp_path / "parts").resolve()
    assert config.extensions == [".html", ".htm"]
    assert config.variables == {"title": "Docs", "sections": ["intro", "usage"]}


def test_default_output_uses_source_name(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = BuildConfig(source=tmp_path / "pages")

    assert config.output_dir() == Path.cwd() / "pages_processed"
    assert config.trace_markers is True
    assert config.port == 8000
