import os

from tagsmith.config import settings


def test_project_dotenv_overrides_environment(tmp_path, monkeypatch) -> None:
    project_dir = tmp_path / "project"
    project_env = project_dir / ".env"

    project_dir.mkdir()
    project_env.write_text("TAGSMITH_PORT=9001\n", encoding="utf-8")

    monkeypatch.chdir(project_dir)
    monkeypatch.setenv("TAGSMITH_PORT", "7000")

    settings._load_dotenv()
    settings.get_settings.cache_clear()

    assert os.getenv("TAGSMITH_PORT") == "9001"
    assert settings.get_settings().port == 9001
    settings.get_settings.cache_clear()
