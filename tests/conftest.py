from pathlib import Path
from typing import Callable, Dict

import pytest
from typer.testing import CliRunner

from tagsmith.config import BuildConfig
from tagsmith.engine import BuildContext


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _write_files(root: Path, files: Dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def write_files() -> Callable[[Path, Dict[str, str]], None]:
    return _write_files


@pytest.fixture
def components_dir(tmp_path: Path) -> Path:
    path = tmp_path / "components"
    path.mkdir()
    return path


@pytest.fixture
def make_context(components_dir: Path) -> Callable[..., BuildContext]:
    """
    Write component templates and return a loaded BuildContext.
    """

    def _make(templates: Dict[str, str], **kwargs) -> BuildContext:
        _write_files(components_dir, templates)
        context = BuildContext(components_dir, **kwargs)
        context.load_components()
        return context

    return _make


@pytest.fixture
def sample_site(tmp_path: Path, components_dir: Path) -> dict:
    """
    Lay out a small site with components and return metadata.
    """
    _write_files(
        components_dir,
        {
            "card.html": '<div class="card">{{title}}</div>',
            "ui/badge.html": "<span>{{label}}</span>",
            "panel.html": '<section><ui/badge label="{{name}}"/></section>',
        },
    )
    source = tmp_path / "site"
    _write_files(
        source,
        {
            "index.html": '<body><card title="Home"/></body>',
            "plain.html": "<html>\n<body><p>Nothing to expand</p><br/></body>\n</html>\n",
            "about/index.html": '<main><panel name="About"/></main>',
            "blog/2024/post.html": '<article><card title="Deep"/></article>',
            "missing.html": '<p><ghost kind="boo"/></p>',
            "style.css": "body { color: red; }\n",
        },
    )
    output = tmp_path / "out"
    config = BuildConfig(source=source, output=output, components=components_dir, workers=2)
    return {"source": source, "output": output, "components": components_dir, "config": config}
