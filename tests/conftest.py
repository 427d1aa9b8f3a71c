"""Pytest configuration and fixtures."""

import json
import os
from pathlib import Path

import pytest

from jinjawax import TemplateEngine, Wax


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    # Remove any JINJAWAX_ env vars that might interfere
    for key in list(os.environ.keys()):
        if key.startswith("JINJAWAX_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a temporary site with partials, helpers, decorators and data."""
    partials = tmp_path / "partials"
    (partials / "layouts").mkdir(parents=True)
    (partials / "greeting.jinja").write_text("Hello, {{ name }}!")
    (partials / "layouts" / "footer.jinja").write_text("Footer {{ year }}")
    (partials / "main page.html").write_text("<main>{{ title }}</main>")
    (partials / "notes.txt").write_text("not a template")

    helpers = tmp_path / "helpers"
    (helpers / "string").mkdir(parents=True)
    (helpers / "upper.py").write_text(
        "def upper(value):\n"
        "    return str(value).upper()\n"
        "\n"
        "exports = upper\n"
    )
    (helpers / "string" / "shout case.py").write_text(
        "exports = lambda value: str(value).upper() + '!'\n"
    )
    (helpers / "many.py").write_text(
        "import os\n"
        "from pathlib import Path\n"
        "\n"
        "_private = 1\n"
        "\n"
        "def whisper(value):\n"
        "    return str(value).lower()\n"
        "\n"
        "def repeat(value, times=2):\n"
        "    return str(value) * times\n"
    )
    (helpers / "registered.py").write_text(
        "def register(engine, config):\n"
        "    return {'registered': lambda: 'from register'}\n"
    )

    decorators = tmp_path / "decorators"
    decorators.mkdir()
    (decorators / "exclaim.py").write_text("exports = lambda value: f'{value}!'\n")
    (decorators / "self_registering.py").write_text(
        "def register(engine, config):\n"
        "    engine.register_decorator('mirror', lambda value: str(value)[::-1])\n"
        "    return None\n"
    )

    data = tmp_path / "data"
    data.mkdir()
    (data / "site.json").write_text(json.dumps({"title": "My Site", "year": 2024}))
    (data / "author.py").write_text("name = 'Ada'\nemail = 'ada@example.com'\n")

    return tmp_path


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine()


@pytest.fixture
def wax(engine: TemplateEngine, site_dir: Path) -> Wax:
    return Wax(engine, cwd=site_dir)
