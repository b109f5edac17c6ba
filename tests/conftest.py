"""Shared pytest fixtures for the jekyllized test suite.

Provides reusable fixtures for:
- Sample answers and the derived site context
- A pipeline ``Config`` pointing at a temporary destination
- A small throw-away template tree
- Scripted prompt backends
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from jekyllized.config import DEFAULT_TEMPLATE_DIR, Config
from jekyllized.context import SiteContext, derive_context
from jekyllized.prompts import Answers
from jekyllized.scaffolder.conflict import Decision

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

# Smallest valid PNG (1x1 transparent pixel).
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01"
    b"\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


# ---------------------------------------------------------------------------
# Answers & context
# ---------------------------------------------------------------------------


def make_answers(**overrides: Any) -> Answers:
    data: dict[str, Any] = {
        "name": "Foo Blog",
        "slug": "foo",
        "url": "http://www.foo.com",
        "hostname": None,
        "author": "Jane Doe <jane@example.com>",
        "description": "A blog about <foo> & bar",
        "keywords": "foo, bar",
        "timezone": "Europe/Oslo",
        "version": "0.1.0",
        "permalink": "pretty",
        "github": "janedoe/foo",
        "github_token": "",
    }
    data.update(overrides)
    return Answers(**data)


@pytest.fixture
def answers() -> Answers:
    """Answers for a site without a custom domain."""
    return make_answers()


@pytest.fixture
def site_context(answers: Answers) -> SiteContext:
    """Context derived from :func:`answers` at a fixed point in time."""
    return derive_context(answers, generator_version="9.9.9", now=FIXED_NOW)


@pytest.fixture
def hostname_context() -> SiteContext:
    """Context for a site served from ``foo.com``."""
    return derive_context(
        make_answers(hostname="foo.com"), generator_version="9.9.9", now=FIXED_NOW
    )


# ---------------------------------------------------------------------------
# Paths & configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Empty destination directory."""
    path = tmp_path / "site"
    path.mkdir()
    return path


@pytest.fixture
def config(dest_dir: Path) -> Config:
    """Config writing into ``dest_dir`` with the bundled templates, no install."""
    return Config(dest_dir=dest_dir, template_dir=DEFAULT_TEMPLATE_DIR, skip_install=True)


@pytest.fixture
def mini_templates(tmp_path: Path) -> Path:
    """A small template tree exercising every selection rule."""
    root = tmp_path / "templates"
    (root / "src" / "images").mkdir(parents=True)
    (root / "README.md").write_text("# {SLUSH{= name }}\n", encoding="utf-8")
    (root / "plain.txt").write_text("no markers {{ liquid }}\n", encoding="utf-8")
    (root / "Gemfile").write_text('source "https://rubygems.org"\n', encoding="utf-8")
    (root / "src" / "index.html").write_text(
        "<h1>{SLUSH{- description }}</h1>\n", encoding="utf-8"
    )
    (root / "src" / "images" / "logo.png").write_bytes(PNG_BYTES)
    (root / "src" / ".DS_Store").write_bytes(b"\x00\x00\x00\x01Bud1")
    (root / ".DS_Store").write_bytes(b"\x00\x00\x00\x01Bud1")
    (root / "_gitignore").write_text("node_modules/\n", encoding="utf-8")
    (root / "CNAME").write_text("{SLUSH{= hostname }}\n", encoding="utf-8")
    (root / "package.json").write_text(
        '{"name": {SLUSH{= slug | tojson }}, "version": {SLUSH{= version | tojson }},'
        ' "devDependencies": {"sass": "^1.77.0"}}\n',
        encoding="utf-8",
    )
    return root


# ---------------------------------------------------------------------------
# Prompt backends
# ---------------------------------------------------------------------------


class ScriptedDecisions:
    """Conflict prompt that replays a fixed list of decisions."""

    def __init__(self, *decisions: Decision) -> None:
        self.decisions = list(decisions)
        self.calls: list[str] = []

    def __call__(self, rel_path: str) -> Decision:
        self.calls.append(rel_path)
        return self.decisions.pop(0)


@pytest.fixture
def scripted() -> type[ScriptedDecisions]:
    return ScriptedDecisions


@pytest.fixture
def answers_factory():
    """``make_answers`` for tests that need several variants."""
    return make_answers


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES
