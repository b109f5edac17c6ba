"""Unit tests for utility functions (jekyllized.utils).

Tests cover:
- run_command (success, failure, cwd, missing binary)
- slugify / compact_name
- dump_json
- format_duration
- STAGE_NAMES / STAGE_COLORS constants
- Rich output helpers
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from jekyllized.utils import (
    STAGE_COLORS,
    STAGE_NAMES,
    compact_name,
    dump_json,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    slugify,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        returncode, stdout, stderr = await run_command([sys.executable, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout == "hello"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_command(self):
        returncode, _stdout, stderr = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
        )
        assert returncode == 3
        assert "boom" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, _stderr = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert returncode == 0
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_executable_raises(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["nonexistent-binary-12345-xyz"])


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


class TestSlugify:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("My Jekyll Site", "my-jekyll-site"),
            ("  Blog (2024)  ", "blog-2024"),
            ("already-a-slug", "already-a-slug"),
            ("under_score", "under-score"),
            ("---", ""),
        ],
    )
    def test_slugify(self, value: str, expected: str):
        assert slugify(value) == expected

    @pytest.mark.unit
    def test_slug_is_fixed_point(self):
        assert slugify(slugify("Hello, World!")) == "hello-world"


class TestCompactName:
    @pytest.mark.unit
    def test_lowercases_and_strips_whitespace(self):
        assert compact_name("Jane  Q. Doe") == "janeq.doe"

    @pytest.mark.unit
    def test_empty(self):
        assert compact_name(None) == ""
        assert compact_name("") == ""


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class TestJson:
    @pytest.mark.unit
    def test_dump_json_format(self):
        text = dump_json({"name": "foo", "deps": ["x"], "title": "Café"})
        assert text == '{\n  "name": "foo",\n  "deps": [\n    "x"\n  ],\n  "title": "Café"\n}\n'


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(3.7, "3.7s"), (65.2, "1m 5s"), (3661.0, "1h 1m 1s"), (-1, "0.0s")],
    )
    def test_format(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# Rich output
# ---------------------------------------------------------------------------


class TestRichOutput:
    @pytest.mark.unit
    def test_stage_constants_aligned(self):
        assert set(STAGE_NAMES) == set(STAGE_COLORS) == {1, 2, 3, 4, 5}

    @pytest.mark.unit
    def test_helpers_print(self, capsys):
        print_stage_header(1, STAGE_NAMES[1])
        print_summary_table({"Site": "foo", "Hostname": None}, title="Test")
        print_success("done")
        print_error("failed")
        print_warning("careful")
        out = capsys.readouterr().out
        assert "Stage 1" in out
        assert "foo" in out
        assert "done" in out
        assert "failed" in out
        assert "careful" in out

    @pytest.mark.unit
    def test_summary_table_prints_brackets_literally(self, capsys):
        print_summary_table(
            {"Description": "Notes on [/b] tags", "Keywords": "[blog], [bold]x"},
            title="Test",
        )
        out = capsys.readouterr().out
        assert "Notes on [/b] tags" in out
        assert "[blog], [bold]x" in out
