"""Jinja2 template rendering for the site skeleton.

Template files use three marker forms, all opened by ``{SLUSH{`` and closed
by ``}}``:

* ``{SLUSH{ if hostname }}`` -- logic block (any Jinja statement)
* ``{SLUSH{= name }}``        -- raw interpolation
* ``{SLUSH{- description }}`` -- HTML-escaped interpolation

Jekyll's own Liquid syntax (``{{ page.title }}``, ``{% include %}``) is left
alone because Jinja only reacts to the delimiters above.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, TemplateError
from markupsafe import escape

MARK = "{SLUSH{"
END = "}}"

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {"png", "ico", "gif", "jpg", "jpeg", "svg", "psd", "bmp", "webp", "webm"}
)

# Files handled by dedicated stages (or never copied at all).
EXCLUDED_NAMES: frozenset[str] = frozenset({"CNAME", "_gitignore", "package.json"})
EXCLUDED_ANYWHERE: frozenset[str] = frozenset({".DS_Store"})

_ESCAPE_RE = re.compile(r"\{SLUSH\{-(.+?)\}\}")


class RenderError(Exception):
    """Raised when a template asset is missing or cannot be rendered."""


def _finalize(value: Any) -> Any:
    return "" if value is None else value


def _escape_html(value: Any) -> str:
    if value is None:
        return ""
    return str(escape(value))


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Selects and renders files from the site skeleton.

    Text files go through Jinja2; binary files (by extension) are only ever
    read as bytes.  The renderer keeps no state between renders, so the same
    input and context always produce the same output.
    """

    def __init__(
        self,
        template_dir: str | Path,
        binary_extensions: frozenset[str] = BINARY_EXTENSIONS,
    ) -> None:
        self.template_dir = Path(template_dir)
        self.binary_extensions = frozenset(e.lower() for e in binary_extensions)
        self.env = Environment(
            block_start_string=MARK,
            block_end_string=END,
            variable_start_string=MARK + "=",
            variable_end_string=END,
            comment_start_string=MARK + "#",
            comment_end_string="#" + END,
            autoescape=False,
            keep_trailing_newline=True,
            finalize=_finalize,
        )
        self.env.filters["escape_html"] = _escape_html
        # Jinja normalises line endings; templates written with CRLF keep them.
        self.crlf_env = self.env.overlay(newline_sequence="\r\n")

    # -- Rendering ---------------------------------------------------------

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render template text against *context*.

        Text without any ``{SLUSH{`` marker is returned unchanged.
        """
        if MARK not in template_string:
            return template_string
        source = _ESCAPE_RE.sub(
            lambda m: f"{MARK}= ({m.group(1)}) | escape_html {END}", template_string
        )
        try:
            env = self.crlf_env if "\r\n" in source else self.env
            return env.from_string(source).render(**context)
        except TemplateError as exc:
            raise RenderError(f"Failed rendering template: {exc}") from exc

    def render_file(self, rel_path: str | Path, context: dict[str, Any]) -> bytes:
        """Read a text template and return its rendered content as UTF-8 bytes."""
        raw = self.read_bytes(rel_path)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RenderError(f"Template is not valid UTF-8 text: {rel_path}") from exc
        try:
            return self.render_string(text, context).encode("utf-8")
        except RenderError as exc:
            raise RenderError(f"{rel_path}: {exc}") from exc

    def read_bytes(self, rel_path: str | Path) -> bytes:
        """Return a template asset's bytes, untouched."""
        path = self.template_dir / rel_path
        try:
            return path.read_bytes()
        except OSError as exc:
            raise RenderError(f"Template asset not readable: {path} ({exc})") from exc

    async def render_file_async(self, rel_path: str | Path, context: dict[str, Any]) -> bytes:
        """Like :meth:`render_file`, run in a worker thread."""
        return await asyncio.to_thread(self.render_file, rel_path, context)

    async def read_bytes_async(self, rel_path: str | Path) -> bytes:
        return await asyncio.to_thread(self.read_bytes, rel_path)

    # -- Selection ---------------------------------------------------------

    def is_binary(self, rel_path: str | Path) -> bool:
        suffix = Path(rel_path).suffix.lstrip(".").lower()
        return suffix in self.binary_extensions

    def select_text_files(self) -> list[str]:
        """Every renderable file, relative to the template root, sorted."""
        return [p for p in self._selectable() if not self.is_binary(p)]

    def select_binary_files(self) -> list[str]:
        """Every binary asset, relative to the template root, sorted."""
        return [p for p in self._selectable() if self.is_binary(p)]

    def _selectable(self) -> list[str]:
        if not self.template_dir.is_dir():
            raise RenderError(f"Template directory not found: {self.template_dir}")
        selected: list[str] = []
        for path in self.template_dir.rglob("*"):
            if not path.is_file():
                continue
            rel = path.relative_to(self.template_dir)
            if rel.name in EXCLUDED_ANYWHERE:
                continue
            if len(rel.parts) == 1 and rel.name in EXCLUDED_NAMES:
                continue
            selected.append(rel.as_posix())
        return sorted(selected)
