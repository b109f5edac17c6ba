"""``package.json`` merge and dependency installation.

The manifest is additive: the rendered template is deep-merged on top of any
``package.json`` already in the destination, so the user's own scripts and
dependencies survive while the generated fields win on conflicts.
"""

from __future__ import annotations

import asyncio
import copy
import json
from typing import Any

from rich.markup import escape

from jekyllized.config import Config
from jekyllized.utils import console, dump_json, run_command

from .conflict import ConflictResolver, Placement
from .templates import TemplateRenderer

MANIFEST_NAME = "package.json"


class ManifestError(Exception):
    """Raised when a manifest is not valid JSON."""


class InstallError(Exception):
    """Raised when the dependency install step fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        self.command = command or []
        self.stderr = stderr
        super().__init__(message)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*.

    Nested mappings are merged key by key; lists and scalars from *override*
    replace the base value wholesale.  Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _parse_manifest(text: str, source: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{source} must contain a JSON object")
    return data


class ManifestMerger:
    """Renders, merges and places ``package.json``, then installs."""

    def __init__(
        self,
        renderer: TemplateRenderer,
        resolver: ConflictResolver,
        config: Config,
    ) -> None:
        self.renderer = renderer
        self.resolver = resolver
        self.config = config

    async def build(self, context: dict[str, Any]) -> str:
        """Return the merged manifest text, without writing anything."""
        rendered = await self.renderer.render_file_async(MANIFEST_NAME, context)
        generated = _parse_manifest(rendered.decode("utf-8"), f"template {MANIFEST_NAME}")

        existing_path = self.config.manifest_path
        if existing_path.exists():
            raw = await asyncio.to_thread(existing_path.read_text, encoding="utf-8")
            existing = _parse_manifest(raw, str(existing_path))
            generated = deep_merge(existing, generated)

        return dump_json(generated)

    async def merge_and_install(self, context: dict[str, Any]) -> list[Placement]:
        """Write the merged manifest and run the install command."""
        content = await self.build(context)
        placement = await self.resolver.place(
            MANIFEST_NAME, content.encode("utf-8"), merged=True
        )
        await self.install()
        return [placement]

    async def install(self) -> None:
        """Run ``config.install_command`` in the destination directory.

        Raises:
            InstallError: The command is missing or exits non-zero.
        """
        if self.config.skip_install:
            console.print("  [dim]Skipping dependency install[/dim]")
            return

        cmd = list(self.config.install_command)
        console.print(f"  Running [bold]{escape(' '.join(cmd))}[/bold] ...")
        try:
            returncode, _stdout, stderr = await run_command(cmd, cwd=self.config.dest_dir)
        except FileNotFoundError as exc:
            raise InstallError(f"Install command not found: {cmd[0]}", cmd) from exc
        if returncode != 0:
            raise InstallError(
                f"Install command failed with exit code {returncode}: {' '.join(cmd)}\n{stderr}",
                cmd,
                stderr,
            )
