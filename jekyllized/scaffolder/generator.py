"""File-placement stages for the site skeleton.

Each public coroutine on :class:`SiteGenerator` is one pipeline stage.  A
stage fans out over its files with a bounded number of concurrent tasks and
only returns once every task has finished; the first failure is re-raised
after the rest have settled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from jekyllized.config import Config

from .conflict import ConflictResolver, Placement
from .manifest import ManifestMerger
from .templates import TemplateRenderer

GITIGNORE_TEMPLATE = "_gitignore"
GITIGNORE_NAME = ".gitignore"
CNAME_NAME = "CNAME"


class SiteGenerator:
    """Renders and places the skeleton into ``config.dest_dir``.

    The generator never writes directly; every file goes through the
    :class:`ConflictResolver`.
    """

    def __init__(
        self,
        config: Config,
        context: dict[str, Any],
        resolver: ConflictResolver | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.context = context
        self.renderer = renderer or TemplateRenderer(config.template_dir)
        self.resolver = resolver or ConflictResolver(config.dest_dir, force=config.force)
        self.manifest = ManifestMerger(self.renderer, self.resolver, config)

    # -- Stages ------------------------------------------------------------

    async def install_text_files(self) -> list[Placement]:
        """Render every text template and place it under the same path."""
        files = self.renderer.select_text_files()
        return await self._fan_out(files, self._place_text)

    async def install_binary_files(self) -> list[Placement]:
        """Copy every binary asset byte-for-byte."""
        files = self.renderer.select_binary_files()
        return await self._fan_out(files, self._place_binary)

    async def install_gitignore(self) -> list[Placement]:
        """Place ``_gitignore`` as ``.gitignore``."""
        content = await self.renderer.read_bytes_async(GITIGNORE_TEMPLATE)
        return [await self.resolver.place(GITIGNORE_NAME, content)]

    async def install_cname(self) -> list[Placement]:
        """Render and place ``CNAME``; nothing happens without a hostname."""
        if not self.has_hostname:
            return []
        content = await self.renderer.render_file_async(CNAME_NAME, self.context)
        return [await self.resolver.place(CNAME_NAME, content)]

    async def merge_manifest_and_install(self) -> list[Placement]:
        """Merge ``package.json`` into the destination and install."""
        return await self.manifest.merge_and_install(self.context)

    @property
    def has_hostname(self) -> bool:
        return bool(self.context.get("hostname"))

    # -- Per-file work -----------------------------------------------------

    async def _place_text(self, rel_path: str) -> Placement:
        content = await self.renderer.render_file_async(rel_path, self.context)
        return await self.resolver.place(rel_path, content)

    async def _place_binary(self, rel_path: str) -> Placement:
        content = await self.renderer.read_bytes_async(rel_path)
        return await self.resolver.place(rel_path, content)

    async def _fan_out(
        self,
        files: list[str],
        worker: Callable[[str], Awaitable[Placement]],
    ) -> list[Placement]:
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def _bounded(rel_path: str) -> Placement:
            async with semaphore:
                return await worker(rel_path)

        results = await asyncio.gather(
            *[_bounded(f) for f in files], return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)
