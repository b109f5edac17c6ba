"""jekyllized scaffolder -- renders the Jekyll site skeleton into a directory.

Quick usage::

    from jekyllized.config import Config
    from jekyllized.scaffolder import SiteGenerator

    generator = SiteGenerator(Config(dest_dir=Path("blog")), context.as_dict())
    await generator.install_text_files()
"""

from jekyllized.scaffolder.conflict import (
    ConflictAbort,
    ConflictResolver,
    Decision,
    Outcome,
    Placement,
)
from jekyllized.scaffolder.generator import SiteGenerator
from jekyllized.scaffolder.manifest import (
    InstallError,
    ManifestError,
    ManifestMerger,
    deep_merge,
)
from jekyllized.scaffolder.templates import RenderError, TemplateRenderer

__all__ = [
    "ConflictAbort",
    "ConflictResolver",
    "Decision",
    "InstallError",
    "ManifestError",
    "ManifestMerger",
    "Outcome",
    "Placement",
    "RenderError",
    "SiteGenerator",
    "TemplateRenderer",
    "deep_merge",
]
