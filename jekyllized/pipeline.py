"""jekyllized pipeline orchestrator.

Runs the five scaffolding stages strictly in order:

Stage 1: TEXT FILES   -- render text templates into the destination.
Stage 2: BINARY FILES -- copy images and other binary assets untouched.
Stage 3: GITIGNORE    -- place ``_gitignore`` as ``.gitignore``.
Stage 4: CNAME        -- place ``CNAME`` (only with a custom hostname).
Stage 5: MANIFEST     -- merge ``package.json`` and install dependencies.

The first failing stage stops the run.  Files already written stay on disk.

Usage::

    python -m jekyllized.pipeline
    python -m jekyllized.pipeline --dest ./blog --skip-install
"""

from __future__ import annotations

import asyncio
import sys
import time
import traceback
from collections import Counter
from pathlib import Path
from typing import Any

from rich.markup import escape
from rich.panel import Panel

from jekyllized import __version__
from jekyllized.config import Config, load_defaults
from jekyllized.context import SiteContext, derive_context
from jekyllized.prompts import collect_answers
from jekyllized.scaffolder.conflict import ConflictAbort, ConflictResolver, Placement
from jekyllized.scaffolder.generator import SiteGenerator
from jekyllized.scaffolder.manifest import InstallError, ManifestError
from jekyllized.scaffolder.templates import RenderError
from jekyllized.utils import (
    STAGE_NAMES,
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised when a pipeline stage fails irrecoverably."""

    def __init__(self, stage: int, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage} ({STAGE_NAMES.get(stage, '?')}): {message}")


# Reported without a traceback.
EXPECTED_ERRORS: tuple[type[Exception], ...] = (RenderError, ManifestError, InstallError)


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Drives the scaffolding stages for one run.

    Attributes:
        config: Runtime configuration.
        context: Frozen template context.
        generator: Stage implementations.
        state: Accumulated results, returned by :meth:`run`.
    """

    _STAGE_METHODS: dict[int, str] = {
        1: "install_text_files",
        2: "install_binary_files",
        3: "install_gitignore",
        4: "install_cname",
        5: "merge_manifest_and_install",
    }

    def __init__(
        self,
        config: Config,
        context: SiteContext,
        *,
        resolver: ConflictResolver | None = None,
        generator: SiteGenerator | None = None,
    ) -> None:
        self.config = config
        self.context = context
        self.generator = generator or SiteGenerator(
            config, context.as_dict(), resolver=resolver
        )
        self.state: dict[str, Any] = {
            "stages_completed": [],
            "stages_skipped": [],
            "stages_failed": [],
            "placements": {},
            "error": None,
            "aborted": False,
            "success": False,
        }

    async def run(self) -> dict[str, Any]:
        """Execute every stage in order, stopping at the first failure.

        Returns:
            The final state dictionary, including a top-level ``success``
            boolean and per-outcome ``placements`` counts.
        """
        started = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]jekyllized {__version__}[/bold bright_cyan]\n"
                f"Site        : {escape(self.context.name)} ({escape(self.context.slug)})\n"
                f"Destination : {escape(str(self.config.dest_dir.resolve()))}",
                title="[bold]Scaffolding[/bold]",
                border_style="bright_cyan",
            )
        )

        counts: Counter[str] = Counter()
        all_success = True

        for stage_num in sorted(self._STAGE_METHODS):
            stage_name = STAGE_NAMES[stage_num]

            if stage_num == 4 and not self.generator.has_hostname:
                self.state["stages_skipped"].append(stage_num)
                continue

            print_stage_header(stage_num, stage_name)
            try:
                method = getattr(self.generator, self._STAGE_METHODS[stage_num])
                placements: list[Placement] = await method()
                counts.update(p.outcome.value for p in placements)
                self.state["stages_completed"].append(stage_num)

            except ConflictAbort as exc:
                all_success = False
                self.state["aborted"] = True
                self.state["stages_failed"].append(stage_num)
                self.state["error"] = str(PipelineError(stage_num, str(exc)))
                print_warning(f"{escape(str(exc))} -- no further files will be written.")
                break

            except Exception as exc:
                all_success = False
                self.state["stages_failed"].append(stage_num)
                self.state["error"] = str(PipelineError(stage_num, str(exc)))
                print_error(f"Stage {stage_num} ({stage_name}) FAILED: {escape(str(exc))}")
                if not isinstance(exc, EXPECTED_ERRORS):
                    console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
                break

        self.state["placements"] = dict(counts)
        self.state["success"] = all_success
        self.state["total_duration"] = format_duration(time.monotonic() - started)
        self._print_final_summary()
        return self.state

    def _print_final_summary(self) -> None:
        summary: dict[str, Any] = {
            "Stages completed": ", ".join(str(s) for s in self.state["stages_completed"]) or "-",
            "Stages skipped": ", ".join(str(s) for s in self.state["stages_skipped"]) or "-",
        }
        for outcome, count in sorted(self.state["placements"].items()):
            summary[f"Files {outcome}"] = count
        summary["Duration"] = self.state["total_duration"]
        print_summary_table(summary, title="Scaffold Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``jekyllized`` / ``python -m jekyllized.pipeline``."""
    import argparse
    import shlex

    parser = argparse.ArgumentParser(
        prog="jekyllized",
        description="Scaffold a Jekyll site into the current directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  jekyllized\n"
            "  jekyllized --dest ./blog --skip-install\n"
            "  jekyllized --install-command 'yarn install'\n"
        ),
    )
    parser.add_argument("--dest", "-d", default=None, help="Destination directory (default: .)")
    parser.add_argument("--templates", default=None, help="Alternative template directory")
    parser.add_argument(
        "--skip-install", action="store_true", default=None, help="Do not install dependencies"
    )
    parser.add_argument(
        "--force", action="store_true", default=None,
        help="Overwrite conflicting files without asking",
    )
    parser.add_argument(
        "--install-command", default=None, help="Install command (default: npm install)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    config = Config.from_env()
    overrides: dict[str, Any] = {}
    if args.dest:
        overrides["dest_dir"] = Path(args.dest)
    if args.templates:
        overrides["template_dir"] = Path(args.templates)
    if args.skip_install:
        overrides["skip_install"] = True
    if args.force:
        overrides["force"] = True
    if args.install_command:
        overrides["install_command"] = shlex.split(args.install_command)
    if overrides:
        config = config.model_copy(update=overrides)

    if not config.template_dir.is_dir():
        console.print(
            f"[bold red]Error:[/bold red] Template directory not found: {config.template_dir}"
        )
        sys.exit(1)

    defaults = load_defaults(cwd=config.dest_dir)
    try:
        answers = collect_answers(defaults)
    except (KeyboardInterrupt, EOFError):
        console.print()
        print_warning("Cancelled.")
        sys.exit(1)

    if answers is None:
        console.print("Nothing written.")
        return

    context = derive_context(answers)
    result = asyncio.run(Pipeline(config, context).run())

    if result.get("success"):
        print_success("Your site is ready!")
    else:
        print_error(escape(result.get("error") or "Scaffolding failed."))
        sys.exit(1)


if __name__ == "__main__":
    main()
