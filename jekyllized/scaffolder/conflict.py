"""Conflict-checked writes into the destination directory.

Every file the scaffolder produces is handed to :class:`ConflictResolver`,
which compares it with whatever already sits at the target path and only
writes when the path is free, the user agrees, or ``force`` is set.
"""

from __future__ import annotations

import asyncio
import difflib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rich.markup import escape
from rich.prompt import Prompt
from rich.syntax import Syntax

from jekyllized.utils import console


class Decision(str, Enum):
    """User answer for a conflicting file."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    ALL = "all"
    DIFF = "diff"
    ABORT = "abort"


class Outcome(str, Enum):
    """What happened to a file handed to the resolver."""

    CREATED = "created"
    IDENTICAL = "identical"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"
    MERGED = "merged"


@dataclass(frozen=True)
class Placement:
    """Result of placing one file."""

    path: str
    outcome: Outcome


class ConflictAbort(Exception):
    """Raised when the user chooses to abort on a conflicting file."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Aborted on conflicting file: {path}")


_KEYS: dict[str, Decision] = {
    "y": Decision.OVERWRITE,
    "n": Decision.SKIP,
    "a": Decision.ALL,
    "d": Decision.DIFF,
    "x": Decision.ABORT,
}


def prompt_decision(rel_path: str) -> Decision:
    """Ask on the terminal what to do with a conflicting file."""
    console.print(
        "  [dim]y: overwrite  n: skip  a: overwrite this and all others  "
        "d: show diff  x: abort[/dim]"
    )
    key = Prompt.ask(
        f"Replace [bold]{escape(rel_path)}[/bold]?",
        choices=list(_KEYS),
        default="n",
        console=console,
    )
    return _KEYS[key]


def unified_diff(rel_path: str, existing: bytes, candidate: bytes) -> str:
    """Unified diff between the existing file and the new content."""
    try:
        old = existing.decode("utf-8").splitlines(keepends=True)
        new = candidate.decode("utf-8").splitlines(keepends=True)
    except UnicodeDecodeError:
        return f"Binary files {rel_path} differ\n"
    return "".join(
        difflib.unified_diff(old, new, fromfile=f"a/{rel_path}", tofile=f"b/{rel_path}")
    )


class ConflictResolver:
    """Writes candidate files into *dest_dir*, consulting existing content.

    Args:
        dest_dir: Destination root.
        ask: Callable returning a :class:`Decision` for a conflicting path.
            Defaults to :func:`prompt_decision`.
        force: Overwrite conflicting files without asking.
    """

    def __init__(
        self,
        dest_dir: str | Path,
        ask: Callable[[str], Decision] | None = None,
        *,
        force: bool = False,
    ) -> None:
        self.dest_dir = Path(dest_dir)
        self.ask = ask or prompt_decision
        self.force = force
        self.aborted = False
        self._prompt_lock = asyncio.Lock()

    async def place(
        self,
        rel_path: str | Path,
        content: bytes,
        *,
        merged: bool = False,
    ) -> Placement:
        """Write *content* to ``dest_dir / rel_path`` unless the user objects.

        Args:
            rel_path: Path relative to the destination root.
            content: Candidate bytes.
            merged: The candidate already incorporates the existing file
                (manifest merge); a difference is written without asking.

        Raises:
            ConflictAbort: The user chose abort, now or on an earlier file.
        """
        rel = Path(rel_path).as_posix()
        if self.aborted:
            raise ConflictAbort(rel)

        target = self.dest_dir / rel
        existing = await asyncio.to_thread(_read_existing, target)

        if existing is None:
            await self._write(rel, target, content)
            return self._log(Placement(rel, Outcome.CREATED))

        if existing == content:
            return self._log(Placement(rel, Outcome.IDENTICAL))

        if merged:
            await self._write(rel, target, content)
            return self._log(Placement(rel, Outcome.MERGED))

        decision = await self._resolve(rel, existing, content)
        if decision is Decision.SKIP:
            return self._log(Placement(rel, Outcome.SKIPPED))

        await self._write(rel, target, content)
        return self._log(Placement(rel, Outcome.OVERWRITTEN))

    async def _write(self, rel: str, target: Path, content: bytes) -> None:
        # An abort chosen while this file was being read still wins.
        if self.aborted:
            raise ConflictAbort(rel)
        await asyncio.to_thread(_write_file, target, content)

    async def _resolve(self, rel: str, existing: bytes, content: bytes) -> Decision:
        # One question at a time, even when files are processed concurrently.
        async with self._prompt_lock:
            if self.aborted:
                raise ConflictAbort(rel)
            if self.force:
                return Decision.OVERWRITE
            while True:
                decision = Decision(await asyncio.to_thread(self.ask, rel))
                if decision is Decision.DIFF:
                    console.print(
                        Syntax(unified_diff(rel, existing, content), "diff", theme="ansi_dark")
                    )
                    continue
                if decision is Decision.ABORT:
                    self.aborted = True
                    raise ConflictAbort(rel)
                if decision is Decision.ALL:
                    self.force = True
                    return Decision.OVERWRITE
                return decision

    @staticmethod
    def _log(placement: Placement) -> Placement:
        label, color = _LOG_STYLE[placement.outcome]
        console.print(f"  [{color}]{label:>9}[/{color}] {escape(placement.path)}")
        return placement


_LOG_STYLE: dict[Outcome, tuple[str, str]] = {
    Outcome.CREATED: ("create", "green"),
    Outcome.IDENTICAL: ("identical", "cyan"),
    Outcome.OVERWRITTEN: ("overwrite", "yellow"),
    Outcome.SKIPPED: ("skip", "dim"),
    Outcome.MERGED: ("merge", "magenta"),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_existing(path: Path) -> bytes | None:
    """Bytes at *path*, or ``None`` if nothing is there."""
    if not path.exists():
        return None
    return path.read_bytes()


def _write_file(path: Path, content: bytes) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
