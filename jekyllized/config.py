"""jekyllized configuration.

Two kinds of settings live here:

* ``Config`` -- typed runtime knobs for the scaffolding pipeline (where to
  write, which template tree to read, how to install dependencies).
* ``Defaults`` -- values guessed from the user's environment (working
  directory, ``~/.gitconfig``, local timezone) that pre-fill the prompts.
  ``load_defaults`` is called once at startup and the result is passed into
  the answer collector explicitly.
"""

from __future__ import annotations

import configparser
import os
import re
import shlex
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from jekyllized.utils import compact_name, slugify

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "scaffolder" / "templates"

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Runtime configuration for a scaffolding run.

    Instances are created once by the CLI entry point (or by tests) and
    passed through to the generator, the conflict resolver and the manifest
    merger.
    """

    dest_dir: Path = Field(default=Path("."))
    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)
    install_command: list[str] = Field(default_factory=lambda: ["npm", "install"])
    skip_install: bool = Field(default=False, description="Do not run the install step")
    force: bool = Field(default=False, description="Overwrite conflicting files without asking")
    max_concurrency: int = Field(
        default=8, ge=1, description="Maximum files processed at once within a stage"
    )

    @property
    def manifest_path(self) -> Path:
        """Destination ``package.json``."""
        return self.dest_dir / "package.json"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            JEKYLLIZED_DEST_DIR, JEKYLLIZED_TEMPLATE_DIR,
            JEKYLLIZED_INSTALL_COMMAND, JEKYLLIZED_SKIP_INSTALL,
            JEKYLLIZED_FORCE, JEKYLLIZED_MAX_CONCURRENCY.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("JEKYLLIZED_DEST_DIR"):
            kwargs["dest_dir"] = Path(os.environ["JEKYLLIZED_DEST_DIR"])
        if os.environ.get("JEKYLLIZED_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["JEKYLLIZED_TEMPLATE_DIR"])
        if os.environ.get("JEKYLLIZED_INSTALL_COMMAND"):
            kwargs["install_command"] = shlex.split(os.environ["JEKYLLIZED_INSTALL_COMMAND"])
        if os.environ.get("JEKYLLIZED_SKIP_INSTALL"):
            kwargs["skip_install"] = os.environ["JEKYLLIZED_SKIP_INSTALL"].lower() in _TRUTHY
        if os.environ.get("JEKYLLIZED_FORCE"):
            kwargs["force"] = os.environ["JEKYLLIZED_FORCE"].lower() in _TRUTHY
        if os.environ.get("JEKYLLIZED_MAX_CONCURRENCY"):
            kwargs["max_concurrency"] = int(os.environ["JEKYLLIZED_MAX_CONCURRENCY"])
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Environment-derived prompt defaults
# ---------------------------------------------------------------------------


class Defaults(BaseModel):
    """Prompt defaults guessed from the local environment."""

    name: str = Field(default="")
    slug: str = Field(default="")
    user_name: str = Field(default="root")
    author_email: str = Field(default="")
    timezone: str = Field(default="UTC")

    @property
    def author(self) -> str:
        """Default author string, ``user <email>`` when an email is known."""
        if self.author_email:
            return f"{self.user_name} <{self.author_email}>"
        return self.user_name


def load_defaults(cwd: str | Path | None = None, home: str | Path | None = None) -> Defaults:
    """Collect prompt defaults from the working directory and home directory.

    Args:
        cwd: Directory being scaffolded.  Defaults to ``Path.cwd()``.
        home: Home directory holding ``.gitconfig``.  Defaults to ``$HOME``
            (or ``HOMEPATH`` / ``USERPROFILE`` on Windows).
    """
    work_dir = Path(cwd) if cwd is not None else Path.cwd()
    if home is None:
        home = os.environ.get("HOME") or os.environ.get("HOMEPATH") or os.environ.get("USERPROFILE")
    home_dir = Path(home) if home else None

    dir_name = work_dir.resolve().name
    # "example.com" -> "example"
    dir_no_ext = re.sub(r"\.[a-z]{2,3}$", "", dir_name)

    os_user_name = home_dir.name if home_dir is not None and home_dir.name else "root"

    user = read_git_user(home_dir / ".gitconfig") if home_dir is not None else {}

    return Defaults(
        name=dir_name,
        slug=slugify(dir_no_ext),
        user_name=compact_name(user.get("name")) or os_user_name,
        author_email=user.get("email", ""),
        timezone=guess_timezone(),
    )


def read_git_user(path: Path) -> dict[str, str]:
    """Return the ``[user]`` section of a gitconfig file, or ``{}``.

    A missing or unparseable file is treated as having no user section.
    """
    if not path.is_file():
        return {}
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    try:
        parser.read(path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError):
        return {}
    if not parser.has_section("user"):
        return {}
    return {key: value.strip().strip('"') for key, value in parser.items("user")}


def is_valid_timezone(name: str) -> bool:
    """Return ``True`` if *name* is a known IANA timezone."""
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def guess_timezone() -> str:
    """Best guess at the local IANA timezone name, ``"UTC"`` if unknown.

    Checks ``$TZ``, then ``/etc/timezone``, then the target of the
    ``/etc/localtime`` symlink.
    """
    candidates: list[str] = []

    tz_env = os.environ.get("TZ", "").lstrip(":")
    if tz_env:
        candidates.append(tz_env)

    etc_timezone = Path("/etc/timezone")
    if etc_timezone.is_file():
        candidates.append(etc_timezone.read_text(encoding="utf-8").strip())

    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        if "zoneinfo/" in target:
            candidates.append(target.split("zoneinfo/", 1)[1])

    for candidate in candidates:
        if is_valid_timezone(candidate):
            return candidate
    return "UTC"
