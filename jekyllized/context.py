"""Expand raw answers into the template context.

The context is a frozen model: once ``derive_context`` has built it, the
renderer and the manifest merger only ever read it.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone as dt_timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict

from jekyllized import __version__
from jekyllized.prompts import Answers

_AUTHOR_EMAIL_RE = re.compile(r"(<(.+)>)")
_GITHUB_PARTS_RE = re.compile(r"([^/].+)/(.+)")


class SiteContext(BaseModel):
    """Fully resolved values available to every template."""

    model_config = ConfigDict(frozen=True)

    name: str
    slug: str
    url: str
    hostname: str | None = None
    author: str
    author_name: str
    author_email: str = ""
    description: str = ""
    keywords: str = ""
    timezone: str = "UTC"
    version: str = "0.1.0"
    permalink: str = "date"
    github: str | None = None
    github_token: str = ""
    github_author_name: str = ""
    github_author_url: str = ""
    github_repo_name: str = ""
    github_repo_url: str = ""
    generator_version: str = __version__
    year: str

    def as_dict(self) -> dict[str, Any]:
        """Plain mapping handed to the template engine."""
        return self.model_dump()


def split_author(author: str) -> tuple[str, str]:
    """Split ``"Name <email>"`` into ``("Name", "email")``.

    Without an ``<email>`` segment the whole string is the name and the
    email is empty.
    """
    match = _AUTHOR_EMAIL_RE.search(author)
    if not match:
        return author.strip(), ""
    return author.replace(match.group(1), "").strip(), match.group(2)


def github_fields(github: str | None) -> dict[str, str]:
    """Derive author/repo names and URLs from a normalised ``owner/repo``.

    Anything not shaped like ``owner/repo`` (including ``None``) yields empty
    strings for every field.
    """
    match = _GITHUB_PARTS_RE.match(github) if github else None
    if not match:
        return {
            "github_author_name": "",
            "github_author_url": "",
            "github_repo_name": "",
            "github_repo_url": "",
        }
    owner, repo = match.group(1), match.group(2)
    return {
        "github_author_name": owner,
        "github_author_url": f"https://github.com/{owner}",
        "github_repo_name": repo,
        "github_repo_url": f"https://github.com/{github}",
    }


def current_year(tz_name: str, now: datetime | None = None) -> str:
    """Year of *now* (default: current time) in timezone *tz_name*."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        tz = dt_timezone.utc
    moment = now or datetime.now(dt_timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt_timezone.utc)
    return moment.astimezone(tz).strftime("%Y")


def derive_context(
    answers: Answers,
    *,
    generator_version: str = __version__,
    now: datetime | None = None,
) -> SiteContext:
    """Build the immutable :class:`SiteContext` from the user's answers."""
    author_name, author_email = split_author(answers.author)
    return SiteContext(
        **answers.model_dump(exclude={"hostname"}),
        hostname=answers.hostname or None,
        author_name=author_name,
        author_email=author_email,
        **github_fields(answers.github),
        generator_version=generator_version,
        year=current_year(answers.timezone, now),
    )
