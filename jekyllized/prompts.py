"""Interactive question/answer session.

Asks the site questions one at a time through Rich prompts, validates each
answer and re-asks on invalid input.  The prompt backend is injectable so the
session can be driven from tests without a terminal.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field
from rich.prompt import Confirm, Prompt

from jekyllized.config import Defaults, is_valid_timezone
from jekyllized.utils import console, print_error, print_summary_table, slugify

Permalink = Literal["date", "pretty", "ordinal", "none"]

# value -> (label, pattern shown to the user)
PERMALINK_CHOICES: dict[str, tuple[str, str]] = {
    "date": ("Date", "/:categories/:year/:month/:day/:title.html"),
    "pretty": ("Pretty", "/:categories/:year/:month/:day/:title/"),
    "ordinal": ("Ordinal", "/:categories/:year/:y_day/:title.html"),
    "none": ("None", "/:categories/:title.html"),
}

_GITHUB_RE = re.compile(r"(?:https?://github\.com)?/?([^/.]+/[^/]+)(?:\.git)?$", re.IGNORECASE)


class Answers(BaseModel):
    """Raw answers collected from the user."""

    name: str
    slug: str
    url: str
    hostname: str | None = None
    author: str
    description: str = ""
    keywords: str = ""
    timezone: str = "UTC"
    version: str = "0.1.0"
    permalink: Permalink = "date"
    github: str | None = Field(default=None, description="Normalised owner/repo")
    github_token: str = ""


def parse_github_repo(value: str | None) -> str | None:
    """Normalise a GitHub identifier to ``owner/repo``.

    Accepts ``owner/repo``, ``https://github.com/owner/repo`` and either form
    with a ``.git`` suffix.  Returns ``None`` for anything else.
    """
    if not value:
        return None
    match = _GITHUB_RE.search(value.strip())
    if match and match.group(1):
        return re.sub(r"\.git$", "", match.group(1))
    return None


class PromptBackend:
    """Terminal prompts backed by ``rich.prompt``."""

    def text(self, message: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(message, default="", show_default=False, console=console)
        return Prompt.ask(message, default=default, console=console)

    def choice(self, message: str, choices: list[str], default: str) -> str:
        return Prompt.ask(message, choices=choices, default=default, console=console)

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=console)


def _ask_valid(
    ask: Callable[[], str],
    validate: Callable[[str], bool],
    error: str,
) -> str:
    """Keep asking until *validate* accepts the answer."""
    while True:
        answer = ask()
        if validate(answer):
            return answer
        print_error(error)


def collect_answers(defaults: Defaults, backend: Any | None = None) -> Answers | None:
    """Run the interactive session.

    Args:
        defaults: Environment-derived defaults from
            :func:`jekyllized.config.load_defaults`.
        backend: Object with ``text``, ``choice`` and ``confirm`` methods.
            Defaults to :class:`PromptBackend`.

    Returns:
        The collected :class:`Answers`, or ``None`` when the user declines
        the final confirmation.
    """
    ui = backend or PromptBackend()

    name = ui.text("What is the PRETTY name of your site?", defaults.name)
    slug = _ask_valid(
        lambda: ui.text("What is the name SLUG for your site?", defaults.slug),
        lambda s: bool(s) and s == slugify(s),
        "The slug may only contain lowercase letters, digits and single hyphens.",
    )
    url = ui.text("What is the url for your site?", f"http://www.{slug}.com")
    hostname = ui.text(
        "What is the hostname for your site? [Leave blank if not using a custom domain]"
    ).strip()
    author = ui.text("Who is authoring the site?", defaults.author)
    description = ui.text("Please describe your site.")
    keywords = ui.text("Please enter some site keywords.")
    timezone = _ask_valid(
        lambda: ui.text("What is the timezone for your site?", defaults.timezone),
        is_valid_timezone,
        "Unknown timezone; use an IANA name such as Europe/Berlin.",
    )
    version = ui.text("What is the version of your site?", "0.1.0")

    for value, (label, pattern) in PERMALINK_CHOICES.items():
        console.print(f"  [bold]{value}[/bold]  {label}: [dim]{pattern}[/dim]")
    permalink = ui.choice(
        "Which permalink pattern would you like to use?",
        list(PERMALINK_CHOICES),
        "date",
    )

    github = parse_github_repo(
        _ask_valid(
            lambda: ui.text(
                "GitHub repo name? (e.g. foo/bar, https://github.com/foo/bar.git) "
                "This is required!"
            ),
            lambda s: parse_github_repo(s) is not None,
            "Could not understand that GitHub repo; expected owner/repo.",
        )
    )
    github_token = ui.text(
        "GitHub token? (Required for some plugins. Suggest permissions are "
        "'public_repo' and 'gist')\n"
        "See: https://help.github.com/articles/creating-an-oauth-token-for-command-line-use"
    )

    answers = Answers(
        name=name,
        slug=slug,
        url=url,
        hostname=hostname or None,
        author=author,
        description=description,
        keywords=keywords,
        timezone=timezone,
        version=version,
        permalink=permalink,
        github=github,
        github_token=github_token,
    )

    print_summary_table(
        answers.model_dump(exclude={"github_token"}),
        title="Your site",
    )
    if not ui.confirm("Continue?"):
        return None
    return answers
