"""Tests for the context deriver (jekyllized.context)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from jekyllized.context import current_year, derive_context, github_fields, split_author
from jekyllized.prompts import parse_github_repo

pytestmark = pytest.mark.unit


class TestSplitAuthor:
    def test_name_and_email(self):
        assert split_author("Jane Doe <jane@example.com>") == ("Jane Doe", "jane@example.com")

    def test_name_only(self):
        assert split_author("Jane Doe") == ("Jane Doe", "")

    def test_empty(self):
        assert split_author("") == ("", "")


class TestGithubFields:
    def test_owner_repo(self):
        assert github_fields("foo/bar") == {
            "github_author_name": "foo",
            "github_author_url": "https://github.com/foo",
            "github_repo_name": "bar",
            "github_repo_url": "https://github.com/foo/bar",
        }

    @pytest.mark.parametrize(
        "raw",
        ["foo/bar", "https://github.com/foo/bar", "https://github.com/foo/bar.git", "foo/bar.git"],
    )
    def test_every_input_form_gives_same_fields(self, raw: str):
        assert github_fields(parse_github_repo(raw)) == github_fields("foo/bar")

    @pytest.mark.parametrize("value", [None, "", "foobar"])
    def test_unparseable_yields_empty_fields(self, value):
        fields = github_fields(value)
        assert set(fields.values()) == {""}


class TestCurrentYear:
    def test_year_in_timezone(self):
        new_year_utc = datetime(2023, 12, 31, 20, 0, tzinfo=timezone.utc)
        assert current_year("UTC", new_year_utc) == "2023"
        assert current_year("Asia/Tokyo", new_year_utc) == "2024"

    def test_unknown_timezone_falls_back_to_utc(self, fixed_now):
        assert current_year("Mars/Olympus", fixed_now) == "2024"

    def test_naive_datetime_treated_as_utc(self):
        assert current_year("UTC", datetime(2020, 5, 5)) == "2020"


class TestDeriveContext:
    def test_derived_fields(self, answers_factory, fixed_now):
        ctx = derive_context(answers_factory(), generator_version="1.2.3", now=fixed_now)
        assert ctx.author_name == "Jane Doe"
        assert ctx.author_email == "jane@example.com"
        assert ctx.github_author_name == "janedoe"
        assert ctx.github_repo_name == "foo"
        assert ctx.github_repo_url == "https://github.com/janedoe/foo"
        assert ctx.generator_version == "1.2.3"
        assert ctx.year == "2024"

    def test_no_hostname_is_none_not_empty(self, answers_factory, fixed_now):
        ctx = derive_context(answers_factory(hostname=""), now=fixed_now)
        assert ctx.hostname is None
        assert ctx.as_dict()["hostname"] is None

    def test_hostname_kept(self, hostname_context):
        assert hostname_context.hostname == "foo.com"

    def test_missing_github_does_not_crash(self, answers_factory, fixed_now):
        ctx = derive_context(answers_factory(github=None), now=fixed_now)
        assert ctx.github_author_name == ""
        assert ctx.github_repo_name == ""
        assert ctx.github_repo_url == ""

    def test_context_is_frozen(self, site_context):
        with pytest.raises(ValidationError):
            site_context.slug = "changed"

    def test_as_dict_contains_all_answers(self, answers, site_context):
        data = site_context.as_dict()
        for key, value in answers.model_dump().items():
            assert data[key] == value
