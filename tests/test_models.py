"""Tests for the Post model and its rendering."""

from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath

import frontmatter
from frontmatter.default_handlers import TOMLHandler

from ghost2zola.models import Extra, Post, Status, Taxonomies, format_datetime


def _make_post(**kwargs) -> Post:
    defaults = {
        "title": "Fancy Example Post",
        "slug": "fancy-example-post",
        "content": "I'm so fancy, I have paragraphs.\n\nSee!?",
        "status": Status.DRAFT,
        "extra": Extra(id=123, language="en_EN", author_name="me"),
        "taxonomies": Taxonomies(tags=["tag1", "another"]),
    }
    defaults.update(kwargs)
    return Post(**defaults)


class TestStatus:
    def test_published(self):
        assert Status.from_storage("published") is Status.PUBLISHED
        assert Status.PUBLISHED.published

    def test_anything_else_is_draft(self):
        for value in ("draft", "scheduled", "Published", "", None):
            assert Status.from_storage(value).draft


class TestRelativePath:
    def test_dated_post(self):
        post = _make_post(date=datetime(2021, 5, 4, 9, 30, tzinfo=timezone.utc))
        assert post.relative_path() == PurePosixPath("2021/05/04/fancy-example-post.md")

    def test_uses_utc_calendar_date(self):
        local = datetime(2021, 5, 4, 23, 30, tzinfo=timezone.utc).astimezone(
            timezone(timedelta(hours=5))
        )
        post = _make_post(date=local)
        assert post.relative_path().parts[:3] == ("2021", "05", "04")

    def test_undated_post(self):
        post = _make_post(date=None)
        assert post.relative_path() == PurePosixPath("undated/fancy-example-post.md")

    def test_derived_slug(self):
        post = _make_post(slug="", title="A Derived Title")
        assert post.relative_path().name == "a-derived-title.md"


class TestFormatDatetime:
    def test_whole_seconds(self):
        assert format_datetime(datetime(2020, 10, 23, 20, 13, 54, tzinfo=timezone.utc)) == (
            "2020-10-23T20:13:54Z"
        )

    def test_fractional_seconds(self):
        value = datetime(2020, 10, 23, 20, 13, 54, 69963, tzinfo=timezone.utc)
        assert format_datetime(value) == "2020-10-23T20:13:54.069963Z"


class TestRender:
    def test_draft_post(self):
        rendered = _make_post().render()

        assert rendered.startswith("+++\n")
        assert "\n+++\n\nI'm so fancy, I have paragraphs.\n\nSee!?\n" in rendered

        parsed = frontmatter.loads(rendered, handler=TOMLHandler())
        assert parsed["title"] == "Fancy Example Post"
        assert parsed["slug"] == "fancy-example-post"
        assert parsed["draft"] is True
        assert parsed["extra"] == {"id": 123, "language": "en_EN", "author_name": "me"}
        assert parsed["taxonomies"] == {"tags": ["tag1", "another"]}
        assert "description" not in parsed.metadata
        assert "date" not in parsed.metadata
        assert "updated" not in parsed.metadata

    def test_published_post_has_native_dates_and_no_draft(self):
        post = _make_post(
            status=Status.PUBLISHED,
            description="All about fancy",
            date=datetime(2020, 10, 23, 20, 13, 54, tzinfo=timezone.utc),
            updated=datetime(2020, 10, 24, 8, 0, 0, tzinfo=timezone.utc),
        )
        rendered = post.render()

        assert "\ndate = 2020-10-23T20:13:54Z\n" in rendered
        assert "\nupdated = 2020-10-24T08:00:00Z\n" in rendered
        assert "draft" not in rendered
        assert 'description = "All about fancy"' in rendered

        parsed = frontmatter.loads(rendered, handler=TOMLHandler())
        assert parsed["date"].year == 2020
        assert parsed["updated"].hour == 8

    def test_empty_slug_omitted(self):
        rendered = _make_post(slug="").render()
        assert "slug" not in frontmatter.loads(rendered, handler=TOMLHandler()).metadata

    def test_empty_tags_still_rendered(self):
        rendered = _make_post(taxonomies=Taxonomies()).render()
        parsed = frontmatter.loads(rendered, handler=TOMLHandler())
        assert parsed["taxonomies"] == {"tags": []}

    def test_footnotes_reified(self):
        rendered = _make_post(content="Claim[^n].\n\n[^n]: Source").render()
        assert "Claim[^1].\n\n[^1]: Source" in rendered

    def test_body_with_date_line_untouched(self):
        rendered = _make_post(content='date = "not front matter"').render()
        assert rendered.endswith('date = "not front matter"\n')

    def test_empty_body_keeps_blank_line(self):
        rendered = _make_post(content="").render()
        assert rendered.endswith("\n+++\n\n\n")

    def test_trailing_whitespace_preserved(self):
        rendered = _make_post(content="a\nline  \n\n\n").render()
        assert rendered.endswith("\n+++\n\na\nline  \n\n\n\n")
