"""
Zola post model

A Post is built from one row of the Ghost database, gets its tags and
rewritten content attached, and is rendered exactly once into a Zola
content file with TOML front matter.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import PurePosixPath
from typing import Any

import toml
from frontmatter.default_handlers import TOMLHandler

from .converter import ContentConverter
from .errors import FrontmatterError


class Status(StrEnum):
    """Publication status of a Ghost post"""

    PUBLISHED = "published"
    DRAFT = "draft"

    @classmethod
    def from_storage(cls, value: object) -> "Status":
        """
        Interpret the status column of the posts table

        Anything other than the literal "published" (scheduled, draft,
        NULL, ...) is treated as a draft.
        """
        return cls.PUBLISHED if value == "published" else cls.DRAFT

    @property
    def draft(self) -> bool:
        return self is Status.DRAFT

    @property
    def published(self) -> bool:
        return not self.draft


@dataclass
class Extra:
    # Integer in Ghost 1.x databases, ObjectId string in later ones
    id: int | str
    language: str = ""
    author_name: str = ""


@dataclass
class Taxonomies:
    tags: list[str] = field(default_factory=list)


def format_datetime(value: datetime) -> str:
    """
    Render a datetime as an RFC 3339 UTC timestamp with a Z suffix

    Naive values are taken to be UTC already, which is how SQLite
    stores Ghost timestamps.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    rendered: str = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        rendered += f".{value.microsecond:06d}"
    return rendered + "Z"


class ZolaTOMLHandler(TOMLHandler):
    """
    TOML front matter handler emitting native datetime literals

    Dates are handed to the serializer as strings, which quotes them;
    the export step strips those quotes again.
    """

    def export(self, metadata: dict[str, object], **kwargs: object) -> str:
        try:
            rendered: str = toml.dumps(metadata)
        except (TypeError, ValueError) as e:
            raise FrontmatterError(f"generating frontmatter toml: {e}") from e
        return ContentConverter.fix_toml_dates(rendered).strip()


@dataclass
class Post:
    """
    A Ghost post on its way to Zola

    Front matter mapping:

    | Ghost field        | Zola key            | Notes                         |
    | ------------------ | ------------------- | ----------------------------- |
    | title              | title               |                               |
    | meta_description   | description         | omitted if empty              |
    | published_at       | date                | omitted if absent             |
    | updated_at         | updated             | omitted if absent             |
    | status             | draft               | only written when true        |
    | slug               | slug                | omitted if empty              |
    | language           | extra.language      |                               |
    | users.name         | extra.author_name   |                               |
    | tags.name          | taxonomies.tags     | empty list if no tags         |
    """

    title: str
    extra: Extra
    slug: str = ""
    description: str = ""
    date: datetime | None = None
    updated: datetime | None = None
    status: Status = Status.DRAFT
    taxonomies: Taxonomies = field(default_factory=Taxonomies)
    content: str = ""

    def effective_slug(self) -> str:
        return ContentConverter.derive_slug(self.title, self.slug)

    def relative_path(self) -> PurePosixPath:
        """
        Return the path, relative to the extraction root, of this post

        Dated posts go to yyyy/mm/dd/slug.md (UTC calendar date),
        undated ones to undated/slug.md.
        """
        if self.date is None:
            base: PurePosixPath = PurePosixPath("undated")
        else:
            date: datetime = self.date
            if date.tzinfo is not None:
                date = date.astimezone(timezone.utc)
            base = PurePosixPath(f"{date:%Y}", f"{date:%m}", f"{date:%d}")
        return base / f"{self.effective_slug()}.md"

    def front_matter(self) -> dict[str, Any]:
        """
        Build the front matter mapping, omitting empty optional keys
        """
        metadata: dict[str, Any] = {"title": self.title}
        if self.slug:
            metadata["slug"] = self.slug
        if self.description:
            metadata["description"] = self.description
        if self.date is not None:
            metadata["date"] = format_datetime(self.date)
        if self.updated is not None:
            metadata["updated"] = format_datetime(self.updated)
        if self.status.draft:
            metadata["draft"] = True
        metadata["extra"] = {
            "id": self.extra.id,
            "language": self.extra.language,
            "author_name": self.extra.author_name,
        }
        metadata["taxonomies"] = {"tags": list(self.taxonomies.tags)}
        return metadata

    def render(self) -> str:
        """
        Render the complete Zola content file

        Returns:
            "+++", the TOML front matter, "+++", a blank line, then the
            post body with its footnotes numbered
        """
        content: str = ContentConverter.reify_footnotes(self.content)
        handler: ZolaTOMLHandler = ZolaTOMLHandler()
        # Trailing body whitespace is significant; frontmatter.dumps strips it
        return (
            f"{handler.START_DELIMITER}\n"
            f"{handler.export(self.front_matter())}\n"
            f"{handler.END_DELIMITER}\n\n"
            f"{content}\n"
        )
