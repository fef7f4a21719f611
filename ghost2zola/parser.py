"""
Ghost JSON export parser

Ghost's JSON exports come in two shapes: a bare database object
({"meta": ..., "data": ...}) or a wrapper holding a list of them
({"db": [...]}). GhostExport accepts either and exposes the contained
databases the same way.

Reference: https://ghost.org/docs/migration/custom/
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, RootModel, field_validator

EPOCH: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _from_milliseconds(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return EPOCH + timedelta(milliseconds=value)
    return value


class Meta(BaseModel):
    """Export metadata"""

    exported_on: datetime
    version: str

    @field_validator("exported_on", mode="before")
    @classmethod
    def parse_exported_on(cls, value: Any) -> Any:
        return _from_milliseconds(value)


class User(BaseModel):
    id: int | str
    name: str
    email: str


class ExportPost(BaseModel):
    """The post fields the migration cares about; the rest is ignored"""

    title: str
    mobiledoc: str | None = None
    status: str | None = None
    published_at: datetime | None = None

    @field_validator("published_at", mode="before")
    @classmethod
    def parse_published_at(cls, value: Any) -> Any:
        return _from_milliseconds(value)


class Data(BaseModel):
    posts: list[dict[str, Any]]
    tags: list[dict[str, Any]]
    users: list[User]
    posts_tags: list[dict[str, Any]] | None = None
    posts_authors: list[dict[str, Any]] | None = None
    roles_authors: list[dict[str, Any]] | None = None

    def typed_posts(self) -> list[ExportPost]:
        """Validate the raw post objects against ExportPost"""
        return [ExportPost.model_validate(post) for post in self.posts]


class Db(BaseModel):
    """A single exported Ghost database"""

    meta: Meta
    data: Data


class Wrapper(BaseModel):
    """Wrapper around one or more exported databases"""

    db: list[Db]


class GhostExport(RootModel[Wrapper | Db]):
    """
    Top level of a Ghost JSON export

    Always deserialize unknown exports into this type; it handles the
    optional wrapper.
    """

    def dbs(self) -> list[Db]:
        """
        Databases contained in this export

        Returns:
            The single database of a bare export, or every database of
            a wrapped one
        """
        if isinstance(self.root, Wrapper):
            return list(self.root.db)
        return [self.root]


def load_export(source: str | bytes) -> GhostExport:
    """
    Parse a Ghost JSON export

    Args:
        source: JSON document

    Returns:
        Parsed export

    Raises:
        pydantic.ValidationError: If the document does not match either shape
    """
    return GhostExport.model_validate_json(source)
