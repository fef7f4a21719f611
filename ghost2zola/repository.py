"""
Ghost SQLite database reader

This module reads posts, their authors and their tags out of a Ghost
database and turns each row into a Post ready for rendering.
"""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dateutil import parser as dateparser
from loguru import logger

from .converter import DEFAULT_IMAGE_URL_PREFIX, ContentConverter
from .errors import DatabaseError
from .models import Extra, Post, Status

EPOCH: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)

POSTS_QUERY: str = """
    SELECT
        posts.id,
        posts.title,
        posts.markdown,
        posts.meta_description,
        posts.published_at,
        posts.updated_at,
        posts.status,
        posts.slug,
        posts.language,
        users.name
    FROM posts
    INNER JOIN users
    ON posts.author_id = users.id
"""

TAGS_QUERY: str = """
    SELECT
        tags.name
    FROM tags
    INNER JOIN posts_tags
    ON tags.id = posts_tags.tag_id
    WHERE posts_tags.post_id = ?
"""


@contextmanager
def open_readonly(path: Path | str) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite database without write access

    Args:
        path: Database file

    Yields:
        Read-only connection, closed on exit

    Raises:
        DatabaseError: If the database cannot be opened
    """
    uri: str = f"{Path(path).resolve().as_uri()}?mode=ro"
    try:
        conn: sqlite3.Connection = sqlite3.connect(uri, uri=True)
    except sqlite3.Error as e:
        raise DatabaseError(f"opening ghost database: {e}") from e
    try:
        yield conn
    finally:
        conn.close()


def parse_timestamp(value: object) -> datetime | None:
    """
    Convert a stored Ghost timestamp to an aware UTC datetime

    Ghost's SQLite databases store timestamps either as text
    ("2020-10-23 20:13:54") or, in older exports, as epoch milliseconds.

    Args:
        value: Raw column value

    Returns:
        UTC datetime, or None if the column is NULL or empty
    """
    if value is None or value == "":
        return None

    if isinstance(value, (int, float)):
        return EPOCH + timedelta(milliseconds=value)

    text: str = value.decode() if isinstance(value, bytes) else str(value)
    if text.strip().isdigit():
        return EPOCH + timedelta(milliseconds=int(text))

    dt: datetime = dateparser.parse(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class PostRepository:
    """
    Read access to the posts of a Ghost database

    Posts are returned in the database's natural row order. Tags are
    fetched with one query per post, which is fine for the few hundred
    posts a blog typically has.
    """

    def __init__(self, conn: sqlite3.Connection, image_url_prefix: str = DEFAULT_IMAGE_URL_PREFIX):
        """
        Initialize repository

        Args:
            conn: Open connection to a Ghost database
            image_url_prefix: URL prefix internal image links are rewritten to
        """
        self.conn: sqlite3.Connection = conn
        self.image_url_prefix: str = image_url_prefix

    def posts(self) -> list[Post]:
        """
        Load every post with its author and tags

        Returns:
            All posts, content already link-rewritten

        Raises:
            DatabaseError: If any query fails; no partial result is returned
        """
        try:
            rows: list[tuple] = self.conn.execute(POSTS_QUERY).fetchall()
            posts: list[Post] = [self._post_from_row(row) for row in rows]
            for post in posts:
                post.taxonomies.tags = self.tags_for(post.extra.id)
                post.content = ContentConverter.rewrite_internal_links(
                    post.content, self.image_url_prefix
                )
        except sqlite3.Error as e:
            raise DatabaseError(f"reading ghost database: {e}") from e
        except (ValueError, OverflowError) as e:
            raise DatabaseError(f"unreadable timestamp in ghost database: {e}") from e

        return posts

    def tags_for(self, post_id: int | str) -> list[str]:
        """
        Names of the tags attached to a post

        Args:
            post_id: Value of posts.id

        Returns:
            Tag names in row order
        """
        return [name for (name,) in self.conn.execute(TAGS_QUERY, (post_id,))]

    @staticmethod
    def _post_from_row(row: tuple) -> Post:
        (
            post_id,
            title,
            markdown,
            meta_description,
            published_at,
            updated_at,
            status,
            slug,
            language,
            author_name,
        ) = row

        if markdown is None:
            # The markdown was lost, e.g. by an earlier Ghost import. The post
            # is still written, with an empty body.
            logger.warning(f"post {post_id} ({title!r}) has no markdown; writing empty body")

        return Post(
            title=title or "",
            slug=slug or "",
            description=meta_description or "",
            date=parse_timestamp(published_at),
            updated=parse_timestamp(updated_at),
            status=Status.from_storage(status),
            extra=Extra(
                id=post_id,
                language=language or "",
                author_name=author_name or "",
            ),
            content=markdown or "",
        )
