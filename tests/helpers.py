"""Builders for Ghost databases and archives used across the tests."""

import io
import sqlite3
import tarfile
from pathlib import Path
from typing import Any


SCHEMA: str = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    slug TEXT,
    markdown TEXT,
    meta_description TEXT,
    published_at DATETIME,
    updated_at DATETIME,
    status TEXT,
    language TEXT,
    author_id INTEGER NOT NULL
);
CREATE TABLE tags (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE posts_tags (
    id INTEGER PRIMARY KEY,
    post_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL
);
"""

# 1x1 transparent PNG
PNG_BYTES: bytes = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


def make_post(**overrides: Any) -> dict[str, Any]:
    post: dict[str, Any] = {
        "id": 1,
        "title": "Hello World",
        "slug": "hello-world",
        "markdown": "Welcome to my blog.",
        "meta_description": None,
        "published_at": "2021-05-14 09:30:00",
        "updated_at": "2021-05-15 10:00:00",
        "status": "published",
        "language": "en_US",
        "author_id": 1,
    }
    post.update(overrides)
    return post


def build_ghost_db(
    path: Path,
    posts: list[dict[str, Any]] | None = None,
    tags: dict[int, str] | None = None,
    posts_tags: list[tuple[int, int]] | None = None,
    users: dict[int, str] | None = None,
) -> Path:
    """Create a minimal Ghost 1.x style SQLite database."""
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA)
        for user_id, name in (users or {1: "Jo Author"}).items():
            conn.execute("INSERT INTO users (id, name) VALUES (?, ?)", (user_id, name))
        for post in posts if posts is not None else [make_post()]:
            columns = ", ".join(post)
            placeholders = ", ".join("?" for _ in post)
            conn.execute(
                f"INSERT INTO posts ({columns}) VALUES ({placeholders})",
                tuple(post.values()),
            )
        for tag_id, name in (tags or {}).items():
            conn.execute("INSERT INTO tags (id, name) VALUES (?, ?)", (tag_id, name))
        for post_id, tag_id in posts_tags or []:
            conn.execute(
                "INSERT INTO posts_tags (post_id, tag_id) VALUES (?, ?)", (post_id, tag_id)
            )
        conn.commit()
    finally:
        conn.close()
    return path


def build_archive(path: Path, entries: dict[str, bytes | None], mode: str = "w:gz") -> Path:
    """Write a tar archive; a None value creates a directory entry."""
    with tarfile.open(path, mode) as tar:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = 0o644
                info.mtime = 1620984600
                tar.addfile(info, io.BytesIO(data))
    return path


