"""
Zola content tree writer

This module writes converted posts into a Zola content directory and
makes sure every directory of that tree is a Zola section, i.e. holds
an _index.md.
"""

from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from loguru import logger

from .models import Post

INDEX_FILENAME: str = "_index.md"

# Seed for extract_root/_index.md
ROOT_INDEX_TEMPLATE: str = """\
+++
title = "Blog"
sort_by = "date"
paginate_by = 10
+++
"""

# Seed for every date directory below the root; transparent sections
# pass their pages up to the blog section
BRANCH_INDEX_TEMPLATE: str = """\
+++
transparent = true
+++
"""


class ZolaExporter:
    """
    Zola content directory writer

    Posts are written to extract_root/yyyy/mm/dd/slug.md (or
    extract_root/undated/slug.md), overwriting whatever was there.
    Section indices are only ever created, never overwritten, so any
    hand-edited _index.md survives a re-run.
    """

    def __init__(self, extract_root: Path):
        """
        Initialize exporter

        Args:
            extract_root: Zola section directory, usually content/blog
        """
        self.extract_root: Path = extract_root

    def write_post(self, post: Post) -> Path | None:
        """
        Write a single post

        Args:
            post: Converted post

        Returns:
            Path of the written file, or None if the post's slug would
            place it outside the extraction root
        """
        # Computed once: undated, untitled posts get a fresh uuid per call
        relative_path: PurePosixPath = post.relative_path()
        path: Path = self.extract_root / relative_path
        if not path.resolve().is_relative_to(self.extract_root.resolve()):
            logger.warning(
                f"skipping post {post.extra.id}: {relative_path} escapes {self.extract_root}"
            )
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(post.render(), encoding="utf-8")
        logger.trace(f"generated {relative_path}")
        return path

    def write_posts(self, posts: Iterable[Post]) -> int:
        """
        Write every post

        Args:
            posts: Converted posts

        Returns:
            Number of posts written, not counting skipped ones
        """
        count: int = 0
        for post in posts:
            if self.write_post(post) is not None:
                count += 1
        logger.info(f"extracted {count} posts")
        return count

    def ensure_indices(self) -> int:
        """
        Create missing _index.md files throughout the tree

        Returns:
            Number of index files created
        """
        created: int = self._ensure_index(self.extract_root, ROOT_INDEX_TEMPLATE)
        created += self._ensure_indices_below(self.extract_root)
        logger.info(f"added {created} indices")
        return created

    def _ensure_indices_below(self, directory: Path) -> int:
        try:
            # Symlinked directories may lead outside the tree
            subdirs: list[Path] = sorted(
                child for child in directory.iterdir() if child.is_dir() and not child.is_symlink()
            )
        except OSError as e:
            logger.error(f"failed to read subdirectory of {directory}: {e}")
            return 0

        created: int = 0
        for subdir in subdirs:
            created += self._ensure_index(subdir, BRANCH_INDEX_TEMPLATE)
            created += self._ensure_indices_below(subdir)
        return created

    @staticmethod
    def _ensure_index(directory: Path, template: str) -> int:
        index: Path = directory / INDEX_FILENAME
        if index.exists():
            return 0
        index.write_text(template, encoding="utf-8")
        return 1

    def export(self, posts: Iterable[Post]) -> tuple[int, int]:
        """
        Write all posts, then scaffold the section indices

        Args:
            posts: Converted posts

        Returns:
            Tuple of (posts written, indices created)
        """
        written: int = self.write_posts(posts)
        return written, self.ensure_indices()
