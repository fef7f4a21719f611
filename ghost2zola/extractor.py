"""
Ghost archive extraction

This module runs the whole archive-to-site pipeline:

1. Find the single ghost.db in the archive (first pass)
2. Re-open the archive and, in one more pass, copy the database into a
   private temporary file and unpack the images next to it
3. Read posts and tags from the temporary database
4. Write Zola content files and section indices

The archive streams are forward-only, hence the two passes.
"""

import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import IO

from loguru import logger

from .archive import entry_path, find_ghost_db_in, log_progress, open_archive
from .converter import DEFAULT_IMAGE_URL_PREFIX
from .exporter import ZolaExporter
from .image_handler import ImageHandler
from .repository import PostRepository, open_readonly


@dataclass
class PartialExtraction:
    """
    Result of the extraction pass

    Owns the temporary database file, which is deleted on close().
    """

    database: IO[bytes] = field(
        default_factory=lambda: tempfile.NamedTemporaryFile(prefix="ghost-", suffix=".db")
    )
    images: list[Path] = field(default_factory=list)

    @property
    def database_path(self) -> Path:
        return Path(self.database.name)

    def close(self) -> None:
        self.database.close()

    def __enter__(self) -> "PartialExtraction":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def images_base_for(db_path: PurePosixPath) -> PurePosixPath | None:
    """
    Archive-relative images directory belonging to a database

    a/b/c/data/ghost.db keeps its images in a/b/c/images.

    Args:
        db_path: Archive-relative path of ghost.db

    Returns:
        Images directory, or None if the database has no grandparent
    """
    if len(db_path.parts) < 2:
        return None
    return db_path.parent.parent / "images"


def is_skipped(member: tarfile.TarInfo, path: PurePosixPath) -> bool:
    """
    Entries never worth unpacking

    Directories are created on demand, and post bodies come from the
    database rather than from markdown files in the archive.
    """
    return member.isdir() or path.suffix.lower() == ".md"


def extract_images_and_db(
    archive_path: Path | str,
    prefix: PurePosixPath | str | None,
    extract_path: Path | str,
) -> PartialExtraction:
    """
    Extract the database and images from an archive

    Assuming that the ghost database is located at a/b/c/data/ghost.db,
    the images are at a/b/c/images/yyyy/mm/* and end up in
    extract_path/yyyy/mm/*.

    The database goes into a temporary file rather than memory, since
    exported databases can be large.

    Args:
        archive_path: Possibly-compressed tar archive
        prefix: Archive-relative prefix to search for ghost.db within
        extract_path: Existing directory to extract images into

    Returns:
        PartialExtraction holding the temporary database and image paths

    Raises:
        NotTar, GhostDbNotFound, MultipleGhostDb: If the database cannot be located
        OSError: On any filesystem or archive read failure
    """
    try:
        extract_root: Path = Path(extract_path).resolve(strict=True)
    except OSError:
        logger.error(f"extraction path must exist: {extract_path}")
        raise

    try:
        db_path: PurePosixPath = find_ghost_db_in(archive_path, prefix)
    except Exception as e:
        logger.error(f"failed to locate ghost.db in {archive_path}: {e}")
        raise

    images_base: PurePosixPath | None = images_base_for(db_path)
    image_handler: ImageHandler | None = (
        ImageHandler(extract_root, images_base) if images_base is not None else None
    )

    logger.info("processing archive")
    out: PartialExtraction = PartialExtraction()
    try:
        with open_archive(archive_path) as archive:
            for idx, member in enumerate(archive):
                log_progress(idx, "processed")
                path: PurePosixPath = entry_path(member)

                if path == db_path:
                    source = archive.extractfile(member)
                    if source is not None:
                        shutil.copyfileobj(source, out.database)
                    out.database.flush()
                    logger.info(f"extracted database at entry {idx}")
                elif is_skipped(member, path):
                    continue
                elif image_handler is not None and image_handler.owns(path):
                    source = archive.extractfile(member) if member.isfile() else None
                    image_handler.extract(member, source)
    except Exception as e:
        logger.error(f"failed to extract {archive_path}: {e}")
        out.close()
        raise

    if image_handler is not None:
        out.images = image_handler.images
    logger.info(f"extracted {len(out.images)} images")
    return out


def extract_database(
    extraction: PartialExtraction,
    extract_path: Path | str,
    image_url_prefix: str = DEFAULT_IMAGE_URL_PREFIX,
) -> int:
    """
    Convert the posts of an extracted database into Zola content

    Args:
        extraction: Result of extract_images_and_db
        extract_path: Directory to write posts into
        image_url_prefix: URL prefix internal image links are rewritten to

    Returns:
        Number of posts written
    """
    with open_readonly(extraction.database_path) as conn:
        posts = PostRepository(conn, image_url_prefix).posts()

    exporter: ZolaExporter = ZolaExporter(Path(extract_path).resolve())
    written, _ = exporter.export(posts)
    return written


def extract_archive(
    archive_path: Path | str,
    prefix: PurePosixPath | str | None,
    extract_path: Path | str,
    image_url_prefix: str = DEFAULT_IMAGE_URL_PREFIX,
) -> int:
    """
    Extract a Ghost archive into a Zola content directory

    Each post is written to extract_path/yyyy/mm/dd/slug.md with TOML
    front matter; images are mirrored to extract_path/yyyy/mm/*, and
    every directory gets an _index.md if it lacks one.

    Posts whose markdown was lost (e.g. by a previous Ghost import) are
    written with an empty body. Consider regenerating their markdown
    from the rendered HTML with a different tool.

    Args:
        archive_path: Possibly-compressed tar archiving a Ghost blog
        prefix: Archive-relative prefix to search for ghost.db within
        extract_path: Existing directory, normally Zola's content/blog
        image_url_prefix: URL prefix internal image links are rewritten to

    Returns:
        Number of posts written
    """
    with extract_images_and_db(archive_path, prefix, extract_path) as extraction:
        return extract_database(extraction, extract_path, image_url_prefix)
