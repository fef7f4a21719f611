#!/usr/bin/env python3
"""
Ghost to Zola migration CLI

This is the main entry point for the Ghost to Zola migration tool.
It turns a (possibly compressed) tar archive of a Ghost install into a
Zola content directory:

1. Sniff the archive type from its content
2. Locate the single ghost.db inside the archive
3. Extract the database to a temporary file and mirror the images
4. Read posts, authors and tags from the database
5. Write one markdown file with TOML front matter per post
6. Create missing _index.md section files

Architecture:
- archive: FileType sniffing, tar stream decoding, ghost.db lookup
- extractor: Two-pass extraction of database and images
- image_handler: Path-traversal-safe image unpacking
- repository: Posts, authors and tags from the Ghost database
- converter: Link, footnote, slug and front matter rewriting
- exporter: Zola content tree and section indices
- parser: Ghost JSON export model

Usage:
    ghost2zola extract backup.tar.gz content/blog
    ghost2zola extract backup.tar.bz2 content/blog --prefix var/www/blog-two
    ghost2zola find-db backup.tar.gz --all
    ghost2zola check-file-type backup.tar.gz ghost.db
    ghost2zola check-parse export.json

Output:
    content/blog/
    ├── _index.md
    ├── 2021/
    │   ├── _index.md
    │   └── 05/
    │       ├── _index.md
    │       ├── pic.png         (mirrored image)
    │       └── 14/
    │           ├── _index.md
    │           └── my-post.md  (converted post)
    └── undated/
        └── draft-post.md
"""

import sys
import tarfile
from pathlib import Path, PurePosixPath

import click
import pydantic
from loguru import logger

from ghost2zola.archive import (
    FileType,
    find_ghost_db,
    find_ghost_dbs,
    open_archive,
    sniff_media_type,
)
from ghost2zola.converter import DEFAULT_IMAGE_URL_PREFIX
from ghost2zola.errors import Ghost2ZolaError
from ghost2zola.extractor import extract_archive
from ghost2zola.parser import load_export


def configure_logging(verbose: bool) -> None:
    """
    Send log output to stderr

    Args:
        verbose: Enable debug logging
    """
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
    else:
        logger.add(sys.stderr, level="INFO", format="<level>{message}</level>")


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def cli(verbose: bool) -> None:
    """Convert Ghost blog archives to Zola content"""
    configure_logging(verbose)


@cli.command()
@click.argument(
    "archive_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "extract_path",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--prefix",
    type=click.Path(path_type=PurePosixPath),
    envvar="GHOST2ZOLA_PREFIX",
    default=None,
    help="Relative prefix within the archive to search for ghost.db "
    "(only needed when the archive holds several blogs)",
)
@click.option(
    "--image-url-prefix",
    envvar="GHOST2ZOLA_IMAGE_URL_PREFIX",
    default=DEFAULT_IMAGE_URL_PREFIX,
    show_default=True,
    help="URL prefix that /content/images links are rewritten to",
)
def extract(
    archive_path: Path,
    extract_path: Path,
    prefix: PurePosixPath | None,
    image_url_prefix: str,
) -> None:
    """
    Expand a Ghost archive into a Zola content directory

    ARCHIVE_PATH is a possibly-compressed tar archiving a Ghost blog.
    EXTRACT_PATH is normally the content/blog directory of a Zola site.
    """
    logger.info(f"Archive: {archive_path}")
    logger.info(f"Output: {extract_path}")
    if prefix is not None:
        logger.info(f"Prefix: {prefix}")

    extract_path.mkdir(parents=True, exist_ok=True)

    try:
        n_posts: int = extract_archive(archive_path, prefix, extract_path, image_url_prefix)
    except (Ghost2ZolaError, OSError, tarfile.TarError) as e:
        logger.error(f"Failed: {e}")
        sys.exit(1)

    logger.info(f"Posts: {n_posts}")
    logger.success("Done")


@cli.command("find-db")
@click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--prefix",
    type=click.Path(path_type=PurePosixPath),
    default=None,
    help="Prefix to search for the database within",
)
@click.option(
    "--all",
    "find_all",
    is_flag=True,
    help="Print every candidate instead of searching for a single one",
)
def find_db(path: Path, prefix: PurePosixPath | None, find_all: bool) -> None:
    """Print the path of the ghost.db inside an archive"""
    try:
        with open_archive(path) as archive:
            if find_all:
                for db_path in find_ghost_dbs(archive):
                    click.echo(str(db_path))
            else:
                click.echo(f"found db path: {find_ghost_db(archive, prefix)}")
    except (Ghost2ZolaError, OSError, tarfile.TarError) as e:
        logger.error(f"Failed: {e}")
        sys.exit(1)


@cli.command("check-file-type")
@click.argument(
    "paths",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def check_file_type(paths: tuple[Path, ...]) -> None:
    """Print the sniffed media type and classification of each file"""
    if not paths:
        return

    width: int = max(len(str(path)) for path in paths)
    for path in paths:
        media_type: str | None = sniff_media_type(path)
        detected: FileType | None = FileType.from_media_type(media_type)
        click.echo(
            f"{str(path):>{width}}: {media_type or 'unknown':30} "
            f"{detected.name if detected else None}"
        )


@cli.command("check-parse")
@click.argument(
    "input_file",
    type=click.File("rb"),
    default="-",
)
def check_parse(input_file) -> None:
    """Check that a Ghost JSON export parses (stdin if INPUT_FILE is absent)"""
    try:
        export = load_export(input_file.read())
        for db in export.dbs():
            posts = db.data.typed_posts()
            logger.debug(f"Ghost {db.meta.version}: {len(posts)} posts, {len(db.data.tags)} tags")
    except pydantic.ValidationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    click.echo("parsed ok!")


if __name__ == "__main__":
    cli()
