"""
Ghost export archive reader

This module classifies an input file by its content, opens it as a
forward-only tar stream and locates the ghost.db inside it. The
compressed streams cannot seek, so every pass over an archive starts
from a freshly opened stream.
"""

import itertools
import tarfile
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path, PurePosixPath

import filetype
from loguru import logger

from .errors import GhostDbNotFound, MultipleGhostDb, NotTar

GHOST_DB_NAME: str = "ghost.db"


class FileType(Enum):
    """
    Content-sniffed input classification

    Only these four kinds are understood; anything else is reported
    as None by from_path().
    """

    SQLITE3 = "sqlite3"
    TAR = "tar"
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"

    @classmethod
    def from_media_type(cls, media_type: str | None) -> "FileType | None":
        """
        Map a media type to a FileType

        Args:
            media_type: MIME type reported by content sniffing

        Returns:
            Matching FileType, or None if unsupported
        """
        if media_type is None:
            return None
        return _MEDIA_TYPES.get(media_type)

    @classmethod
    def from_path(cls, path: Path | str) -> "FileType | None":
        """
        Classify a file by inspecting its content

        The file name and extension are never consulted.

        Args:
            path: File to inspect

        Returns:
            Detected FileType, or None if the content is not recognized
        """
        return cls.from_media_type(sniff_media_type(path))


# Both the freedesktop names and the aliases reported by libmagic/filetype
_MEDIA_TYPES: dict[str, FileType] = {
    "application/vnd.sqlite3": FileType.SQLITE3,
    "application/x-sqlite3": FileType.SQLITE3,
    "application/x-tar": FileType.TAR,
    "application/gzip": FileType.TAR_GZ,
    "application/x-gzip": FileType.TAR_GZ,
    "application/x-bzip": FileType.TAR_BZ2,
    "application/x-bzip2": FileType.TAR_BZ2,
}

# Stream modes: forward-only decoding, no seeking
_STREAM_MODES: dict[FileType, str] = {
    FileType.TAR: "r|",
    FileType.TAR_GZ: "r|gz",
    FileType.TAR_BZ2: "r|bz2",
}


def sniff_media_type(path: Path | str) -> str | None:
    """
    Return the media type of a file as detected from its content

    Args:
        path: File to inspect

    Returns:
        MIME type string, or None if no signature matched
    """
    # Archive matchers only: a tar whose first member is named "BM..."
    # would otherwise be taken for a bitmap
    kind = filetype.archive_match(str(path))
    return kind.mime if kind is not None else None


def log_progress(idx: int, verb: str) -> None:
    """
    Periodically report how many archive entries have been seen

    Args:
        idx: Zero-based index of the current entry
        verb: Past-tense verb describing the pass ("inspected", "processed")
    """
    if idx <= 0:
        return
    if idx & 0x7FFF == 0:
        logger.info(f"{verb} {idx} archive entries")
    elif idx & 0x1FFF == 0:
        logger.trace(f"{verb} {idx} archive entries")


@contextmanager
def open_archive(path: Path | str) -> Iterator[tarfile.TarFile]:
    """
    Open a possibly-compressed tar file as a forward-only stream

    The decoder is chosen from the sniffed content type, not from the
    file name.

    Args:
        path: Archive to open

    Yields:
        Stream-mode TarFile positioned at the first entry

    Raises:
        NotTar: If the file is a bare SQLite database or unrecognized
    """
    file_type: FileType | None = FileType.from_path(path)
    mode: str | None = _STREAM_MODES.get(file_type) if file_type else None
    if mode is None:
        raise NotTar(path)

    with open(path, "rb") as raw:
        with tarfile.open(fileobj=raw, mode=mode) as archive:
            yield archive


def entry_path(member: tarfile.TarInfo) -> PurePosixPath:
    """
    Archive-relative path of an entry

    Leading "./" and repeated separators are normalized away so that
    "./blog/data/ghost.db" and "blog/data/ghost.db" compare equal.
    """
    return PurePosixPath(member.name)


def find_ghost_dbs(archive: tarfile.TarFile) -> Iterator[PurePosixPath]:
    """
    Lazily yield the path of every ghost.db within an archive

    Args:
        archive: Stream-mode archive; consumed as the generator advances

    Yields:
        Archive-relative path of each entry named exactly ghost.db
    """
    for idx, member in enumerate(archive):
        log_progress(idx, "inspected")
        path: PurePosixPath = entry_path(member)
        if path.name == GHOST_DB_NAME:
            yield path


def find_ghost_db(
    archive: tarfile.TarFile,
    prefix: PurePosixPath | str | None = None,
) -> PurePosixPath:
    """
    Find the single ghost.db within an archive

    Stops reading as soon as a second candidate shows up.

    Args:
        archive: Stream-mode archive
        prefix: Only consider candidates under this archive-relative path

    Returns:
        Archive-relative path of the database

    Raises:
        GhostDbNotFound: If there is no candidate
        MultipleGhostDb: If there is more than one candidate
    """
    candidates: Iterator[PurePosixPath] = find_ghost_dbs(archive)
    if prefix is not None:
        prefix_path: PurePosixPath = PurePosixPath(prefix)
        candidates = (path for path in candidates if path.is_relative_to(prefix_path))

    dbs: list[PurePosixPath] = list(itertools.islice(candidates, 2))
    if not dbs:
        raise GhostDbNotFound()
    if len(dbs) > 1:
        raise MultipleGhostDb()
    return dbs[0]


def find_ghost_db_in(
    path: Path | str,
    prefix: PurePosixPath | str | None = None,
) -> PurePosixPath:
    """
    Open an archive and find the single ghost.db within it

    Args:
        path: Archive to search
        prefix: Only consider candidates under this archive-relative path

    Returns:
        Archive-relative path of the database
    """
    logger.info("analyzing archive")
    with open_archive(path) as archive:
        return find_ghost_db(archive, prefix)
