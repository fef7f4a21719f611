"""
Image extraction for Ghost to Zola migration

This module unpacks image entries found under the Ghost images/
directory of an archive into the Zola content tree, refusing any
entry that would land outside the extraction root.
"""

import os
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import IO

from loguru import logger

from .errors import StripPrefixError


class ImageHandler:
    """
    Handler for image entries of a Ghost archive

    Assuming the ghost database lives at a/b/c/data/ghost.db, a standard
    Ghost install keeps its uploads in a/b/c/images/yyyy/mm/*. Those are
    mirrored into extract_root/yyyy/mm/*.

    Archives can come from untrusted sources, so every destination is
    resolved against the extraction root before anything is written.
    """

    def __init__(self, extract_root: Path, images_base: PurePosixPath):
        """
        Initialize image handler

        Args:
            extract_root: Absolute, canonical extraction root
            images_base: Archive-relative images/ directory next to the database
        """
        self.extract_root: Path = extract_root
        self.images_base: PurePosixPath = images_base

        # Destinations actually written, in archive order
        self.images: list[Path] = []

    def owns(self, path: PurePosixPath) -> bool:
        """
        Check whether an archive entry lives under the images base

        Args:
            path: Archive-relative entry path

        Returns:
            True if the entry is an image candidate
        """
        return path.is_relative_to(self.images_base)

    def destination(self, path: PurePosixPath) -> Path | None:
        """
        Compute where an image entry should be written

        The joined path is fully resolved before the containment check,
        so any number of ".." segments or symlinks already present in
        the tree are accounted for.

        Args:
            path: Archive-relative entry path under the images base

        Returns:
            Absolute destination inside the extraction root, or None if
            the entry would escape it

        Raises:
            StripPrefixError: If the path is not under the images base
        """
        try:
            subpath: PurePosixPath = path.relative_to(self.images_base)
        except ValueError as e:
            raise StripPrefixError(f"failed to strip {self.images_base} from {path}") from e

        candidate: Path = (self.extract_root / subpath).resolve()
        if candidate == self.extract_root or not candidate.is_relative_to(self.extract_root):
            logger.warning(
                f"malicious file in tar attempted to extract past extraction root: {subpath}"
            )
            return None
        return candidate

    def extract(self, member: tarfile.TarInfo, source: IO[bytes] | None) -> Path | None:
        """
        Unpack a single image entry

        Args:
            member: Archive entry header
            source: Entry content as returned by TarFile.extractfile

        Returns:
            Path written, or None if the entry was skipped
        """
        path: PurePosixPath = PurePosixPath(member.name)
        extract_to: Path | None = self.destination(path)
        if extract_to is None:
            return None

        if not member.isfile() or source is None:
            logger.warning(f"skipping non-regular image entry: {path}")
            return None

        extract_to.parent.mkdir(parents=True, exist_ok=True)
        logger.trace(f"extracting image: {extract_to}")
        with open(extract_to, "wb") as f:
            shutil.copyfileobj(source, f)

        # Keep the upload time, like tar would
        os.utime(extract_to, (member.mtime, member.mtime))

        self.images.append(extract_to)
        return extract_to
