"""
Exceptions raised by the Ghost to Zola extraction pipeline

Every error here is fatal for the current extraction run. Filesystem
and archive I/O failures are not wrapped: they surface as the OSError
or tarfile.TarError raised by the standard library.
"""


class Ghost2ZolaError(Exception):
    """Base class for all extraction errors"""


class NotTar(Ghost2ZolaError):
    """Input is not a plain, gzip or bzip2 compressed tar file"""

    def __init__(self, path: object = None):
        message: str = "input does not appear to be a (compressed) tar file"
        if path is not None:
            message = f"{message}: {path}"
        super().__init__(message)


class GhostDbNotFound(Ghost2ZolaError):
    """No ghost.db within the search area"""

    def __init__(self):
        super().__init__("input does not contain a ghost.db within search area")


class MultipleGhostDb(Ghost2ZolaError):
    """More than one ghost.db within the search area"""

    def __init__(self):
        super().__init__("input contains more than one ghost.db within search area")


class StripPrefixError(Ghost2ZolaError):
    """An image entry could not be made relative to the images base"""


class DatabaseError(Ghost2ZolaError):
    """Reading the ghost database failed"""


class FrontmatterError(Ghost2ZolaError):
    """Generating the TOML front matter failed"""
