"""
Writing extracted PDFs to the output directory.

Existing files are never overwritten: a taken name gets a ``_1``, ``_2``, ...
suffix in front of its extension. The free name is claimed with an exclusive
create, so the check and the creation cannot be split by another writer.
"""

import itertools
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .errors import WriteError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "attachment.pdf"
UNSAFE_CHARACTERS = '/\\:*?"<>|'
FILE_MODE = 0o644

_OPEN_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)


def sanitize_filename(filename):
    """
    Make an attachment name safe to use as a file in the output directory.

    Args:
        filename (str): Suggested attachment filename

    Returns:
        str: The name with each of / \\ : * ? " < > | replaced by an
            underscore, or attachment.pdf if it is empty
    """
    for character in UNSAFE_CHARACTERS:
        filename = filename.replace(character, "_")
    return filename or DEFAULT_FILENAME


def split_extension(filename):
    """Split a filename on its last dot: ('report.v2', '.pdf')."""
    index = filename.rfind(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def candidate_names(filename):
    """Yield filename, then stem_1.ext, stem_2.ext, ..."""
    yield filename
    stem, extension = split_extension(filename)
    for counter in itertools.count(1):
        yield f"{stem}_{counter}{extension}"


@dataclass(frozen=True)
class WriteResult:
    """Outcome of writing one attachment."""

    path: str
    timestamp_error: Optional[str] = None


class OutputWriter:
    """
    Writes attachments into one directory.

    Args:
        output_dir (str): Target directory. None means the current working
            directory at the time each file is written.
    """

    def __init__(self, output_dir=None):
        self.output_dir = output_dir

    def directory(self):
        return os.path.abspath(self.output_dir or os.getcwd())

    def _create(self, directory, filename):
        for name in candidate_names(filename):
            path = os.path.join(directory, name)
            if os.path.lexists(path):
                continue
            try:
                return path, os.open(path, _OPEN_FLAGS, FILE_MODE)
            except FileExistsError:
                # claimed between the check and the create
                continue

    def write(self, data, filename, timestamp=None):
        """
        Write an attachment under a free, sanitized name.

        Args:
            data (bytes): Decoded attachment content
            filename (str): Suggested filename
            timestamp (datetime): Optional access and modification time to set

        Returns:
            WriteResult: The path written and, if the timestamp could not be
                applied, the reason

        Raises:
            WriteError: If the file cannot be created or fully written
        """
        directory = self.output_dir
        try:
            directory = self.directory()
            path, fd = self._create(directory, sanitize_filename(filename))
        except (OSError, ValueError) as e:
            raise WriteError(f"error creating PDF file for {filename!r} in {directory or 'working directory'}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            try:
                os.unlink(path)
            except OSError:
                logger.debug("Could not remove partial file %s", path)
            raise WriteError(f"error writing PDF file {path}: {e.strerror or e}") from e

        timestamp_error = None
        if timestamp is not None:
            try:
                seconds = timestamp.timestamp()
                os.utime(path, (seconds, seconds))
            except (OSError, OverflowError, ValueError) as e:
                timestamp_error = f"could not set timestamp for {path}: {e}"

        return WriteResult(path=path, timestamp_error=timestamp_error)
