"""
Reading a single Maildir file as a mail message.

The header block and Date are parsed with mailparser; the body is kept as the raw,
still-encoded bytes that follow the first blank line so that the MIME
structure can be split and decoded by this package rather than by the parser.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import Message as EmailMessage
from typing import Optional

import mailparser

from .errors import MessageParseError

logger = logging.getLogger(__name__)

_HEADER_BODY_SEPARATOR = re.compile(rb"\r?\n\r?\n")


def unfold(value):
    """Join a folded header value back onto one line."""
    if value is None:
        return ""
    return "".join(str(value).splitlines())


def split_header_block(raw):
    """
    Split raw message or part bytes at the first blank line.

    Args:
        raw (bytes): Headers, blank line, body

    Returns:
        tuple: (header bytes, body bytes). The body is empty when there is no
            blank line.
    """
    match = _HEADER_BODY_SEPARATOR.search(raw)
    if match is None:
        return raw, b""
    return raw[:match.start()], raw[match.end():]


def mail_date(mail):
    """
    Get the Date of a parsed mail as a timezone-aware datetime.

    Args:
        mail: Parsed mailparser object

    Returns:
        datetime: The Date header in UTC, or None if it is missing or
            malformed. A date without zone information is taken as UTC.
    """
    date = mail.date
    if not date:
        return None
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date


@dataclass
class Message:
    """A parsed message file."""

    path: str
    headers: EmailMessage
    body: bytes
    date: Optional[datetime] = None

    def header(self, name, default=""):
        """Return the first value of a header, unfolded, or default."""
        value = self.headers.get(name)
        if value is None:
            return default
        return unfold(value)


def read_message(path):
    """
    Read and parse one message file.

    Args:
        path (str): Path to the message file

    Returns:
        Message: Headers, raw body and Date of the message

    Raises:
        MessageParseError: If the file cannot be read or has no header block
    """
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise MessageParseError(f"error opening {path}: {e.strerror or e}") from e

    try:
        mail = mailparser.parse_from_bytes(raw)
    except Exception as e:
        raise MessageParseError(f"error parsing {path}: {e}") from e

    headers = mail.message
    if headers is None or not headers.keys():
        raise MessageParseError(f"error parsing {path}: no header block found")

    _, body = split_header_block(raw)
    message = Message(path=path, headers=headers, body=body, date=mail_date(mail))
    logger.debug("Parsed %s (subject %r, date %s)", path, message.header("Subject"), message.date)
    return message
