"""
Scan orchestration: mailboxes -> message files -> MIME tree -> PDF files.

Every step reports its outcome as an event instead of raising, so one bad
mailbox, message or attachment never stops the rest of the scan. The only
exception that leaves the scanner is DiscoveryError, raised before any
message is touched.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .decoding import decode_payload
from .errors import DecodeError, MailboxScanError, MessageParseError, WriteError
from .events import (
    SCOPE_ATTACHMENT,
    SCOPE_MAILBOX,
    SCOPE_MESSAGE,
    SCOPE_PART,
    SCOPE_TIMESTAMP,
    AttachmentSaved,
    ScanStats,
    ScanWarning,
)
from .mailboxes import discover_mailboxes, iter_message_files
from .message import read_message
from .mime import BrokenPart, find_pdf_parts
from .options import ScanOptions
from .writer import OutputWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedAttachment:
    """A decoded PDF on its way to the writer."""

    filename: str
    data: bytes
    message_path: str
    mailbox: str
    timestamp: Optional[datetime] = None


def as_utc(value):
    """Treat a naive datetime as UTC; leave aware ones alone."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MaildirScanner:
    """
    Extracts the PDF attachments of every message below a maildir root.

    Args:
        maildir_root (str): Root directory of the Maildir store
        options (ScanOptions): Scan settings, defaults if omitted
        writer (OutputWriter): Writer to use; one for options.output_dir is
            created if omitted
    """

    def __init__(self, maildir_root, options=None, writer=None):
        self.maildir_root = maildir_root
        self.options = options or ScanOptions()
        self.writer = writer or OutputWriter(self.options.output_dir)
        self.older_than = as_utc(self.options.older_than)
        self.stats = ScanStats()

    def discover(self):
        """Return the mailboxes below the root. Raises DiscoveryError."""
        mailboxes = discover_mailboxes(self.maildir_root)
        logger.debug("Discovered %d mailbox(es) below %s", len(mailboxes), self.maildir_root)
        return mailboxes

    def scan(self, mailboxes=None):
        """
        Process every mailbox, yielding AttachmentSaved and ScanWarning events.

        Args:
            mailboxes (list): Mailboxes to process; discovered if omitted
        """
        if mailboxes is None:
            mailboxes = self.discover()
        for mailbox in mailboxes:
            yield from self.scan_mailbox(mailbox)

    def scan_mailbox(self, mailbox):
        self.stats.mailboxes += 1
        logger.debug("Scanning mailbox %s (%s)", mailbox.name, mailbox.path)
        try:
            for path in iter_message_files(mailbox):
                yield from self.process_message(path, mailbox)
        except MailboxScanError as e:
            logger.error("Error scanning mailbox %s: %s", mailbox.name, e)
            yield self._warning(SCOPE_MAILBOX, mailbox.path, mailbox, str(e), log=False)

    def process_message(self, path, mailbox):
        try:
            message = read_message(path)
        except MessageParseError as e:
            yield self._warning(SCOPE_MESSAGE, path, mailbox, str(e))
            return

        if self._filtered_out(message):
            self.stats.skipped += 1
            logger.debug("Skipping %s: dated %s, not older than %s", path, message.date, self.older_than)
            return

        self.stats.messages += 1
        for found in find_pdf_parts(message, self.options.max_depth):
            if isinstance(found, BrokenPart):
                yield self._warning(SCOPE_PART, f"{path} part {found.location}", mailbox, found.reason)
                continue
            yield from self.save_attachment(found, message, mailbox)

    def save_attachment(self, part, message, mailbox):
        try:
            data = decode_payload(part.body, part.encoding, self.options.decode_quoted_printable)
        except DecodeError as e:
            yield self._warning(SCOPE_ATTACHMENT, f"{message.path} part {part.location}", mailbox, str(e))
            return

        attachment = ExtractedAttachment(
            filename=part.filename,
            data=data,
            message_path=message.path,
            mailbox=mailbox.name,
            timestamp=message.date,
        )
        try:
            result = self.writer.write(attachment.data, attachment.filename, attachment.timestamp)
        except WriteError as e:
            yield self._warning(SCOPE_ATTACHMENT, f"{message.path} part {part.location}", mailbox, str(e))
            return

        if result.timestamp_error:
            yield self._warning(SCOPE_TIMESTAMP, result.path, mailbox, result.timestamp_error)

        saved = AttachmentSaved(
            output_path=result.path,
            message_path=attachment.message_path,
            mailbox=attachment.mailbox,
            timestamp=attachment.timestamp,
        )
        self.stats.record(saved)
        yield saved

    def _filtered_out(self, message):
        if self.older_than is None or message.date is None:
            return False
        return message.date >= self.older_than

    def _warning(self, scope, path, mailbox, reason, log=True):
        warning = ScanWarning(scope=scope, path=path, mailbox=mailbox.name, reason=reason)
        if log:
            logger.warning("%s", warning)
        self.stats.record(warning)
        return warning


def scan_maildir(maildir_root, options=None):
    """
    Extract all PDF attachments below a maildir root.

    Convenience wrapper around MaildirScanner. Discovery runs when the
    returned generator is first advanced.

    Args:
        maildir_root (str): Root directory of the Maildir store
        options (ScanOptions): Scan settings

    Returns:
        generator: AttachmentSaved and ScanWarning events
    """
    return MaildirScanner(maildir_root, options).scan()
