"""
Exception hierarchy for the maildir PDF extractor.

Only DiscoveryError is allowed to escape a scan. Every other error is caught
by the scope it belongs to (mailbox, message, MIME branch or attachment) and
turned into a warning so the rest of the store is still processed.
"""


class MaildirPdfError(Exception):
    """Base class for all errors raised by this package."""


class DiscoveryError(MaildirPdfError):
    """The maildir root is missing or could not be traversed."""


class MailboxScanError(MaildirPdfError):
    """A mailbox's cur/new/tmp directory could not be walked."""


class MessageParseError(MaildirPdfError):
    """A message file could not be opened or has no header block."""


class MediaTypeError(MaildirPdfError):
    """A Content-Type value is empty or has no type/subtype."""


class MultipartError(MaildirPdfError):
    """A multipart body could not be split into parts."""


class DecodeError(MaildirPdfError):
    """An attachment body could not be decoded."""


class WriteError(MaildirPdfError):
    """An extracted attachment could not be written to disk."""
