"""
Maildir PDF Extractor

Walks a local Maildir store and saves every PDF attachment it finds into an
output directory, stamped with the date of the email it came from.

Features:
- Discovers INBOX and all Maildir++ sub-folders, never following symlinks
- Finds PDFs at any multipart nesting depth
- Decodes base64 attachments, including wrapped lines
- Sanitizes filenames and never overwrites an existing file
- Sets each PDF's access and modification time to the email's Date header

Usage:
    maildir2pdf path-to-maildir [--output-dir DIR] [--older-than DATE]

License: MIT
Version: 1.0.0
"""

from .errors import (
    DecodeError,
    DiscoveryError,
    MailboxScanError,
    MaildirPdfError,
    MediaTypeError,
    MessageParseError,
    MultipartError,
    WriteError,
)
from .events import AttachmentSaved, ScanStats, ScanWarning
from .mailboxes import Mailbox, discover_mailboxes, iter_message_files
from .options import ScanOptions
from .scanner import MaildirScanner, scan_maildir

__version__ = "1.0.0"

__all__ = [
    "AttachmentSaved",
    "DecodeError",
    "DiscoveryError",
    "Mailbox",
    "MailboxScanError",
    "MaildirPdfError",
    "MaildirScanner",
    "MediaTypeError",
    "MessageParseError",
    "MultipartError",
    "ScanOptions",
    "ScanStats",
    "ScanWarning",
    "WriteError",
    "discover_mailboxes",
    "iter_message_files",
    "scan_maildir",
]
