"""Records produced while scanning, consumed by the CLI or any other caller."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# Warning scopes, from widest to narrowest.
SCOPE_MAILBOX = "mailbox"
SCOPE_MESSAGE = "message"
SCOPE_PART = "part"
SCOPE_ATTACHMENT = "attachment"
SCOPE_TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class AttachmentSaved:
    """A PDF attachment was written to disk."""

    output_path: str
    message_path: str
    mailbox: str
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ScanWarning:
    """A recoverable failure; the scan carried on after it."""

    scope: str
    path: str
    mailbox: str
    reason: str

    def __str__(self):
        return f"{self.scope} {self.path} in mailbox {self.mailbox}: {self.reason}"


@dataclass
class ScanStats:
    """Running totals for one scan."""

    mailboxes: int = 0
    messages: int = 0
    skipped: int = 0
    attachments: int = 0
    warnings: int = 0
    failed_mailboxes: list = field(default_factory=list)

    def record(self, event):
        if isinstance(event, AttachmentSaved):
            self.attachments += 1
        elif isinstance(event, ScanWarning):
            self.warnings += 1
            if event.scope == SCOPE_MAILBOX:
                self.failed_mailboxes.append(event.mailbox)
