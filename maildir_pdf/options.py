"""Scan configuration."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_MAX_DEPTH = 32


@dataclass(frozen=True)
class ScanOptions:
    """
    Settings that control one scan.

    Attributes:
        output_dir: Directory extracted PDFs are written to. None means the
            current working directory at the time the scan runs.
        older_than: Only messages dated strictly before this instant are
            processed. Messages without a usable Date header always are.
        decode_quoted_printable: Decode quoted-printable parts instead of
            writing them through unchanged.
        max_depth: Deepest multipart nesting that is still traversed.
    """

    output_dir: Optional[str] = None
    older_than: Optional[datetime] = None
    decode_quoted_printable: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
