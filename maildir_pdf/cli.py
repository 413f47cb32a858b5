"""
Command-line entry point: ``maildir2pdf MAILDIR [options]``.
"""

import argparse
import logging
import os
import sys
from datetime import datetime

from dateutil.parser import ParserError
from dateutil.parser import parse as date_parse

from . import __version__
from .errors import DiscoveryError
from .events import AttachmentSaved, ScanWarning
from .options import DEFAULT_MAX_DEPTH, ScanOptions
from .scanner import MaildirScanner

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

FALLBACK_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%m/%d/%Y",
]


def parse_date_string(date_string):
    """
    Parse a user supplied date into a datetime object.

    dateutil handles most formats; a few common ones are tried by hand if it
    gives up.

    Args:
        date_string (str): Date string in various formats

    Returns:
        datetime: Parsed datetime object

    Raises:
        ValueError: If the date string cannot be parsed
    """
    try:
        return date_parse(date_string)
    except (ParserError, ValueError, OverflowError):
        for fmt in FALLBACK_DATE_FORMATS:
            try:
                return datetime.strptime(date_string, fmt)
            except ValueError:
                continue

        raise ValueError(f"Unable to parse date: {date_string}")


def _date_argument(value):
    try:
        return parse_date_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="maildir2pdf",
        description="Extract PDF attachments from every mailbox of a Maildir store",
        epilog="""
Examples:
  Extract into the current directory:
    %(prog)s ~/Maildir

  Extract into an archive directory, old mail only:
    %(prog)s ~/Maildir -o ./pdfs --older-than 2023-01-01
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("maildir_root", nargs="?",
                        help="Path to the Maildir root (e.g. ~/Maildir)")
    parser.add_argument("--maildir", dest="maildir_option", metavar="MAILDIR",
                        help="Same as the positional MAILDIR argument")
    parser.add_argument("-o", "--output-dir",
                        help="Directory to write PDFs to (default: current directory)")
    parser.add_argument("--older-than", type=_date_argument,
                        help="Only extract from emails older than this date "
                             "(format: YYYY-MM-DD or YYYY-MM-DD HH:MM:SS)")
    parser.add_argument("--decode-quoted-printable", action="store_true",
                        help="Decode quoted-printable attachments instead of writing them as is")
    parser.add_argument("--max-depth", type=_positive_int, default=DEFAULT_MAX_DEPTH,
                        help=f"Deepest multipart nesting to follow (default: {DEFAULT_MAX_DEPTH})")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose=False, quiet=False):
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # mailparser warns about every content type it does not render itself
    logging.getLogger("mailparser").setLevel(logging.DEBUG if verbose else logging.ERROR)


def tolerate_undecodable_paths(*streams):
    """
    Let the output streams print file names that are not valid in their encoding.

    Such names come back from os.walk with surrogate escapes; they are shown
    as backslash escapes instead of aborting the scan.
    """
    for stream in streams:
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="backslashreplace")


def main(argv=None):
    """
    Main entry point.

    Args:
        argv (list): Arguments without the program name, sys.argv if omitted

    Returns:
        int: Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    maildir_root = args.maildir_root or args.maildir_option
    if not maildir_root:
        parser.error("Please specify a maildir path (MAILDIR or --maildir)")
    if args.maildir_root and args.maildir_option and args.maildir_root != args.maildir_option:
        parser.error("MAILDIR and --maildir name different directories")

    tolerate_undecodable_paths(sys.stdout, sys.stderr)
    configure_logging(args.verbose, args.quiet)

    maildir_root = os.path.abspath(os.path.expanduser(maildir_root))
    output_dir = os.path.abspath(os.path.expanduser(args.output_dir or os.getcwd()))
    if not os.path.isdir(output_dir):
        print(f"❌ Output directory does not exist: {output_dir}")
        return 1

    options = ScanOptions(
        output_dir=output_dir,
        older_than=args.older_than,
        decode_quoted_printable=args.decode_quoted_printable,
        max_depth=args.max_depth,
    )
    scanner = MaildirScanner(maildir_root, options)

    print(f"📥 Maildir root: {maildir_root}")
    if options.older_than:
        print(f"📅 Date filter: Only extracting from emails older than {options.older_than}")

    try:
        mailboxes = scanner.discover()
    except DiscoveryError as e:
        print(f"❌ Error discovering mailboxes: {e}")
        return 1

    if not mailboxes:
        print("❌ No mailboxes found (no cur/new/tmp directories)")
        print("💡 Tip: Check that the maildir root path is correct")
        return 0

    print(f"📁 Found {len(mailboxes)} mailbox(es):")
    for mailbox in mailboxes:
        print(f"   - {mailbox.name} -> {mailbox.path}")
    print(f"📤 Writing PDFs to: {output_dir}\n")

    for mailbox in mailboxes:
        saved = 0
        warnings = 0
        print(f"📂 Processing mailbox: {mailbox.name}")
        for event in scanner.scan([mailbox]):
            if isinstance(event, AttachmentSaved):
                saved += 1
                print(f"📎 Saved PDF: {event.output_path} (from {event.message_path} in mailbox {event.mailbox})")
            elif isinstance(event, ScanWarning):
                warnings += 1
        print(f"📊 Mailbox summary: {saved} PDF(s) saved, {warnings} warning(s)\n")

    stats = scanner.stats
    print("🎉 Extraction complete!")
    print(f"📊 Total: {stats.attachments} PDF(s) saved from {stats.messages} email(s) "
          f"in {stats.mailboxes} mailbox(es), {stats.warnings} warning(s)")
    if stats.skipped:
        print(f"⏭️ Skipped by date filter: {stats.skipped} email(s)")
    if stats.failed_mailboxes:
        print(f"⚠️ Mailboxes that could not be fully scanned: {', '.join(stats.failed_mailboxes)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
