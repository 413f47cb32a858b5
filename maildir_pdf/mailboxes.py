"""
Mailbox discovery and message enumeration for Maildir stores.

A directory is treated as a mailbox when it directly holds at least one of
the Maildir subdirectories ``cur``, ``new`` or ``tmp``. Sub-folders follow the
Maildir++ convention of a leading dot (``.Archive``, ``.Archive.2023``), which
is stripped from the logical name. Symbolic links are never followed.
"""

import logging
import os
import stat
from dataclasses import dataclass

from .errors import DiscoveryError, MailboxScanError

logger = logging.getLogger(__name__)

MAILDIR_SUBDIRS = ("cur", "new", "tmp")
INBOX = "INBOX"


@dataclass(frozen=True)
class Mailbox:
    """A discovered message store."""

    name: str
    path: str


def is_valid_mailbox(path):
    """
    Check whether a directory looks like a Maildir mailbox.

    Args:
        path (str): Directory to inspect

    Returns:
        bool: True if it contains a cur, new or tmp subdirectory
    """
    return any(os.path.isdir(os.path.join(path, sub)) for sub in MAILDIR_SUBDIRS)


def mailbox_name(maildir_root, path):
    """
    Derive the logical mailbox name for a directory below the maildir root.

    The relative path is converted to forward slashes and a single leading
    dot is removed, so ``.Sent`` becomes ``Sent`` and ``.Lists/.python``
    becomes ``Lists/.python``. The root itself is always ``INBOX``.

    Args:
        maildir_root (str): Root directory of the store
        path (str): Mailbox directory

    Returns:
        str: Logical mailbox name
    """
    relative = os.path.relpath(path, maildir_root)
    if relative == os.curdir:
        return INBOX

    name = relative.replace(os.sep, "/")
    if name.startswith("."):
        name = name[1:]
    return name


def _raise_discovery_error(error):
    raise DiscoveryError(f"cannot read {error.filename}: {error.strerror or error}") from error


def _prune_symlinks(parent, dirnames):
    """Drop symlinked directories from an os.walk listing, in place and sorted."""
    kept = []
    for name in sorted(dirnames):
        if os.path.islink(os.path.join(parent, name)):
            logger.debug("Skipping symlinked directory %s", os.path.join(parent, name))
            continue
        kept.append(name)
    dirnames[:] = kept


def discover_mailboxes(maildir_root):
    """
    Find every mailbox below a maildir root.

    The tree is walked depth first in sorted name order without following
    symbolic links. The root is reported first as INBOX if it qualifies.
    Any directory that cannot be read aborts discovery, since messages are
    only processed once the complete mailbox list is known.

    Args:
        maildir_root (str): Root directory of the store

    Returns:
        list: Mailbox objects in traversal order

    Raises:
        DiscoveryError: If the root does not exist or a directory cannot be read
    """
    if not os.path.isdir(maildir_root):
        raise DiscoveryError(f"maildir root {maildir_root} does not exist or is not a directory")

    mailboxes = []
    if is_valid_mailbox(maildir_root):
        mailboxes.append(Mailbox(name=INBOX, path=maildir_root))

    for dirpath, dirnames, _ in os.walk(maildir_root, onerror=_raise_discovery_error):
        _prune_symlinks(dirpath, dirnames)
        if dirpath == maildir_root:
            continue
        if is_valid_mailbox(dirpath):
            mailbox = Mailbox(name=mailbox_name(maildir_root, dirpath), path=dirpath)
            logger.debug("Found mailbox %s at %s", mailbox.name, mailbox.path)
            mailboxes.append(mailbox)

    return mailboxes


def _is_regular_file(path):
    try:
        mode = os.lstat(path).st_mode
    except FileNotFoundError:
        # delivered or moved out of tmp/new while we were walking
        return False
    except OSError as e:
        raise MailboxScanError(f"cannot stat {path}: {e.strerror or e}") from e
    return stat.S_ISREG(mode)


def iter_message_files(mailbox):
    """
    Yield the path of every message file stored in a mailbox.

    Each of cur, new and tmp is walked recursively if present; a missing or
    symlinked subdirectory is skipped. Symlinks and anything that is not a
    regular file are ignored.

    Args:
        mailbox (Mailbox): Mailbox to enumerate

    Yields:
        str: Path of a message file

    Raises:
        MailboxScanError: If a directory cannot be walked
    """
    def on_error(error):
        raise MailboxScanError(
            f"error walking {error.filename}: {error.strerror or error}"
        ) from error

    for sub in MAILDIR_SUBDIRS:
        store = os.path.join(mailbox.path, sub)
        if os.path.islink(store) or not os.path.isdir(store):
            continue

        for dirpath, dirnames, filenames in os.walk(store, onerror=on_error):
            _prune_symlinks(dirpath, dirnames)
            for filename in sorted(filenames):
                path = os.path.join(dirpath, filename)
                if _is_regular_file(path):
                    yield path
                else:
                    logger.debug("Skipping %s: not a regular file", path)
