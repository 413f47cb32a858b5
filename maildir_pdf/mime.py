"""
Locating PDF parts inside a message's MIME tree.

Multipart bodies are split on their boundary delimiters here rather than by
the email package, so every part keeps its raw, still-encoded body and the
transfer encoding can be applied exactly once by the decoder. Nested
multiparts are followed to any depth up to a configurable cap.
"""

import logging
from dataclasses import dataclass
from email import policy
from email.errors import HeaderParseError
from email.header import decode_header
from email.message import Message as EmailMessage
from email.parser import BytesHeaderParser
from email.utils import collapse_rfc2231_value

from .errors import MediaTypeError, MultipartError
from .message import split_header_block, unfold
from .options import DEFAULT_MAX_DEPTH
from .writer import DEFAULT_FILENAME

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

_header_factory = policy.default.header_factory
_part_header_parser = BytesHeaderParser(policy=policy.compat32)


@dataclass
class MimePart:
    """One body part of a multipart container."""

    headers: EmailMessage
    body: bytes

    def header(self, name, default=""):
        value = self.headers.get(name)
        if value is None:
            return default
        return unfold(value)

    @property
    def content_type(self):
        return self.header("Content-Type")

    @property
    def transfer_encoding(self):
        return self.header("Content-Transfer-Encoding")


@dataclass(frozen=True)
class PdfPart:
    """A PDF leaf found in the tree, body still transfer-encoded."""

    filename: str
    encoding: str
    body: bytes
    location: str


@dataclass(frozen=True)
class BrokenPart:
    """A branch of the tree that could not be split or parsed."""

    location: str
    reason: str


def _parse_parameterized(name, value):
    value = unfold(value).strip()
    try:
        return _header_factory(name, value)
    except (HeaderParseError, IndexError, TypeError, ValueError) as e:
        raise MediaTypeError(f"invalid {name} {value!r}: {e}") from e


def parse_media_type(value):
    """
    Parse a Content-Type value into its media type and parameters.

    Args:
        value (str): Header value such as 'multipart/mixed; boundary="xyz"'

    Returns:
        tuple: (lower-cased 'type/subtype', dict of lower-cased parameter names
            to values)

    Raises:
        MediaTypeError: If the value is empty or lacks a type/subtype pair
    """
    value = unfold(value).strip()
    media_type = value.split(";", 1)[0].strip()
    maintype, _, subtype = media_type.partition("/")
    if not maintype.strip() or not subtype.strip() or "/" in subtype:
        raise MediaTypeError(f"invalid media type {value!r}")
    header = _parse_parameterized("Content-Type", value)
    return header.content_type, dict(header.params)


def _decode_words(name):
    """Decode RFC 2047 encoded-words, keeping the literal text if any word is malformed."""
    if "=?" not in name:
        return name
    try:
        chunks = decode_header(name)
    except HeaderParseError:
        return name
    decoded = []
    for chunk, charset in chunks:
        if isinstance(chunk, str):
            decoded.append(chunk)
            continue
        try:
            if charset is None:
                decoded.append(chunk.decode("raw-unicode-escape"))
            else:
                decoded.append(chunk.decode(charset.split("*", 1)[0]))
        except (LookupError, UnicodeDecodeError):
            logger.debug("Keeping undecodable filename %r", name)
            return name
    return "".join(decoded)


def extract_filename(part):
    """
    Find the attachment filename of a part.

    The Content-Disposition filename parameter is preferred, then the
    Content-Type name parameter. RFC 2231 and RFC 2047 encodings are decoded.

    Args:
        part (MimePart): Part to inspect

    Returns:
        str: Filename, or an empty string if neither header names one
    """
    for header_name, param in (("Content-Disposition", "filename"), ("Content-Type", "name")):
        value = part.headers.get_param(param, header=header_name)
        if value is None:
            continue
        filename = _decode_words(unfold(collapse_rfc2231_value(value)).strip())
        if filename:
            return filename
    return ""


def iter_multipart(body, boundary):
    """
    Split a multipart body into the raw bytes of each part.

    The preamble before the first delimiter and the epilogue after the close
    delimiter are discarded.

    Args:
        body (bytes): Multipart body
        boundary (str): Boundary parameter of the container

    Yields:
        bytes: Headers and body of each part, in order, still ending with the
            line break that precedes the next delimiter

    Raises:
        MultipartError: If no delimiter is found or the close delimiter is missing
    """
    delimiter = b"--" + boundary.encode("utf-8", "replace")
    close_delimiter = delimiter + b"--"

    lines = None
    for line in body.splitlines(keepends=True):
        marker = line.rstrip(b"\r\n").rstrip(b" \t")
        if marker == delimiter or marker == close_delimiter:
            if lines is not None:
                yield b"".join(lines)
            if marker == close_delimiter:
                return
            lines = []
        elif lines is not None:
            lines.append(line)

    if lines is None:
        raise MultipartError(f"no boundary delimiter {boundary!r} found")
    raise MultipartError(f"missing close delimiter for boundary {boundary!r}")


def parse_part(raw):
    """
    Parse the raw bytes of one body part.

    The line break in front of the next delimiter belongs to the delimiter
    and is removed from the part body.

    Args:
        raw (bytes): Part headers, blank line, part body

    Returns:
        MimePart: Parsed part

    Raises:
        MultipartError: If the part headers are not followed by a blank line
    """
    if not raw:
        return MimePart(headers=EmailMessage(), body=b"")

    if raw.startswith((b"\r\n", b"\n")):
        headers = EmailMessage()
        body = raw[2:] if raw.startswith(b"\r\n") else raw[1:]
    else:
        header_block, body = split_header_block(raw)
        if len(header_block) == len(raw):
            raise MultipartError("part headers are not terminated by a blank line")
        headers = _part_header_parser.parsebytes(header_block + b"\r\n\r\n")

    if body.endswith(b"\r\n"):
        body = body[:-2]
    elif body.endswith(b"\n"):
        body = body[:-1]
    return MimePart(headers=headers, body=body)


def _walk_multipart(body, boundary, location, depth, max_depth):
    if depth > max_depth:
        yield BrokenPart(location or "message", f"multipart nesting deeper than {max_depth} levels")
        return

    try:
        for index, raw in enumerate(iter_multipart(body, boundary), 1):
            child_location = f"{location}.{index}" if location else str(index)
            try:
                part = parse_part(raw)
            except MultipartError as e:
                yield BrokenPart(child_location, str(e))
                continue
            yield from _visit_part(part, child_location, depth, max_depth)
    except MultipartError as e:
        yield BrokenPart(location or "message", str(e))


def _visit_part(part, location, depth, max_depth):
    content_type = part.content_type

    # Nested parts match on the declared value, as written.
    if PDF_MEDIA_TYPE in content_type:
        yield PdfPart(
            filename=extract_filename(part) or DEFAULT_FILENAME,
            encoding=part.transfer_encoding,
            body=part.body,
            location=location,
        )
        return

    if not content_type.strip().lower().startswith("multipart/"):
        logger.debug("Ignoring part %s (%s)", location, content_type or "no Content-Type")
        return

    try:
        _, params = parse_media_type(content_type)
    except MediaTypeError as e:
        yield BrokenPart(location, str(e))
        return

    boundary = params.get("boundary")
    if not boundary:
        logger.debug("Ignoring multipart %s without boundary", location)
        return

    yield from _walk_multipart(part.body, boundary, location, depth + 1, max_depth)


def find_pdf_parts(message, max_depth=DEFAULT_MAX_DEPTH):
    """
    Walk a message's MIME tree and yield its PDF parts.

    A message whose Content-Type is missing or malformed, or a multipart
    without a boundary, yields nothing. A message whose own type is
    application/pdf yields its whole body as a single attachment.

    Args:
        message (Message): Parsed message
        max_depth (int): Deepest multipart nesting to follow

    Yields:
        PdfPart or BrokenPart: PDF leaves in document order, interleaved with
            records for branches that had to be abandoned
    """
    try:
        media_type, params = parse_media_type(message.header("Content-Type"))
    except MediaTypeError as e:
        logger.debug("No usable Content-Type in %s: %s", message.path, e)
        return

    if media_type.startswith("multipart/"):
        boundary = params.get("boundary")
        if not boundary:
            logger.debug("Multipart message %s has no boundary", message.path)
            return
        yield from _walk_multipart(message.body, boundary, "", 1, max_depth)
    elif media_type == PDF_MEDIA_TYPE:
        yield PdfPart(
            filename=DEFAULT_FILENAME,
            encoding=message.header("Content-Transfer-Encoding"),
            body=message.body,
            location="1",
        )
