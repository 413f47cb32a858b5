"""
Content-Transfer-Encoding handling for attachment bodies.
"""

import base64
import binascii
import logging
import quopri

from .errors import DecodeError

logger = logging.getLogger(__name__)

BASE64 = "base64"
QUOTED_PRINTABLE = "quoted-printable"


def normalize_encoding(label):
    """Lower-case a transfer-encoding label and strip surrounding whitespace."""
    return (label or "").strip().lower()


def decode_base64(data):
    """
    Decode a base64 body that may be wrapped over several lines.

    Line feeds, carriage returns and spaces are removed before decoding;
    any other character outside the base64 alphabet is an error.

    Args:
        data (bytes): Encoded body

    Returns:
        bytes: Decoded content

    Raises:
        DecodeError: If the cleaned body is not valid base64
    """
    clean = data.replace(b"\n", b"").replace(b"\r", b"").replace(b" ", b"")
    try:
        return base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"error decoding base64 data: {e}") from e


def decode_payload(data, encoding, decode_quoted_printable=False):
    """
    Undo the transfer encoding of an attachment body.

    Only base64 is decoded by default. Quoted-printable bodies are passed
    through unchanged unless decode_quoted_printable is set; every other
    label, including an empty one, is treated as already binary.

    Args:
        data (bytes): Raw part body
        encoding (str): Content-Transfer-Encoding value
        decode_quoted_printable (bool): Decode quoted-printable bodies

    Returns:
        bytes: Decoded content

    Raises:
        DecodeError: If a base64 body cannot be decoded
    """
    label = normalize_encoding(encoding)
    if label == BASE64:
        return decode_base64(data)
    if label == QUOTED_PRINTABLE:
        if decode_quoted_printable:
            return quopri.decodestring(data)
        logger.debug("Writing quoted-printable body without decoding")
        return data
    return data
