import base64
import os

import pytest

CRLF = b"\r\n"
DATE = "Mon, 02 Jan 2006 15:04:05 -0700"
DATE_EPOCH = 1136239445
PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n" + bytes(range(256)) + b"\n%%EOF\n"


class MailFactory:
    """Builds raw RFC 5322 messages as bytes. Parts are (headers, body) tuples."""

    pdf = PDF_BYTES

    @staticmethod
    def render(headers, body):
        return CRLF.join(h.encode("utf-8") for h in headers) + CRLF + CRLF + body

    @staticmethod
    def b64(data, wrap=76):
        encoded = base64.b64encode(data)
        if not wrap:
            return encoded
        return CRLF.join(encoded[i:i + wrap] for i in range(0, len(encoded), wrap))

    def pdf_part(self, filename="doc.pdf", data=PDF_BYTES, content_type="application/pdf",
                 disposition=True, name=None, wrap=76):
        ctype = f"Content-Type: {content_type}"
        if name:
            ctype += f'; name="{name}"'
        headers = [ctype, "Content-Transfer-Encoding: base64"]
        if disposition and filename is not None:
            headers.append(f'Content-Disposition: attachment; filename="{filename}"')
        return headers, self.b64(data, wrap)

    @staticmethod
    def text_part(text="Please find the document attached."):
        return ["Content-Type: text/plain; charset=utf-8"], text.encode("utf-8")

    def multipart(self, parts, subtype="mixed", boundary="==boundary-1==", content_type=None):
        body = b"This is a multi-part message in MIME format." + CRLF
        delimiter = b"--" + boundary.encode("ascii")
        for part in parts:
            body += delimiter + CRLF + self.render(*part) + CRLF
        body += delimiter + b"--" + CRLF
        if content_type is None:
            content_type = f'multipart/{subtype}; boundary="{boundary}"'
        return [f"Content-Type: {content_type}"], body

    def message(self, part, date=DATE, subject="Invoice"):
        headers = [
            "From: Billing <billing@example.com>",
            "To: user@example.org",
            f"Subject: {subject}",
        ]
        if date is not None:
            headers.append(f"Date: {date}")
        headers.append("MIME-Version: 1.0")
        part_headers, body = part
        return self.render(headers + list(part_headers), body)


@pytest.fixture
def mail():
    return MailFactory()


@pytest.fixture
def make_mailbox(tmp_path):
    """Create a Maildir folder (cur/new/tmp) below the store root."""
    root = tmp_path / "Maildir"

    def make(relative="", subdirs=("cur", "new", "tmp")):
        path = root / relative if relative else root
        for sub in subdirs:
            (path / sub).mkdir(parents=True, exist_ok=True)
        path.mkdir(parents=True, exist_ok=True)
        return path

    make.root = root
    return make


@pytest.fixture
def deliver():
    """Write a raw message into a mailbox subdirectory."""

    def write(mailbox_path, name, raw, subdir="cur"):
        path = os.path.join(str(mailbox_path), subdir, name)
        with open(path, "wb") as f:
            f.write(raw)
        return path

    return write


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path
