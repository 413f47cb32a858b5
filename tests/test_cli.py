import logging
import os
from datetime import datetime

import pytest

from maildir_pdf.cli import build_parser, configure_logging, main, parse_date_string


def test_parse_date_string():
    assert parse_date_string("2023-01-01") == datetime(2023, 1, 1)
    assert parse_date_string("2023-01-01 12:30:00") == datetime(2023, 1, 1, 12, 30)
    with pytest.raises(ValueError):
        parse_date_string("not a date")


def test_invalid_older_than_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["/tmp", "--older-than", "not a date"])
    assert exc.value.code == 2


def test_maildir_is_required(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_extracts_and_reports(make_mailbox, deliver, mail, output_dir, capsys):
    inbox = make_mailbox()
    message_path = deliver(inbox, "1.msg", mail.message(mail.multipart([mail.pdf_part("invoice.pdf")])))

    assert main([str(make_mailbox.root), "--output-dir", str(output_dir)]) == 0

    out = capsys.readouterr().out
    assert f"Saved PDF: {output_dir / 'invoice.pdf'} (from {message_path} in mailbox INBOX)" in out
    assert "1 PDF(s) saved from 1 email(s) in 1 mailbox(es), 0 warning(s)" in out
    assert os.listdir(str(output_dir)) == ["invoice.pdf"]


def test_maildir_option_and_cwd_output(make_mailbox, deliver, mail, tmp_path, monkeypatch):
    deliver(make_mailbox(), "1.msg", mail.message(mail.multipart([mail.pdf_part("here.pdf")])))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    assert main(["--maildir", str(make_mailbox.root), "-q"]) == 0
    assert os.listdir(str(workdir)) == ["here.pdf"]


def test_warnings_do_not_change_exit_status(make_mailbox, deliver, mail, output_dir, capsys):
    inbox = make_mailbox()
    deliver(inbox, "broken.msg", b"")
    deliver(inbox, "good.msg", mail.message(mail.multipart([mail.pdf_part("good.pdf")])))

    assert main([str(make_mailbox.root), "-o", str(output_dir)]) == 0
    assert "1 warning(s)" in capsys.readouterr().out


def test_missing_maildir_exits_nonzero(tmp_path, output_dir, capsys):
    assert main([str(tmp_path / "missing"), "-o", str(output_dir)]) == 1
    assert "Error discovering mailboxes" in capsys.readouterr().out


def test_missing_output_dir_exits_nonzero(make_mailbox, tmp_path):
    make_mailbox()
    assert main([str(make_mailbox.root), "-o", str(tmp_path / "nowhere")]) == 1


def test_empty_store_is_not_an_error(tmp_path, output_dir, capsys):
    empty = tmp_path / "empty"
    empty.mkdir()

    assert main([str(empty), "-o", str(output_dir)]) == 0
    assert "No mailboxes found" in capsys.readouterr().out


def test_undecodable_file_name_does_not_stop_the_scan(make_mailbox, deliver, mail, output_dir, capsys):
    inbox = make_mailbox()
    deliver(inbox, os.fsdecode(b"1\xff.msg"), mail.message(mail.multipart([mail.pdf_part("a.pdf")])))
    deliver(inbox, "2.msg", mail.message(mail.multipart([mail.pdf_part("b.pdf")])))

    assert main([str(make_mailbox.root), "-o", str(output_dir)]) == 0

    out = capsys.readouterr().out
    assert "1\\udcff.msg" in out
    assert sorted(os.listdir(str(output_dir))) == ["a.pdf", "b.pdf"]


def test_mailparser_warnings_are_silenced(monkeypatch):
    monkeypatch.setattr(logging.getLogger("mailparser"), "level", logging.NOTSET)

    configure_logging()

    assert logging.getLogger("mailparser").getEffectiveLevel() == logging.ERROR
