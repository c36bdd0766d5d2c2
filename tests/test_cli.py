import json
import sys

import pytest

import pipeline.cli as cli
from models.schemas import SubmissionResult, UploadReport
from pipeline.errors import TooManyEntriesError


def test_cli_invokes_run_upload(monkeypatch, tmp_path, capsys):
    input_file = tmp_path / "ips.txt"
    input_file.write_text("1.2.3.4\n")

    captured = {}

    def fake_run_upload(settings, **kwargs):
        captured["settings"] = settings
        captured["kwargs"] = kwargs
        return UploadReport(
            processed=1,
            results=[SubmissionResult(original="1.2.3.4", status=200, ok=True, response={"id": "x"})],
        )

    monkeypatch.setenv("FASTLY_API_KEY", "cli-key")
    monkeypatch.setattr(cli, "run_upload", fake_run_upload)
    monkeypatch.setattr(
        sys,
        "argv",
        ["cli.py", "--service-id", "svc", "--acl-id", "acl", "--file", str(input_file), "--comment", "From CLI"],
    )

    cli.main()

    assert captured["settings"].api_key == "cli-key"
    assert captured["kwargs"]["service_id"] == "svc"
    assert captured["kwargs"]["acl_id"] == "acl"
    assert captured["kwargs"]["comment"] == "From CLI"
    assert captured["kwargs"]["output"] is None
    printed = json.loads(capsys.readouterr().out)
    assert printed["processed"] == 1


def test_cli_exits_on_upload_error(monkeypatch, tmp_path, capsys):
    input_file = tmp_path / "ips.txt"
    input_file.write_text("1.2.3.4\n")

    def fake_run_upload(settings, **kwargs):
        raise TooManyEntriesError(1001, 1000)

    monkeypatch.setattr(cli, "run_upload", fake_run_upload)
    monkeypatch.setattr(sys, "argv", ["cli.py", "--service-id", "s", "--acl-id", "a", "--file", str(input_file)])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert "\"error\": \"Too many IPs\"" in capsys.readouterr().err


def test_cli_rejects_missing_file(monkeypatch, tmp_path):
    monkeypatch.setattr(
        sys, "argv", ["cli.py", "--service-id", "s", "--acl-id", "a", "--file", str(tmp_path / "missing.txt")]
    )

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 2
