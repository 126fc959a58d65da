import pytest
from typer.testing import CliRunner

from intakeform.cli import cli

runner = CliRunner()


@pytest.mark.parametrize("command", [["check-config"], ["run"], []])
def test_bad_upload_limit_exits_with_error(monkeypatch, tmp_path, command):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("UPLOAD_MAX_BYTES", "lots")
    result = runner.invoke(cli, command)
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)


def test_missing_database_url_exits_with_error(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("UPLOAD_MAX_BYTES", raising=False)
    result = runner.invoke(cli, ["check-config"])
    assert result.exit_code == 1


def test_check_config_reports_backend(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"json:///{tmp_path / 'db.json'}")
    monkeypatch.delenv("UPLOAD_MAX_BYTES", raising=False)
    result = runner.invoke(cli, ["check-config"])
    assert result.exit_code == 0
    assert "storage: json" in result.output
