"""Tests for the cronwise command line."""

import pytest

from cli.main import main


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    for var in ("CRONWISE_HOME", "GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
        # setenv first so teardown also removes values load_dotenv() adds.
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    monkeypatch.setenv("CRONWISE_HOME", str(tmp_path))
    return tmp_path


def run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_validate_ok(capsys):
    assert run(["validate", "0 9 * * 1-5"]) == 0
    assert "Valid CRON expression" in capsys.readouterr().out


def test_validate_invalid(capsys):
    assert run(["validate", "0 9 * * 9"]) == 1
    assert "Invalid weekday: 9" in capsys.readouterr().out


def test_next_from_reference(capsys):
    assert run(["next", "0 9 * * *", "-n", "2", "--from", "2024-01-01T08:00"]) == 0
    out = capsys.readouterr().out
    assert "2024-01-01 09:00  (Mon, Jan 1, 9:00 AM)" in out
    assert "2024-01-02 09:00  (Tue, Jan 2, 9:00 AM)" in out


def test_next_reports_short_result(capsys):
    assert run(["next", "0 9 * * *", "-n", "5", "--from", "2024-01-01T08:00", "--limit", "1440"]) == 0
    assert "Only 1 run time(s) found" in capsys.readouterr().out


def test_next_bad_reference(capsys):
    assert run(["next", "* * * * *", "--from", "yesterday"]) == 2


def test_generate_without_provider(capsys):
    assert run(["generate", "every day at noon"]) == 1
    assert "No AI provider configured" in capsys.readouterr().out


def test_history_empty_then_clear(capsys):
    assert run(["history"]) == 0
    assert "No history yet" in capsys.readouterr().out
    assert run(["history", "--clear"]) == 0
    assert "Removed 0 history item(s)." in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert run([]) == 0
    assert "usage: cronwise" in capsys.readouterr().out
