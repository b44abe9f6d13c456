"""Tests for the command-line interface."""

import json

from classledger.cli import main


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


def test_demo_runs(capsys):
    assert main(["demo"]) == 0

    out = capsys.readouterr().out
    assert "AlreadyCheckedIn" in out
    assert "OutOfRange" in out
    assert "NotAuthorized" in out
    assert "student sees 95" in out


def test_demo_then_export_and_verify_sqlite(tmp_path, capsys):
    db_path = str(tmp_path / "class.db")
    assert main(["demo", "-b", "sqlite", "-c", db_path]) == 0
    capsys.readouterr()

    assert main(["verify", "-b", "sqlite", "-c", db_path]) == 0
    assert "verified successfully" in capsys.readouterr().out

    out_file = tmp_path / "grades.json"
    assert main(["export", "-b", "sqlite", "-c", db_path, "--event", "GradeSet", "-o", str(out_file)]) == 0
    exported = json.loads(out_file.read_text())
    assert [e["args"]["grade"] for e in exported] == [95]


def test_export_since_filters(tmp_path, capsys):
    db_path = str(tmp_path / "class.db")
    main(["demo", "-b", "sqlite", "-c", db_path])
    capsys.readouterr()

    assert main(["export", "-b", "sqlite", "-c", db_path, "--since", "2999-01-01T00:00:00Z"]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_export_csv(tmp_path, capsys):
    db_path = str(tmp_path / "class.db")
    main(["demo", "-b", "sqlite", "-c", db_path])
    capsys.readouterr()

    assert main(["export", "-b", "sqlite", "-c", db_path, "-f", "csv"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0].startswith("id,block_number")
    assert len(lines) == 3


def test_stats(tmp_path, capsys):
    db_path = str(tmp_path / "class.db")
    main(["demo", "-b", "sqlite", "-c", db_path])
    capsys.readouterr()

    assert main(["stats", "-b", "sqlite", "-c", db_path]) == 0
    out = capsys.readouterr().out
    assert "Total events: 2" in out
    assert "CheckedIn: 1" in out


def test_sqlite_without_path_fails(capsys):
    assert main(["verify", "-b", "sqlite"]) == 1
    assert "connection" in capsys.readouterr().err
