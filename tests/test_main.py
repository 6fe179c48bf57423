"""Tests for the command-line driver."""

import logging

from stripsplan.main import main


def _files(domain_path, problem_path, name="p01"):
    return ["-o", str(domain_path), "-f", str(problem_path(name))]


def test_help_prints_usage(capsys):
    assert main(["-h"]) == 0
    assert "usage of planner" in capsys.readouterr().out


def test_help_after_other_flags(capsys, domain_path):
    assert main(["-o", str(domain_path), "-H"]) == 0
    assert "-u <num>" in capsys.readouterr().out


def test_missing_problem_exits_with_configuration_error(domain_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert main(["-o", str(domain_path)]) == 2
    assert "Missing DOMAIN or PROBLEM" in caplog.text


def test_unknown_flag_exits_with_configuration_error():
    assert main(["-z", "1"]) == 2


def test_solves_and_prints_plan(capsys, domain_path, problem_path):
    assert main(_files(domain_path, problem_path) + ["-i", "0", "-t", "10"]) == 0
    out = capsys.readouterr().out
    assert "00: (pick-up b) [1]" in out
    assert "05: (stack d c) [1]" in out
    assert "plan total cost: 6" in out
    assert "time spent:" in out


def test_statistics_can_be_disabled(capsys, domain_path, problem_path):
    assert main(_files(domain_path, problem_path) + ["-i", "0", "-s", "false"]) == 0
    assert "time spent:" not in capsys.readouterr().out


def test_line_trace_level(capsys, caplog, domain_path, problem_path):
    with caplog.at_level(logging.INFO):
        assert main(_files(domain_path, problem_path) + ["-i", "8"]) == 0
    assert capsys.readouterr().out == ""
    assert any(r.getMessage().startswith("bw-p01 ") for r in caplog.records)


def test_unreadable_problem_exits_with_error(tmp_path, domain_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert main(["-o", str(domain_path), "-f", str(tmp_path / "none.pddl")]) == 1
    assert "Cannot encode problem" in caplog.text


def test_timeout_prints_no_plan(capsys, domain_path, problem_path):
    assert main(_files(domain_path, problem_path, "p04") + ["-t", "0", "-i", "0", "-s", "false"]) == 0
    assert "no plan found" in capsys.readouterr().out


def test_undecodable_problem_exits_with_error(tmp_path, domain_path, caplog):
    bad = tmp_path / "bad.pddl"
    bad.write_bytes(b"\xff\xfe\x00(")
    with caplog.at_level(logging.ERROR):
        assert main(["-o", str(domain_path), "-f", str(bad)]) == 1
    assert "not valid UTF-8" in caplog.text


def test_deeply_nested_problem_exits_with_error(tmp_path, domain_path):
    bad = tmp_path / "deep.pddl"
    bad.write_text("(" * 5000 + ")" * 5000)
    assert main(["-o", str(domain_path), "-f", str(bad)]) == 1


def test_ff_planner_is_selectable(capsys, monkeypatch, domain_path, problem_path):
    monkeypatch.setattr("stripsplan.main.PLANNER", "ff")
    assert main(_files(domain_path, problem_path) + ["-i", "0", "-s", "false"]) == 0
    out = capsys.readouterr().out
    assert "00: (pick-up b) [1]" in out
    assert "plan total cost: 6" in out


def test_unknown_planner_exits_with_configuration_error(monkeypatch, domain_path, problem_path, caplog):
    monkeypatch.setattr("stripsplan.main.PLANNER", "graphplan")
    with caplog.at_level(logging.ERROR):
        assert main(_files(domain_path, problem_path)) == 2
    assert "Unknown planner 'graphplan'" in caplog.text
