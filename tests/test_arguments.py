"""Tests for command-line argument parsing."""

import logging
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from stripsplan.arguments import ArgumentSet, FLAGS, parse_arguments, usage
from stripsplan.exceptions import ConfigurationError, PlannerError
from stripsplan.heuristics import HeuristicType

LOGGER = "stripsplan.tests"


@pytest.fixture
def files(domain_path, problem_path):
    return ["-o", str(domain_path), "-f", str(problem_path("p01"))]


class TestDefaults:

    def test_argument_set_defaults(self):
        args = ArgumentSet()
        assert args.domain is None
        assert args.problem is None
        assert args.heuristic is HeuristicType.FAST_FORWARD
        assert args.weight == 1.0
        assert args.timeout == 300000
        assert args.trace_level == 1
        assert args.statistics is True

    def test_argument_set_is_immutable(self):
        args = ArgumentSet()
        with pytest.raises(FrozenInstanceError):
            args.weight = 2.0

    def test_only_domain_and_problem_needed(self, files, test_logger):
        args = parse_arguments(files, test_logger)
        assert args.domain == Path(files[1])
        assert args.problem == Path(files[3])
        assert args.heuristic is HeuristicType.FAST_FORWARD
        assert args.timeout == 300000

    def test_defaults_are_not_mutated(self, files, test_logger):
        defaults = ArgumentSet(weight=3.0)
        args = parse_arguments(files + ["-w", "2"], test_logger, defaults)
        assert args.weight == 2.0
        assert defaults.weight == 3.0
        assert defaults.domain is None


class TestValues:

    def test_timeout_is_stored_in_milliseconds(self, files, test_logger):
        assert parse_arguments(files + ["-t", "5"], test_logger).timeout == 5000

    @pytest.mark.parametrize("selector,expected", [
        ("0", HeuristicType.FAST_FORWARD),
        ("1", HeuristicType.SUM),
        ("2", HeuristicType.SUM_MUTEX),
        ("3", HeuristicType.ADJUSTED_SUM),
        ("4", HeuristicType.ADJUSTED_SUM2),
        ("5", HeuristicType.ADJUSTED_SUM2M),
        ("6", HeuristicType.COMBO),
        ("7", HeuristicType.MAX),
        ("8", HeuristicType.SET_LEVEL),
    ])
    def test_heuristic_selector(self, files, test_logger, selector, expected):
        assert parse_arguments(files + ["-u", selector], test_logger).heuristic is expected

    def test_weight_trace_and_statistics(self, files, test_logger):
        args = parse_arguments(files + ["-w", "2.5", "-i", "3", "-s", "false"], test_logger)
        assert args.weight == 2.5
        assert args.trace_level == 3
        assert args.statistics is False

    def test_statistics_flag_is_case_insensitive(self, files, test_logger):
        assert parse_arguments(files + ["-s", "TRUE"], test_logger).statistics is True
        assert parse_arguments(files + ["-s", "yes"], test_logger).statistics is False

    def test_flags_are_case_insensitive(self, domain_path, problem_path, test_logger):
        args = parse_arguments(["-O", str(domain_path), "-F", str(problem_path("p02")), "-T", "7"], test_logger)
        assert args.problem == problem_path("p02")
        assert args.timeout == 7000

    def test_later_flag_wins(self, files, test_logger):
        assert parse_arguments(files + ["-t", "1", "-t", "2"], test_logger).timeout == 2000

    def test_every_flag_has_a_handler(self):
        assert sorted(FLAGS) == ["-f", "-i", "-o", "-s", "-t", "-u", "-w"]


class TestDiagnostics:

    def test_negative_timeout_logs_usage_but_parses(self, files, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            args = parse_arguments(files + ["-t", "-1"], logging.getLogger(LOGGER))
        assert args.timeout == -1000
        assert "usage of planner" in caplog.text

    def test_out_of_range_heuristic_logs_usage_but_parses(self, files, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            args = parse_arguments(files + ["-u", "12"], logging.getLogger(LOGGER))
        assert args.heuristic is HeuristicType.SET_LEVEL
        assert "unknown heuristic" in caplog.text

    def test_negative_weight_logs_usage(self, files, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            args = parse_arguments(files + ["-w", "-0.5"], logging.getLogger(LOGGER))
        assert args.weight == -0.5
        assert "negative weight" in caplog.text

    def test_missing_file_is_only_a_warning(self, tmp_path, caplog):
        missing = tmp_path / "nowhere.pddl"
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            args = parse_arguments(["-o", str(missing), "-f", str(missing)], logging.getLogger(LOGGER))
        assert args.domain == missing
        assert "does not exist" in caplog.text

    def test_empty_file_name_is_reported_missing(self, problem_path, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            args = parse_arguments(["-o", "", "-f", str(problem_path("p01"))], logging.getLogger(LOGGER))
        assert args.domain == Path("")
        assert "operators file does not exist" in caplog.text
        assert "facts file" not in caplog.text


class TestFailures:

    @pytest.mark.parametrize("extra", [
        ["-x", "1"],
        ["-t"],
        ["-t", "abc"],
        ["-t", "1.5"],
        ["-u", "two"],
        ["-w", "heavy"],
        ["-w", "inf"],
        ["-w", "nan"],
        ["-w", "1_0"],
        ["-i", ""],
    ])
    def test_malformed_tokens_raise(self, files, caplog, extra):
        with caplog.at_level(logging.ERROR, logger=LOGGER):
            with pytest.raises(ConfigurationError):
                parse_arguments(files + extra, logging.getLogger(LOGGER))
        assert "usage of planner" in caplog.text

    def test_missing_problem_raises(self, domain_path, caplog):
        with caplog.at_level(logging.ERROR, logger=LOGGER):
            with pytest.raises(ConfigurationError, match="Missing domain or problem"):
                parse_arguments(["-o", str(domain_path)], logging.getLogger(LOGGER))
        assert "Missing DOMAIN or PROBLEM" in caplog.text

    def test_empty_token_list_raises(self, test_logger):
        with pytest.raises(ConfigurationError):
            parse_arguments([], test_logger)

    def test_configuration_error_is_a_planner_error(self, test_logger):
        with pytest.raises(PlannerError):
            parse_arguments(["-q", "1"], test_logger)

    def test_value_error_is_chained(self, files, test_logger):
        with pytest.raises(ConfigurationError) as info:
            parse_arguments(files + ["-t", "ten"], test_logger)
        assert isinstance(info.value.__cause__, ValueError)
        assert info.value.context == {"position": 5}


def test_usage_lists_every_flag():
    text = usage()
    for flag in ("-o", "-f", "-w", "-t", "-u", "-i", "-s", "-h"):
        assert f"\n{flag} " in text
