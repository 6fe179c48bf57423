# Argument parsing - Turns the planner's flat "-flag value" token list into a typed ArgumentSet

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from stripsplan.config import (
    DEFAULT_HEURISTIC,
    DEFAULT_STATISTICS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TRACE_LEVEL,
    DEFAULT_WEIGHT,
)
from stripsplan.exceptions import ConfigurationError
from stripsplan.heuristics import HeuristicType

_INTEGER = re.compile(r"[+-]?\d+")
_DECIMAL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class ArgumentSet:
    """Validated planner configuration. Timeout is in milliseconds."""
    domain: Optional[Path] = None
    problem: Optional[Path] = None
    heuristic: HeuristicType = HeuristicType.FAST_FORWARD
    weight: float = 1.0
    timeout: int = 300 * 1000
    trace_level: int = 1
    statistics: bool = True


def default_arguments() -> ArgumentSet:
    """ArgumentSet seeded from the environment (see stripsplan.config)."""
    try:
        heuristic = HeuristicType[DEFAULT_HEURISTIC.upper()]
    except KeyError:
        heuristic = HeuristicType.FAST_FORWARD
    return ArgumentSet(
        heuristic=heuristic,
        weight=DEFAULT_WEIGHT,
        timeout=DEFAULT_TIMEOUT_SECONDS * 1000,
        trace_level=DEFAULT_TRACE_LEVEL,
        statistics=DEFAULT_STATISTICS,
    )


def usage() -> str:
    """Return the usage text of the command-line planner."""
    return (
        "\nusage of planner:\n"
        "OPTIONS   DESCRIPTIONS\n"
        "-o <str>    operator file name\n"
        "-f <str>    fact file name\n"
        "-w <num>    the weight used in the a star search (preset: 1)\n"
        "-t <num>    specifies the maximum CPU-time in seconds (preset: 300)\n"
        "-u <num>    specifies the heuristic to used (preset: 0)\n"
        "     0      ff heuristic\n"
        "     1      sum heuristic\n"
        "     2      sum mutex heuristic\n"
        "     3      adjusted sum heuristic\n"
        "     4      adjusted sum 2 heuristic\n"
        "     5      adjusted sum 2M heuristic\n"
        "     6      combo heuristic\n"
        "     7      max heuristic\n"
        "     8      set-level heuristic\n"
        "-i <num>    run-time information level (preset: 1)\n"
        "     0      nothing\n"
        "     1      info on action number, search and search\n"
        "     2      1 + info on search iterations\n"
        "     3      1 + 2 + encoded operators\n"
        "     8      line representation:\n"
        "               - problem name\n"
        "               - number of operators\n"
        "               - number of facts\n"
        "               - parsing time in seconds\n"
        "               - encoding time in seconds\n"
        "               - searching time in seconds\n"
        "               - total time in seconds\n"
        "               - memory used for problem representation in MBytes\n"
        "               - memory used for searching in MBytes\n"
        "               - total memory used in MBytes\n"
        "               - length of the solution plan\n"
        "-s <bool>   generate statistics or not (preset: true)\n"
        "-h          print this message\n\n"
    )


def _parse_int(value: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid integer literal: '{value}'")
    return int(value)


def _parse_float(value: str) -> float:
    # plain decimals only: float() would also take "inf", "nan" and "1_0"
    if not _DECIMAL.fullmatch(value.strip()):
        raise ValueError(f"invalid decimal literal: '{value}'")
    return float(value.strip())


def _parse_bool(value: str) -> bool:
    return value.lower() == "true"


def _domain(value: str, log: logging.Logger) -> Tuple[str, Any]:
    if not value or not Path(value).exists():
        log.warning(f"operators file does not exist: {value}")
    return "domain", Path(value)


def _problem(value: str, log: logging.Logger) -> Tuple[str, Any]:
    if not value or not Path(value).exists():
        log.warning(f"facts file does not exist: {value}")
    return "problem", Path(value)


def _timeout(value: str, log: logging.Logger) -> Tuple[str, Any]:
    cpu = _parse_int(value) * 1000
    if cpu < 0:
        log.warning(f"negative timeout: {value}" + usage())
    return "timeout", cpu


def _heuristic(value: str, log: logging.Logger) -> Tuple[str, Any]:
    selector = _parse_int(value)
    if selector < 0 or selector > 8:
        log.warning(f"unknown heuristic: {value}" + usage())
    return "heuristic", HeuristicType.from_selector(selector)


def _weight(value: str, log: logging.Logger) -> Tuple[str, Any]:
    weight = _parse_float(value)
    if weight < 0:
        log.warning(f"negative weight: {value}" + usage())
    return "weight", weight


def _trace_level(value: str, log: logging.Logger) -> Tuple[str, Any]:
    level = _parse_int(value)
    if level < 0:
        log.warning(f"negative trace level: {value}" + usage())
    return "trace_level", level


def _statistics(value: str, log: logging.Logger) -> Tuple[str, Any]:
    return "statistics", _parse_bool(value)


# flag -> handler returning (ArgumentSet field, typed value)
FLAGS: Dict[str, Callable[[str, logging.Logger], Tuple[str, Any]]] = {
    "-o": _domain,
    "-f": _problem,
    "-t": _timeout,
    "-u": _heuristic,
    "-w": _weight,
    "-i": _trace_level,
    "-s": _statistics,
}


def parse_arguments(
    tokens: Sequence[str],
    log: logging.Logger,
    defaults: Optional[ArgumentSet] = None,
) -> ArgumentSet:
    """
    Parse "-flag value" pairs into an ArgumentSet.

    Args:
        tokens: command-line tokens, without the program name
        log: sink for diagnostics and usage text; nothing is printed directly
        defaults: values used for flags that are not given (never modified)

    Returns:
        ArgumentSet: the validated configuration, with domain and problem set

    Raises:
        ConfigurationError: unknown flag, missing value, malformed number, or
            missing domain/problem. Usage text is logged first.
    """
    values: Dict[str, Any] = {}
    for i in range(0, len(tokens), 2):
        flag = tokens[i]
        handler = FLAGS.get(flag.lower())
        if handler is None or i + 1 >= len(tokens):
            log.error(f"Unknown argument for \"{flag}\" or missing value" + usage())
            raise ConfigurationError(f"Unknown arguments: {flag}", {"position": i})
        value = tokens[i + 1]
        try:
            name, parsed = handler(value, log)
        except ValueError as e:
            log.error(f"Error when parsing arguments: {e}" + usage())
            raise ConfigurationError(f"Invalid value for {flag}: {value}", {"position": i + 1}) from e
        values[name] = parsed

    arguments = replace(defaults if defaults is not None else ArgumentSet(), **values)
    if arguments.domain is None or arguments.problem is None:
        log.error("Missing DOMAIN or PROBLEM" + usage())
        raise ConfigurationError("Missing domain or problem")
    return arguments
