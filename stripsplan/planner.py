# Planner contract - configure -> search -> statistics, shared by every concrete planner

import logging
import sys
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, runtime_checkable

from stripsplan.arguments import ArgumentSet
from stripsplan.encoding import EncodedProblem
from stripsplan.plan import SequentialPlan
from stripsplan.statistics import Statistics

# Trace level that replaces all other output by the one-line statistics
LINE_TRACE_LEVEL = 8


@runtime_checkable
class PlannerContract(Protocol):
    """Capabilities every planner exposes to the command-line driver and to the verification tests."""

    def configure(self, arguments: ArgumentSet) -> None:
        ...

    def set_timeout(self, seconds: int) -> None:
        ...

    def get_timeout(self) -> int:
        ...

    def set_trace_level(self, level: int) -> None:
        ...

    def get_trace_level(self) -> int:
        ...

    def set_statistics_enabled(self, enabled: bool) -> None:
        ...

    def is_statistics_enabled(self) -> bool:
        ...

    def get_statistics(self) -> Statistics:
        ...

    def search(self, problem: EncodedProblem) -> Optional[SequentialPlan]:
        ...


class SearchTimeout(Exception):
    """Raised inside a search loop when its budget is spent; never leaves a planner."""


class SearchBudget:
    """Wall-clock budget of a single search call."""

    def __init__(self, timeout_seconds: int):
        self.timeout_seconds = timeout_seconds
        self.deadline = time.monotonic() + max(0, timeout_seconds)

    def expired(self) -> bool:
        return self.timeout_seconds <= 0 or time.monotonic() >= self.deadline

    def check(self) -> None:
        if self.expired():
            raise SearchTimeout(f"search exceeded {self.timeout_seconds} seconds")


def container_size(container: Iterable) -> int:
    """Bytes held by a set, list or dict of states, counting its entries (keys and values)."""
    size = sys.getsizeof(container)
    if isinstance(container, dict):
        return size + sum(sys.getsizeof(k) + sys.getsizeof(v) for k, v in container.items())
    return size + sum(sys.getsizeof(item) for item in container)


@dataclass
class SearchCounters:
    """Work done by one search call; memory is the peak size of the search structures in bytes."""
    nodes_expanded: int = 0
    heuristic_calls: int = 0
    memory_for_search: int = 0

    def observe_memory(self, *containers: Iterable) -> None:
        self.memory_for_search = max(self.memory_for_search, sum(container_size(c) for c in containers))


class TraceLog:
    """Gate diagnostic output of a planner on its trace level."""

    def __init__(self, logger: logging.Logger, level: int):
        self.logger = logger
        self.level = level

    def enabled(self, at_level: int) -> bool:
        return self.level != LINE_TRACE_LEVEL and self.level >= at_level

    def log(self, at_level: int, message: str) -> None:
        if self.enabled(at_level):
            self.logger.info(message)


def run_search(
    problem: EncodedProblem,
    statistics: Statistics,
    collect: bool,
    timeout_seconds: int,
    trace: TraceLog,
    search_fn: Callable[[SearchBudget, SearchCounters], Optional[SequentialPlan]],
) -> Optional[SequentialPlan]:
    """
    Run one search under a fresh budget and record its statistics.

    A timeout is a normal outcome: it is logged and turned into None. Any other
    exception raised by search_fn propagates unchanged.
    """
    budget = SearchBudget(timeout_seconds)
    counters = SearchCounters()
    if collect:
        statistics.reset()

    trace.log(1, f"* starting search on problem {problem.name} "
                 f"({len(problem.operators)} actions, {len(problem.fluents)} fluents)")
    if trace.enabled(3):
        for op in problem.operators:
            trace.log(3, problem.to_string(op))

    start = time.perf_counter()
    try:
        plan = search_fn(budget, counters)
    except SearchTimeout as e:
        trace.log(1, f"* {e}, no plan found")
        plan = None
    elapsed = time.perf_counter() - start

    if plan is None:
        trace.log(1, "* search failed")
    else:
        trace.log(1, f"* search succeeded: plan of {plan.size()} actions, cost {plan.cost():g}")

    if collect:
        statistics.time_to_parse = problem.parsing_time
        statistics.time_to_encode = problem.encoding_time
        statistics.time_to_search = elapsed
        statistics.memory_for_problem = problem.memory_size()
        statistics.memory_for_search = counters.memory_for_search
        statistics.plan_length = plan.size() if plan is not None else 0
        statistics.number_of_actions = len(problem.operators)
        statistics.number_of_fluents = len(problem.fluents)
        statistics.nodes_expanded = counters.nodes_expanded
        statistics.heuristic_calls = counters.heuristic_calls
        if trace.level == LINE_TRACE_LEVEL:
            trace.logger.info(statistics.to_line(problem.name))
    return plan
