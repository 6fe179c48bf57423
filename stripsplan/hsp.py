# HSP - Heuristic search planner (iterative deepening weighted A*)

import logging
import math
from typing import Callable, Dict, List, Optional, Set, Tuple

from stripsplan.arguments import ArgumentSet
from stripsplan.config import DEFAULT_TIMEOUT_SECONDS, DEFAULT_TRACE_LEVEL, DEFAULT_WEIGHT
from stripsplan.encoding import EncodedProblem
from stripsplan.heuristics import HeuristicType, create_heuristic
from stripsplan.plan import SequentialPlan
from stripsplan.planner import SearchBudget, SearchCounters, TraceLog, run_search
from stripsplan.statistics import Statistics

logger = logging.getLogger(__name__)

INF = math.inf


class HSP:
    """
    Forward state-space planner guided by one of the relaxation heuristics.

    Each iteration is a depth-first search in operator order bounded by
    f = g + weight * h; the bound grows to the smallest f that exceeded it.
    Within an iteration a state is not re-expanded unless reached with a
    smaller g. With weight 1 and a heuristic that does not overestimate along
    the optimal plans, the plan returned is the first optimal plan in
    operator order, so repeated runs give the same plan.
    """

    def __init__(
        self,
        heuristic: HeuristicType = HeuristicType.FAST_FORWARD,
        weight: float = DEFAULT_WEIGHT,
    ):
        self.heuristic = heuristic
        self.weight = weight
        self.timeout = DEFAULT_TIMEOUT_SECONDS
        self.trace_level = DEFAULT_TRACE_LEVEL
        self.statistics_enabled = True
        self.statistics = Statistics()

    def configure(self, arguments: ArgumentSet) -> None:
        self.set_timeout(arguments.timeout // 1000)
        self.set_trace_level(arguments.trace_level)
        self.set_statistics_enabled(arguments.statistics)
        self.heuristic = arguments.heuristic
        self.weight = arguments.weight

    def set_timeout(self, seconds: int) -> None:
        self.timeout = seconds

    def get_timeout(self) -> int:
        return self.timeout

    def set_trace_level(self, level: int) -> None:
        self.trace_level = level

    def get_trace_level(self) -> int:
        return self.trace_level

    def set_statistics_enabled(self, enabled: bool) -> None:
        self.statistics_enabled = enabled

    def is_statistics_enabled(self) -> bool:
        return self.statistics_enabled

    def get_statistics(self) -> Statistics:
        return self.statistics

    def search(self, problem: EncodedProblem) -> Optional[SequentialPlan]:
        trace = TraceLog(logger, self.trace_level)
        trace.log(1, f"* HSP with {self.heuristic.label} heuristic, weight {self.weight:g}")
        return run_search(
            problem,
            self.statistics,
            self.statistics_enabled,
            self.timeout,
            trace,
            lambda budget, counters: self._search(problem, budget, counters, trace),
        )

    def _search(
        self,
        problem: EncodedProblem,
        budget: SearchBudget,
        counters: SearchCounters,
        trace: TraceLog,
    ) -> Optional[SequentialPlan]:
        heuristic = create_heuristic(self.heuristic, problem)
        cache: Dict[int, float] = {}

        def estimate(state: int) -> float:
            value = cache.get(state)
            if value is None:
                counters.heuristic_calls += 1
                value = heuristic.estimate(state)
                cache[state] = value
            return value

        budget.check()
        h0 = estimate(problem.init)
        if h0 == INF:
            trace.log(1, "* goal unreachable from the initial state")
            return None
        threshold = self.weight * h0
        iteration = 0
        while True:
            iteration += 1
            path, next_threshold = self._iteration(problem, estimate, cache, threshold, budget, counters)
            trace.log(2, f"* iteration {iteration}: bound {threshold:g}, "
                         f"{counters.nodes_expanded} nodes expanded so far")
            if path is not None:
                return SequentialPlan(tuple(problem.operators[i] for i in path))
            if next_threshold == INF:
                return None
            threshold = next_threshold

    def _iteration(
        self,
        problem: EncodedProblem,
        estimate: Callable[[int], float],
        cache: Dict[int, float],
        threshold: float,
        budget: SearchBudget,
        counters: SearchCounters,
    ) -> Tuple[Optional[List[int]], float]:
        ops = problem.operators
        init = problem.init
        if problem.is_goal(init):
            return [], INF

        best_g: Dict[int, float] = {init: 0.0}
        on_path: Set[int] = {init}
        path: List[int] = []
        # frames: [state, g, next operator index to try]
        stack: List[list] = [[init, 0.0, 0]]
        next_threshold = INF
        counters.nodes_expanded += 1

        try:
            while stack:
                budget.check()
                frame = stack[-1]
                state, g, i = frame
                while i < len(ops) and not ops[i].is_applicable(state):
                    i += 1
                if i == len(ops):
                    stack.pop()
                    on_path.discard(state)
                    if path:
                        path.pop()
                    continue
                frame[2] = i + 1

                op = ops[i]
                child = op.apply(state)
                if child in on_path:
                    continue
                child_g = g + op.cost
                if best_g.get(child, INF) <= child_g:
                    continue
                best_g[child] = child_g

                f = child_g + self.weight * estimate(child)
                if f > threshold:
                    next_threshold = min(next_threshold, f)
                    continue

                path.append(i)
                if problem.is_goal(child):
                    return path, next_threshold
                counters.nodes_expanded += 1
                stack.append([child, child_g, 0])
                on_path.add(child)
        finally:
            counters.observe_memory(best_g, on_path, stack, cache)
        return None, next_threshold

    def __repr__(self) -> str:
        return f"HSP(heuristic={self.heuristic.name}, weight={self.weight}, timeout={self.timeout})"
