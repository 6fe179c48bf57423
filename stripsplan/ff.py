# FF - Enforced hill-climbing planner with a greedy best-first fallback

import heapq
import logging
import math
from collections import deque
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

# child state -> (parent state, operator index)
Parents = Dict[int, Tuple[int, int]]


def _path_to(state: int, start: int, parent: Parents) -> List[int]:
    path: List[int] = []
    cur = state
    while cur != start:
        prev, op_index = parent[cur]
        path.append(op_index)
        cur = prev
    path.reverse()
    return path


class FF:
    """
    Enforced hill-climbing on the selected heuristic.

    From the current state a breadth-first search looks for the first state
    with a strictly smaller heuristic value and commits to it. When a
    breadth-first search exhausts its space without improvement, the planner
    restarts from the initial state with greedy best-first search. The weight
    is accepted for compatibility with the command line and has no effect.
    """

    def __init__(self, heuristic: HeuristicType = HeuristicType.FAST_FORWARD):
        self.heuristic = heuristic
        self.weight = DEFAULT_WEIGHT
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
        trace.log(1, f"* FF with {self.heuristic.label} heuristic")
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
        if problem.is_goal(problem.init):
            return SequentialPlan()
        if estimate(problem.init) == INF:
            trace.log(1, "* goal unreachable from the initial state")
            return None

        path = self._hill_climb(problem, estimate, cache, budget, counters, trace)
        if path is None:
            trace.log(1, "* enforced hill-climbing failed, switching to greedy best-first search")
            path = self._best_first(problem, estimate, cache, budget, counters)
        if path is None:
            return None
        return SequentialPlan(tuple(problem.operators[i] for i in path))

    def _hill_climb(
        self,
        problem: EncodedProblem,
        estimate: Callable[[int], float],
        cache: Dict[int, float],
        budget: SearchBudget,
        counters: SearchCounters,
        trace: TraceLog,
    ) -> Optional[List[int]]:
        state = problem.init
        best = estimate(state)
        plan: List[int] = []
        while not problem.is_goal(state):
            step = self._improve(problem, state, best, estimate, cache, budget, counters)
            if step is None:
                return None
            state, best, segment = step
            plan.extend(segment)
            trace.log(2, f"* h = {best:g} after {len(plan)} actions")
        return plan

    def _improve(
        self,
        problem: EncodedProblem,
        start: int,
        bound: float,
        estimate: Callable[[int], float],
        cache: Dict[int, float],
        budget: SearchBudget,
        counters: SearchCounters,
    ) -> Optional[Tuple[int, float, List[int]]]:
        """Breadth-first search from start for a state better than bound."""
        ops = problem.operators
        frontier: deque = deque([start])
        parent: Parents = {}
        visited: Set[int] = {start}
        try:
            while frontier:
                budget.check()
                s = frontier.popleft()
                counters.nodes_expanded += 1
                for i, op in enumerate(ops):
                    if not op.is_applicable(s):
                        continue
                    ns = op.apply(s)
                    if ns in visited:
                        continue
                    visited.add(ns)
                    parent[ns] = (s, i)
                    h = estimate(ns)
                    if h < bound or problem.is_goal(ns):
                        return ns, h, _path_to(ns, start, parent)
                    if h != INF:
                        frontier.append(ns)
        finally:
            counters.observe_memory(frontier, parent, visited, cache)
        return None

    def _best_first(
        self,
        problem: EncodedProblem,
        estimate: Callable[[int], float],
        cache: Dict[int, float],
        budget: SearchBudget,
        counters: SearchCounters,
    ) -> Optional[List[int]]:
        ops = problem.operators
        init = problem.init
        counter = 0
        queue: List[Tuple[float, int, int]] = [(estimate(init), counter, init)]
        parent: Parents = {}
        closed: Set[int] = set()
        try:
            while queue:
                budget.check()
                _, _, s = heapq.heappop(queue)
                if s in closed:
                    continue
                closed.add(s)
                if problem.is_goal(s):
                    return _path_to(s, init, parent)
                counters.nodes_expanded += 1
                for i, op in enumerate(ops):
                    if not op.is_applicable(s):
                        continue
                    ns = op.apply(s)
                    if ns in closed or ns in parent or ns == init:
                        continue
                    h = estimate(ns)
                    if h == INF:
                        continue
                    parent[ns] = (s, i)
                    counter += 1
                    heapq.heappush(queue, (h, counter, ns))
        finally:
            counters.observe_memory(queue, parent, closed, cache)
        return None

    def __repr__(self) -> str:
        return f"FF(heuristic={self.heuristic.name}, timeout={self.timeout})"
