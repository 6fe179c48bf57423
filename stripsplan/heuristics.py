# Heuristics - Goal-distance estimators over the bitset encoding
#
# All estimators use unit costs and ignore negative conditions. Relaxed
# estimators work on the relaxed planning graph (delete effects ignored);
# the mutex estimators build a Graphplan-style planning graph with binary
# mutexes between actions (no-ops included) and between fluents.

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from stripsplan.encoding import EncodedProblem, iter_bits

INF = math.inf


class HeuristicType(Enum):
    FAST_FORWARD = 0
    SUM = 1
    SUM_MUTEX = 2
    ADJUSTED_SUM = 3
    ADJUSTED_SUM2 = 4
    ADJUSTED_SUM2M = 5
    COMBO = 6
    MAX = 7
    SET_LEVEL = 8

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")

    @classmethod
    def from_selector(cls, selector: int) -> "HeuristicType":
        # Selectors outside 0..7 fall through to the set-level heuristic
        for member in cls:
            if member.value == selector and member is not cls.SET_LEVEL:
                return member
        return cls.SET_LEVEL


class _Graph:
    """Operator tables shared by the planning graph builders."""

    def __init__(self, problem: EncodedProblem):
        self.problem = problem
        self.pre = [op.positive_preconditions for op in problem.operators]
        self.add = [op.add_effects for op in problem.operators]
        self.dele = [op.delete_effects for op in problem.operators]
        self.cost = [op.cost for op in problem.operators]
        self.pre_bits = [list(iter_bits(m)) for m in self.pre]
        self.achievers: List[List[int]] = [[] for _ in problem.fluents]
        for i, m in enumerate(self.add):
            for f in iter_bits(m):
                self.achievers[f].append(i)
        self.goal = problem.positive_goal
        self.goal_bits = list(iter_bits(problem.positive_goal))

    def extract_relaxed_plan(self, fact_level: List[float], op_level: List[float]) -> List[int]:
        """
        Extract a relaxed plan backwards from the goals, FF style.

        Goals of a layer are handled in fluent order. The achiever of a goal at
        layer i is an operator first applicable at layer i-1 with minimal
        difficulty (sum of its precondition levels), ties broken by operator
        order. Facts added by a selected achiever count as true at layers i and
        i-1 and are not sub-goaled again there.
        """
        top = int(max((fact_level[g] for g in self.goal_bits), default=0))
        goals_at: List[set] = [set() for _ in range(top + 1)]
        for g in self.goal_bits:
            if fact_level[g] > 0:
                goals_at[int(fact_level[g])].add(g)
        marked = [0] * (top + 1)
        selected: List[int] = []
        for i in range(top, 0, -1):
            for g in sorted(goals_at[i]):
                if (marked[i] >> g) & 1:
                    continue
                best = -1
                best_difficulty = INF
                for a in self.achievers[g]:
                    if op_level[a] == i - 1:
                        difficulty = sum(fact_level[p] for p in self.pre_bits[a])
                        if difficulty < best_difficulty:
                            best, best_difficulty = a, difficulty
                selected.append(best)
                for p in self.pre_bits[best]:
                    if fact_level[p] != 0 and not (marked[i - 1] >> p) & 1:
                        goals_at[int(fact_level[p])].add(p)
                marked[i] |= self.add[best]
                marked[i - 1] |= self.add[best]
        return selected


class RelaxedPlanningGraph(_Graph):

    def expand(self, state: int) -> Tuple[List[float], List[float], bool]:
        """
        Build the relaxed planning graph from state until all goals appear.

        Returns the first level of every fluent and operator, and whether the
        goals were reached before the graph leveled off.
        """
        fact_level = [INF] * len(self.problem.fluents)
        for f in iter_bits(state):
            fact_level[f] = 0
        op_level = [INF] * len(self.pre)
        pending = list(range(len(self.pre)))
        reached = state
        level = 0
        while (reached & self.goal) != self.goal:
            new = reached
            waiting = []
            for i in pending:
                if (reached & self.pre[i]) == self.pre[i]:
                    op_level[i] = level
                    new |= self.add[i]
                else:
                    waiting.append(i)
            if new == reached:
                return fact_level, op_level, False
            for f in iter_bits(new & ~reached):
                fact_level[f] = level + 1
            pending = waiting
            reached = new
            level += 1
        return fact_level, op_level, True


class MutexPlanningGraph(_Graph):

    def expand(self, state: int) -> Tuple[List[float], List[float], float]:
        """
        Build the planning graph with mutexes from state.

        Returns the first level of every fluent and operator, and the set level:
        the first level where all goals are present and pairwise non-mutex
        (inf when the graph levels off before that).
        """
        n = len(self.problem.fluents)
        fact_level = [INF] * n
        for f in iter_bits(state):
            fact_level[f] = 0
        op_level = [INF] * len(self.pre)
        facts = state
        fmutex = [0] * n
        level = 0
        while True:
            if (facts & self.goal) == self.goal and not any(fmutex[g] & self.goal for g in self.goal_bits):
                return fact_level, op_level, level

            # Actions of this level: real operators first, then one no-op per fact
            acts: List[Tuple[int, int, int, int]] = []  # (operator index or -1, pre, add, del)
            for i, pre in enumerate(self.pre):
                if (facts & pre) == pre and not any(fmutex[p] & pre for p in self.pre_bits[i]):
                    acts.append((i, pre, self.add[i], self.dele[i]))
                    if op_level[i] == INF:
                        op_level[i] = level
            for f in iter_bits(facts):
                acts.append((-1, 1 << f, 1 << f, 0))

            amutex = [0] * len(acts)
            for x in range(len(acts)):
                _, pre_x, add_x, del_x = acts[x]
                needs_x = [fmutex[p] for p in iter_bits(pre_x)]
                for y in range(x + 1, len(acts)):
                    _, pre_y, add_y, del_y = acts[y]
                    if (del_x & (pre_y | add_y)) or (del_y & (pre_x | add_x)) or any(m & pre_y for m in needs_x):
                        amutex[x] |= 1 << y
                        amutex[y] |= 1 << x

            new_facts = facts
            supporters: Dict[int, int] = {}
            for x, (_, _, add, _) in enumerate(acts):
                new_facts |= add
                for f in iter_bits(add):
                    supporters[f] = supporters.get(f, 0) | (1 << x)

            new_fmutex = [0] * n
            fact_list = list(iter_bits(new_facts))
            for ix, p in enumerate(fact_list):
                for q in fact_list[ix + 1:]:
                    sq = supporters[q]
                    if not any(sq & ~amutex[a] for a in iter_bits(supporters[p])):
                        new_fmutex[p] |= 1 << q
                        new_fmutex[q] |= 1 << p

            if new_facts == facts and new_fmutex == fmutex:
                return fact_level, op_level, INF
            for f in iter_bits(new_facts & ~facts):
                fact_level[f] = level + 1
            facts = new_facts
            fmutex = new_fmutex
            level += 1


class Heuristic(ABC):
    """Estimates the remaining cost from a state to the goal of an encoded problem."""

    def __init__(self, problem: EncodedProblem):
        self.problem = problem

    @abstractmethod
    def estimate(self, state: int) -> float:
        ...


class _RelaxedHeuristic(Heuristic):

    def __init__(self, problem: EncodedProblem):
        super().__init__(problem)
        self.graph = RelaxedPlanningGraph(problem)

    def _goal_levels(self, state: int) -> Optional[List[float]]:
        fact_level, _, reached = self.graph.expand(state)
        if not reached:
            return None
        return [fact_level[g] for g in self.graph.goal_bits]


class FastForward(_RelaxedHeuristic):

    def estimate(self, state: int) -> float:
        fact_level, op_level, reached = self.graph.expand(state)
        if not reached:
            return INF
        return sum(self.graph.cost[a] for a in self.graph.extract_relaxed_plan(fact_level, op_level))


class Sum(_RelaxedHeuristic):

    def estimate(self, state: int) -> float:
        levels = self._goal_levels(state)
        return INF if levels is None else float(sum(levels))


class Max(_RelaxedHeuristic):

    def estimate(self, state: int) -> float:
        levels = self._goal_levels(state)
        return INF if levels is None else float(max(levels, default=0))


class _MutexHeuristic(_RelaxedHeuristic):

    def __init__(self, problem: EncodedProblem):
        super().__init__(problem)
        self.mutex_graph = MutexPlanningGraph(problem)


class SetLevel(_MutexHeuristic):

    def estimate(self, state: int) -> float:
        _, _, set_level = self.mutex_graph.expand(state)
        return float(set_level)


class SumMutex(_MutexHeuristic):

    def estimate(self, state: int) -> float:
        fact_level, _, set_level = self.mutex_graph.expand(state)
        if set_level == INF:
            return INF
        return float(sum(fact_level[g] for g in self.mutex_graph.goal_bits))


class AdjustedSum(_MutexHeuristic):
    """Sum of the goal levels plus the interaction degree (set level minus max level)."""

    def estimate(self, state: int) -> float:
        levels = self._goal_levels(state)
        if levels is None:
            return INF
        _, _, set_level = self.mutex_graph.expand(state)
        if set_level == INF:
            return INF
        return float(sum(levels) + set_level - max(levels, default=0))


class AdjustedSum2(_MutexHeuristic):
    """Relaxed plan length plus the interaction degree."""

    def estimate(self, state: int) -> float:
        fact_level, op_level, reached = self.graph.expand(state)
        if not reached:
            return INF
        _, _, set_level = self.mutex_graph.expand(state)
        if set_level == INF:
            return INF
        relaxed = sum(self.graph.cost[a] for a in self.graph.extract_relaxed_plan(fact_level, op_level))
        return float(relaxed + set_level - max((fact_level[g] for g in self.graph.goal_bits), default=0))


class AdjustedSum2M(_MutexHeuristic):
    """Like AdjustedSum2, with the relaxed plan and the levels taken from the mutex graph."""

    def estimate(self, state: int) -> float:
        fact_level, op_level, set_level = self.mutex_graph.expand(state)
        if set_level == INF:
            return INF
        relaxed = sum(
            self.mutex_graph.cost[a] for a in self.mutex_graph.extract_relaxed_plan(fact_level, op_level))
        return float(relaxed + set_level - max((fact_level[g] for g in self.mutex_graph.goal_bits), default=0))


class Combo(_MutexHeuristic):

    def estimate(self, state: int) -> float:
        levels = self._goal_levels(state)
        if levels is None:
            return INF
        _, _, set_level = self.mutex_graph.expand(state)
        return float(sum(levels) + set_level)


_HEURISTICS: Dict[HeuristicType, Type[Heuristic]] = {
    HeuristicType.FAST_FORWARD: FastForward,
    HeuristicType.SUM: Sum,
    HeuristicType.SUM_MUTEX: SumMutex,
    HeuristicType.ADJUSTED_SUM: AdjustedSum,
    HeuristicType.ADJUSTED_SUM2: AdjustedSum2,
    HeuristicType.ADJUSTED_SUM2M: AdjustedSum2M,
    HeuristicType.COMBO: Combo,
    HeuristicType.MAX: Max,
    HeuristicType.SET_LEVEL: SetLevel,
}


def create_heuristic(kind: HeuristicType, problem: EncodedProblem) -> Heuristic:
    return _HEURISTICS[kind](problem)
