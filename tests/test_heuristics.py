"""Tests for the goal-distance estimators."""

import math

import pytest

from stripsplan.encoding import encode
from stripsplan.heuristics import (
    FastForward,
    HeuristicType,
    Max,
    MutexPlanningGraph,
    RelaxedPlanningGraph,
    SetLevel,
    Sum,
    create_heuristic,
)

P01_PLAN = ["pick-up b", "stack b a", "pick-up c", "stack c b", "pick-up d", "stack d c"]


def _operator(problem, label):
    return next(op for op in problem.operators if problem.to_short_string(op) == label)


def _states_along(problem, labels):
    states = [problem.init]
    for label in labels:
        states.append(_operator(problem, label).apply(states[-1]))
    return states


class TestHeuristicType:

    def test_selector_order(self):
        assert [h.value for h in HeuristicType] == list(range(9))
        assert HeuristicType.from_selector(7) is HeuristicType.MAX

    @pytest.mark.parametrize("selector", [-1, 8, 9, 100])
    def test_out_of_range_selectors_mean_set_level(self, selector):
        assert HeuristicType.from_selector(selector) is HeuristicType.SET_LEVEL

    def test_label(self):
        assert HeuristicType.ADJUSTED_SUM2M.label == "adjusted-sum2m"


class TestRelaxedHeuristics:

    def test_fast_forward_along_golden_plan(self, encoded):
        problem = encoded("p01")
        h = FastForward(problem)
        values = [h.estimate(s) for s in _states_along(problem, P01_PLAN)]
        assert values == [6, 5, 4, 3, 2, 1, 0]

    @pytest.mark.parametrize("name", ["p02", "p03"])
    def test_fast_forward_initial_states(self, encoded, name):
        problem = encoded(name)
        assert FastForward(problem).estimate(problem.init) == 6

    def test_max_and_sum(self, encoded):
        problem = encoded("p01")
        assert Max(problem).estimate(problem.init) == 2
        assert Sum(problem).estimate(problem.init) == 6

    def test_relaxed_graph_levels(self, encoded):
        problem = encoded("p01")
        fact_level, op_level, reached = RelaxedPlanningGraph(problem).expand(problem.init)
        assert reached
        idx = problem.fluent_index
        on_b_a = next(f for f in idx if str(f) == "(on b a)")
        holding_b = next(f for f in idx if str(f) == "(holding b)")
        assert fact_level[idx[holding_b]] == 1
        assert fact_level[idx[on_b_a]] == 2
        assert op_level[problem.operators.index(_operator(problem, "pick-up a"))] == 0


class TestMutexHeuristics:

    def test_set_level_at_least_max(self, encoded):
        problem = encoded("p01")
        set_level = SetLevel(problem).estimate(problem.init)
        assert math.isfinite(set_level)
        assert set_level >= Max(problem).estimate(problem.init)

    def test_goal_state_has_set_level_zero(self, encoded):
        problem = encoded("p01")
        goal_state = _states_along(problem, P01_PLAN)[-1]
        _, _, set_level = MutexPlanningGraph(problem).expand(goal_state)
        assert set_level == 0


@pytest.mark.parametrize("kind", list(HeuristicType))
def test_every_heuristic_is_zero_on_goal_and_finite_on_init(encoded, kind):
    problem = encoded("p01")
    h = create_heuristic(kind, problem)
    assert h.estimate(_states_along(problem, P01_PLAN)[-1]) == 0
    assert math.isfinite(h.estimate(problem.init))


@pytest.mark.parametrize("kind", list(HeuristicType))
def test_unreachable_goal_is_infinite(tmp_pddl, domain_path, kind):
    # Nothing is held and the hand is not empty, so no operator ever applies
    problem = encode(domain_path, tmp_pddl("stuck.pddl", (
        "(define (problem stuck) (:domain blocksworld) (:objects a b) "
        "(:init (clear a) (clear b) (ontable a) (ontable b)) "
        "(:goal (on a b)))")))
    assert create_heuristic(kind, problem).estimate(problem.init) == math.inf
