# Plan validation - Simulate a plan on the bitset encoding and report the first failure

from typing import List, Tuple

from stripsplan.encoding import BitOp, EncodedProblem, iter_bits
from stripsplan.plan import SequentialPlan


def _check_preconds(problem: EncodedProblem, state: int, op: BitOp) -> List[str]:
    errs: List[str] = []
    for f in iter_bits(op.positive_preconditions & ~state):
        errs.append(f"missing precondition: {problem.fluents[f]}")
    for f in iter_bits(op.negative_preconditions & state):
        errs.append(f"negated precondition violated: {problem.fluents[f]}")
    return errs


def validate_plan(problem: EncodedProblem, plan: SequentialPlan) -> Tuple[bool, str]:
    """
    Execute plan from the initial state of problem under STRIPS semantics.
    Returns (ok, report). Report contains the first failure reason or success summary.
    """
    state = problem.init
    if plan.is_empty() and problem.is_goal(state):
        return True, "goal already holds in initial state"

    for idx, op in enumerate(plan):
        missing = _check_preconds(problem, state, op)
        if missing:
            return False, (f"step {idx + 1}: preconditions not satisfied for "
                           f"'({problem.to_short_string(op)})': " + "; ".join(missing))
        state = op.apply(state)

    if problem.is_goal(state):
        return True, "goal satisfied after executing plan"
    unmet = problem.positive_goal & ~state
    return False, "plan finished but goal not satisfied: " + problem.mask_to_string(unmet)
