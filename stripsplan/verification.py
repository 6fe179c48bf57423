# Plan verification - Compare a returned plan against a golden fixture

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from stripsplan.encoding import EncodedProblem
from stripsplan.exceptions import FileError
from stripsplan.plan import SequentialPlan

logger = logging.getLogger(__name__)

COST_TOLERANCE = 1e-7


@dataclass(frozen=True)
class PlanFixture:
    problem: str
    size: int
    cost: float
    plan: List[str] = field(default_factory=list)


def load_fixtures(path: Union[str, Path]) -> Dict[str, PlanFixture]:
    """
    Load golden plans from a JSON file of the form
    {"p01": {"size": 6, "cost": 6.0, "plan": ["pick-up b", ...]}, ...}.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FileError(f"Cannot load plan fixtures: {e}", {"path": str(path)}) from e
    fixtures = {}
    for name, entry in data.items():
        fixtures[name] = PlanFixture(
            problem=name,
            size=int(entry["size"]),
            cost=float(entry["cost"]),
            plan=[str(label) for label in entry.get("plan", [])],
        )
    logger.debug(f"Loaded {len(fixtures)} plan fixtures from {path}")
    return fixtures


def verify_plan(problem: EncodedProblem, plan: SequentialPlan, fixture: PlanFixture) -> List[str]:
    """Return one description per mismatch between plan and fixture; empty when they agree."""
    mismatches: List[str] = []
    if plan.size() != fixture.size:
        mismatches.append(f"{fixture.problem}: expected {fixture.size} actions, got {plan.size()}")
    if abs(plan.cost() - fixture.cost) > COST_TOLERANCE:
        mismatches.append(f"{fixture.problem}: expected cost {fixture.cost:g}, got {plan.cost():g}")
    labels = plan.labels(problem)
    for i, (expected, actual) in enumerate(zip(fixture.plan, labels)):
        if expected != actual:
            mismatches.append(f"{fixture.problem}: step {i}: expected '{expected}', got '{actual}'")
    if len(labels) != len(fixture.plan):
        mismatches.append(
            f"{fixture.problem}: expected {len(fixture.plan)} labels, got {len(labels)}")
    return mismatches
