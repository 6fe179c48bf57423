# Main Entry Point - Command-line driver: parse flags, encode the problem, search, print the plan

import logging
import sys
from typing import List, Optional

from stripsplan.arguments import ArgumentSet, default_arguments, parse_arguments, usage
from stripsplan.config import LOG_LEVEL, PLANNER
from stripsplan.encoding import encode
from stripsplan.exceptions import ConfigurationError, PlannerError
from stripsplan.ff import FF
from stripsplan.hsp import HSP
from stripsplan.planner import LINE_TRACE_LEVEL
from stripsplan.validator import validate_plan

logger = logging.getLogger("stripsplan")

# STRIPSPLAN_PLANNER value -> planner class
PLANNERS = {"hsp": HSP, "ff": FF}


def _wants_help(tokens: List[str]) -> bool:
    # "-h" only counts in flag position, not as the value of another flag
    return any(tokens[i].lower() == "-h" for i in range(0, len(tokens), 2))


def run(arguments: ArgumentSet) -> int:
    """Solve the problem named by arguments with the configured planner and print the outcome."""
    planner_cls = PLANNERS.get(PLANNER)
    if planner_cls is None:
        logger.error(f"Unknown planner '{PLANNER}', expected one of: {', '.join(PLANNERS)}")
        return 2
    planner = planner_cls()
    planner.configure(arguments)
    try:
        problem = encode(arguments.domain, arguments.problem)
    except PlannerError as e:
        logger.error(f"Cannot encode problem: {e}")
        return 1

    plan = planner.search(problem)
    quiet = arguments.trace_level == LINE_TRACE_LEVEL
    if plan is None:
        if not quiet:
            print("no plan found")
    else:
        ok, report = validate_plan(problem, plan)
        if not ok:
            logger.warning(f"returned plan does not validate: {report}")
        if not quiet:
            print(f"\nfound plan as follows:\n\n{plan.to_string(problem)}\n")
            print(f"plan total cost: {plan.cost():g}")

    if planner.is_statistics_enabled() and not quiet:
        print(planner.get_statistics().to_string())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    tokens = list(sys.argv[1:] if argv is None else argv)

    if _wants_help(tokens):
        print(usage())
        return 0

    try:
        arguments = parse_arguments(tokens, logger, default_arguments())
    except ConfigurationError as e:
        logger.debug(f"Argument parsing failed: {e}")
        return 2

    return run(arguments)


if __name__ == "__main__":
    sys.exit(main())
