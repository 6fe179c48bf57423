# Configuration for the stripsplan planners
# - All configurable fields are read from environment variables with safe fallbacks
# - These values only seed the default ArgumentSet; command-line flags override them

import os
from pathlib import Path

# Project root (repo root assumed one level above this package)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Logging
LOG_LEVEL = os.getenv("STRIPSPLAN_LOG_LEVEL", "INFO")

# Planner defaults
DEFAULT_TIMEOUT_SECONDS = int(os.getenv("STRIPSPLAN_TIMEOUT", "300"))  # seconds
DEFAULT_TRACE_LEVEL = int(os.getenv("STRIPSPLAN_TRACE_LEVEL", "1"))
DEFAULT_WEIGHT = float(os.getenv("STRIPSPLAN_WEIGHT", "1.0"))
DEFAULT_HEURISTIC = os.getenv("STRIPSPLAN_HEURISTIC", "FAST_FORWARD")  # HeuristicType member name
DEFAULT_STATISTICS = os.getenv("STRIPSPLAN_STATISTICS", "true").lower() == "true"

# Action cost used by the encoder (STRIPS fragment: unit costs)
DEFAULT_ACTION_COST = 1.0

# Planner run by the command-line driver: "hsp" or "ff"
PLANNER = os.getenv("STRIPSPLAN_PLANNER", "hsp").lower()
