from dataclasses import asdict, dataclass, fields
from typing import Any, Dict


@dataclass
class Statistics:
    """
    Measurements of one planner run.

    Owned by a single planner instance: zero-valued at construction, reset and
    rewritten by each search while statistics collection is enabled.
    Times are in seconds, memory in bytes.
    """
    time_to_parse: float = 0.0
    time_to_encode: float = 0.0
    time_to_search: float = 0.0
    memory_for_problem: int = 0
    memory_for_search: int = 0
    plan_length: int = 0
    number_of_actions: int = 0
    number_of_fluents: int = 0
    nodes_expanded: int = 0
    heuristic_calls: int = 0

    @property
    def total_time(self) -> float:
        return self.time_to_parse + self.time_to_encode + self.time_to_search

    @property
    def total_memory(self) -> int:
        return self.memory_for_problem + self.memory_for_search

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_time"] = self.total_time
        data["total_memory"] = self.total_memory
        return data

    def to_line(self, problem_name: str) -> str:
        """Single-line representation used by trace level 8."""
        mb = 1024.0 * 1024.0
        return " ".join([
            problem_name,
            str(self.number_of_actions),
            str(self.number_of_fluents),
            f"{self.time_to_parse:.2f}",
            f"{self.time_to_encode:.2f}",
            f"{self.time_to_search:.2f}",
            f"{self.total_time:.2f}",
            f"{self.memory_for_problem / mb:.2f}",
            f"{self.memory_for_search / mb:.2f}",
            f"{self.total_memory / mb:.2f}",
            str(self.plan_length),
        ])

    def to_string(self) -> str:
        mb = 1024.0 * 1024.0
        return "\n".join([
            f"time spent:   {self.time_to_parse:8.2f} seconds parsing",
            f"              {self.time_to_encode:8.2f} seconds encoding ({self.number_of_actions} actions, {self.number_of_fluents} fluents)",
            f"              {self.time_to_search:8.2f} seconds searching ({self.nodes_expanded} nodes expanded, {self.heuristic_calls} heuristic calls)",
            f"              {self.total_time:8.2f} seconds total time",
            f"memory used:  {self.memory_for_problem / mb:8.2f} MBytes for problem representation",
            f"              {self.memory_for_search / mb:8.2f} MBytes for searching",
            f"              {self.total_memory / mb:8.2f} MBytes total",
        ])
