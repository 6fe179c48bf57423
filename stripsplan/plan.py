from dataclasses import dataclass
from typing import Iterator, List, Tuple

from stripsplan.encoding import BitOp, EncodedProblem


@dataclass(frozen=True)
class SequentialPlan:
    """An ordered, costed sequence of encoded operators returned by a successful search."""
    steps: Tuple[BitOp, ...] = ()

    def actions(self) -> List[BitOp]:
        return list(self.steps)

    def size(self) -> int:
        return len(self.steps)

    def cost(self) -> float:
        return sum((op.cost for op in self.steps), 0.0)

    def is_empty(self) -> bool:
        return not self.steps

    def labels(self, problem: EncodedProblem) -> List[str]:
        return [problem.to_short_string(op) for op in self.steps]

    def to_string(self, problem: EncodedProblem) -> str:
        width = max(2, len(str(len(self.steps) - 1)))
        return "\n".join(
            f"{i:0{width}d}: ({problem.to_short_string(op)}) [{op.cost:g}]" for i, op in enumerate(self.steps))

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[BitOp]:
        return iter(self.steps)
