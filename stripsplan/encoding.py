# Problem encoding - Grounds a parsed STRIPS domain/problem pair into a bitset representation

import itertools
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Set, Tuple, Union

from stripsplan.config import DEFAULT_ACTION_COST
from stripsplan.exceptions import EncodingError, FileError
from stripsplan.pddl_ir import OBJECT_TYPE, ActionSchema, DomainIR, ProblemIR
from stripsplan.pddl_parser import parse_domain, parse_problem, to_sexpr

logger = logging.getLogger(__name__)

Literal = Tuple[str, Tuple[str, ...]]  # ("pred", ("a","b",...))


@dataclass(frozen=True)
class Fluent:
    predicate: str
    arguments: Tuple[str, ...]

    def __str__(self) -> str:
        return "(" + " ".join((self.predicate,) + self.arguments) + ")"


@dataclass(frozen=True)
class BitOp:
    """
    A grounded STRIPS operator over bitset states.

    States are plain ints: bit i is set when fluent i holds. Effects are
    applied delete-then-add, so an operator that both adds and deletes a
    fluent leaves it true.
    """
    name: str
    arguments: Tuple[str, ...]
    positive_preconditions: int
    negative_preconditions: int
    add_effects: int
    delete_effects: int
    cost: float = DEFAULT_ACTION_COST

    def is_applicable(self, state: int) -> bool:
        return (state & self.positive_preconditions) == self.positive_preconditions \
            and not (state & self.negative_preconditions)

    def apply(self, state: int) -> int:
        return (state & ~self.delete_effects) | self.add_effects


@dataclass
class EncodedProblem:
    name: str
    domain_name: str
    fluents: List[Fluent]
    operators: List[BitOp]
    init: int
    positive_goal: int
    negative_goal: int = 0
    parsing_time: float = 0.0  # seconds
    encoding_time: float = 0.0  # seconds
    fluent_index: Dict[Fluent, int] = field(default_factory=dict, repr=False)

    def is_goal(self, state: int) -> bool:
        return (state & self.positive_goal) == self.positive_goal and not (state & self.negative_goal)

    def to_short_string(self, op: BitOp) -> str:
        """Human-readable label of an operator: its name followed by its arguments."""
        return " ".join((op.name,) + op.arguments)

    def to_string(self, op: BitOp) -> str:
        lines = [f"action ({self.to_short_string(op)}) cost {op.cost:g}"]
        lines.append("  preconditions: " + self.mask_to_string(op.positive_preconditions))
        if op.negative_preconditions:
            lines.append("  negative preconditions: " + self.mask_to_string(op.negative_preconditions))
        lines.append("  add: " + self.mask_to_string(op.add_effects))
        lines.append("  delete: " + self.mask_to_string(op.delete_effects))
        return "\n".join(lines)

    def mask_to_string(self, mask: int) -> str:
        return " ".join(str(self.fluents[i]) for i in iter_bits(mask))

    def memory_size(self) -> int:
        """Approximate number of bytes held by the encoded representation."""
        size = sys.getsizeof(self.fluents) + sys.getsizeof(self.operators)
        size += sum(sys.getsizeof(f) + sys.getsizeof(f.arguments) for f in self.fluents)
        for op in self.operators:
            size += sys.getsizeof(op) + sys.getsizeof(op.arguments)
            size += sum(sys.getsizeof(m) for m in (
                op.positive_preconditions, op.negative_preconditions, op.add_effects, op.delete_effects))
        return size + sys.getsizeof(self.init) + sys.getsizeof(self.positive_goal)


def iter_bits(mask: int) -> Iterable[int]:
    """Yield the indices of the set bits of mask in increasing order."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def _is_list(x: Any) -> bool:
    return isinstance(x, list)


def _is_sym(x: Any) -> bool:
    return isinstance(x, str)


def _flatten_and(node: Any) -> List[Any]:
    # Turn (and a b (and c d)) into [a,b,c,d]; single term -> [term]; None or () -> []
    out: List[Any] = []
    pending = [node]
    while pending:
        cur = pending.pop()
        if cur is None or (_is_list(cur) and not cur):
            continue
        if _is_list(cur) and _is_sym(cur[0]) and cur[0] == "and":
            pending.extend(reversed(cur[1:]))
            continue
        out.append(cur)
    return out


def _literal_from_term(term: Any) -> Tuple[Literal, bool]:
    # Return ((pred, (args...)), is_neg)
    if not _is_list(term) or not term:
        raise EncodingError(f"invalid literal term: {to_sexpr(term)}")
    if _is_sym(term[0]) and term[0] == "not":
        if len(term) != 2:
            raise EncodingError(f"invalid negated literal: {to_sexpr(term)}")
        inner = term[1]
        if _is_list(inner) and inner and inner[0] == "not":
            raise EncodingError(f"double negation is not supported: {to_sexpr(term)}")
        lit, _ = _literal_from_term(inner)
        return lit, True
    if not _is_sym(term[0]) or term[0] in ("or", "imply", "forall", "exists", "when"):
        raise EncodingError(f"only conjunctions of literals are supported: {to_sexpr(term)}")
    if not all(_is_sym(a) for a in term[1:]):
        raise EncodingError(f"invalid literal arguments: {to_sexpr(term)}")
    return (term[0], tuple(term[1:])), False


def _literals(tree: Any) -> List[Tuple[Literal, bool]]:
    return [_literal_from_term(t) for t in _flatten_and(tree)]


def _ground(lit: Literal, var_map: Dict[str, str]) -> Literal:
    pred, args = lit
    return (pred, tuple(var_map.get(a, a) for a in args))


@dataclass
class _GroundAction:
    name: str
    args: Tuple[str, ...]
    pos: List[Literal]
    neg: List[Literal]
    add: List[Literal]
    dels: List[Literal]


class ProblemEncoder:
    """
    Ground a DomainIR/ProblemIR pair and encode it as an EncodedProblem.

    Fluents are ordered by predicate declaration order and then by argument
    tuple in object order; operators by action declaration order and then by
    argument tuple in object order. Search tie-breaking relies on this order.
    """

    def __init__(self, domain: DomainIR, problem: ProblemIR):
        self.domain = domain
        self.problem = problem
        self.objects: List[str] = list(domain.constants) + [
            o for o in problem.objects if o not in domain.constants]
        self.object_types: Dict[str, str] = dict(domain.constants)
        self.object_types.update(problem.object_types)
        self.object_order = {o: i for i, o in enumerate(self.objects)}
        self.predicate_order = {p: i for i, p in enumerate(domain.predicates)}

    def _check_literal(self, lit: Literal, variables: Set[str], where: str) -> None:
        pred, args = lit
        if pred == "=":
            if len(args) != 2:
                raise EncodingError(f"equality takes two arguments in {where}")
        elif pred not in self.domain.predicates:
            raise EncodingError(f"undeclared predicate '{pred}' in {where}")
        elif len(args) != self.domain.predicates[pred]:
            raise EncodingError(
                f"arity mismatch for '{pred}' in {where}: expected {self.domain.predicates[pred]}, got {len(args)}")
        for a in args:
            if a.startswith("?"):
                if a not in variables:
                    raise EncodingError(f"unbound variable '{a}' in {where}")
            elif a not in self.object_order:
                raise EncodingError(f"unknown object '{a}' in {where}")

    def _is_subtype(self, t: str, ancestor: str) -> bool:
        seen = set()
        while t not in seen:
            if t == ancestor:
                return True
            seen.add(t)
            if t == OBJECT_TYPE:
                break
            t = self.domain.types.get(t, OBJECT_TYPE)
        return ancestor == OBJECT_TYPE

    def _objects_of(self, t: str) -> List[str]:
        return [o for o in self.objects if self._is_subtype(self.object_types.get(o, OBJECT_TYPE), t)]

    def _static_predicates(self) -> Set[str]:
        changed: Set[str] = set()
        for schema in self.domain.actions.values():
            for (pred, _), _neg in _literals(schema.effects):
                changed.add(pred)
        return set(self.domain.predicates) - changed

    def _ground_schema(self, schema: ActionSchema, init: Set[Literal], statics: Set[str]) -> List[_GroundAction]:
        variables = set(schema.parameters)
        preconds = _literals(schema.preconditions)
        effects = _literals(schema.effects)
        for lit, _ in preconds:
            self._check_literal(lit, variables, f"precondition of '{schema.name}'")
        for lit, _ in effects:
            self._check_literal(lit, variables, f"effect of '{schema.name}'")
            if lit[0] == "=":
                raise EncodingError(f"equality cannot be an effect of '{schema.name}'")

        domains = [self._objects_of(t) for t in schema.parameter_types]
        out: List[_GroundAction] = []
        for args in itertools.product(*domains):
            var_map = dict(zip(schema.parameters, args))
            pos: List[Literal] = []
            neg: List[Literal] = []
            applicable = True
            for lit, is_neg in preconds:
                pred, gargs = _ground(lit, var_map)
                if pred == "=":
                    holds = gargs[0] == gargs[1]
                elif pred in statics:
                    holds = (pred, gargs) in init
                else:
                    (neg if is_neg else pos).append((pred, gargs))
                    continue
                if holds == is_neg:
                    applicable = False
                    break
            if not applicable or set(pos) & set(neg):
                continue
            add = [_ground(lit, var_map) for lit, is_neg in effects if not is_neg]
            dels = [_ground(lit, var_map) for lit, is_neg in effects if is_neg]
            out.append(_GroundAction(schema.name, tuple(args), pos, neg, add, dels))
        return out

    @staticmethod
    def _reachable(actions: List[_GroundAction], init: Set[Literal]) -> List[_GroundAction]:
        # Delete-relaxed reachability; negative preconditions are ignored
        reached = set(init)
        keep = [False] * len(actions)
        changed = True
        while changed:
            changed = False
            for i, act in enumerate(actions):
                if not keep[i] and all(p in reached for p in act.pos):
                    keep[i] = True
                    reached.update(act.add)
                    changed = True
        return [a for a, k in zip(actions, keep) if k]

    def _sort_key(self, lit: Literal) -> Tuple[int, Tuple[int, ...]]:
        pred, args = lit
        return self.predicate_order[pred], tuple(self.object_order[a] for a in args)

    def encode(self) -> EncodedProblem:
        if self.problem.domain_name and self.problem.domain_name != self.domain.name:
            raise EncodingError(
                f"problem '{self.problem.name}' is defined for domain '{self.problem.domain_name}'",
                {"domain": self.domain.name})

        init: Set[Literal] = set()
        for lit, is_neg in _literals(["and"] + list(self.problem.init)):
            self._check_literal(lit, set(), "initial state")
            if lit[0] == "=":
                raise EncodingError("equality is only supported in action preconditions")
            if not is_neg:
                init.add(lit)
        goals = _literals(self.problem.goal)
        for lit, _ in goals:
            self._check_literal(lit, set(), "goal")
            if lit[0] == "=":
                raise EncodingError("equality is only supported in action preconditions")

        statics = self._static_predicates()
        actions: List[_GroundAction] = []
        for schema in self.domain.actions.values():
            actions.extend(self._ground_schema(schema, init, statics))
        grounded = len(actions)
        actions = self._reachable(actions, init)
        logger.debug(f"Grounded {grounded} actions, {len(actions)} reachable")

        relevant: Set[Literal] = set()
        for act in actions:
            relevant.update(act.pos, act.neg, act.add, act.dels)
        relevant.update(lit for lit, _ in goals)
        relevant.update(lit for lit in init if lit[0] not in statics)
        ordered = sorted(relevant, key=self._sort_key)
        index = {lit: i for i, lit in enumerate(ordered)}

        def mask(lits: Iterable[Literal]) -> int:
            m = 0
            for lit in lits:
                m |= 1 << index[lit]
            return m

        operators = [
            BitOp(
                name=a.name,
                arguments=a.args,
                positive_preconditions=mask(a.pos),
                negative_preconditions=mask(a.neg),
                add_effects=mask(a.add),
                delete_effects=mask(a.dels),
            )
            for a in actions
        ]

        positive_goal = 0
        negative_goal = 0
        for (pred, args), is_neg in goals:
            if is_neg:
                negative_goal |= mask([(pred, args)])
            else:
                positive_goal |= mask([(pred, args)])

        fluents = [Fluent(pred, args) for pred, args in ordered]
        return EncodedProblem(
            name=self.problem.name,
            domain_name=self.domain.name,
            fluents=fluents,
            operators=operators,
            init=mask(lit for lit in init if lit in index),
            positive_goal=positive_goal,
            negative_goal=negative_goal,
            fluent_index={f: i for i, f in enumerate(fluents)},
        )


def _read(path: Union[str, Path], kind: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise FileError(f"cannot read {kind} file: {e.strerror or e}", {"path": str(path)}) from e
    except UnicodeDecodeError as e:
        raise FileError(f"{kind} file is not valid UTF-8 text: {e.reason} at byte {e.start}",
                        {"path": str(path)}) from e


def encode(domain_path: Union[str, Path], problem_path: Union[str, Path]) -> EncodedProblem:
    """
    Read, parse and encode a PDDL domain/problem pair.

    Raises:
        FileError: a file is missing or unreadable
        EncodingError: a file is not valid STRIPS PDDL
    """
    domain_text = _read(domain_path, "domain")
    problem_text = _read(problem_path, "problem")

    start = time.perf_counter()
    domain = parse_domain(domain_text)
    problem = parse_problem(problem_text)
    parsing_time = time.perf_counter() - start

    start = time.perf_counter()
    encoded = ProblemEncoder(domain, problem).encode()
    encoded.encoding_time = time.perf_counter() - start
    encoded.parsing_time = parsing_time

    logger.info(
        f"Encoded problem {encoded.name}: {len(encoded.operators)} actions, {len(encoded.fluents)} fluents")
    return encoded
