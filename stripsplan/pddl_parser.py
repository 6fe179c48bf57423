from typing import Any, Dict, List, Tuple

from stripsplan.exceptions import EncodingError
from stripsplan.pddl_ir import OBJECT_TYPE, ActionSchema, DomainIR, ProblemIR


def _tokenize(s: str) -> List[str]:
    # PDDL is case-insensitive; comments run from ';' to end of line
    lines = [line.split(";", 1)[0] for line in s.lower().splitlines()]
    s = "\n".join(lines).replace("(", " ( ").replace(")", " ) ")
    return [t for t in s.split() if t]


def _parse(tokens: List[str]) -> Any:
    if not tokens:
        raise EncodingError("empty PDDL input")

    # open lists, innermost last; nesting depth is bounded by memory only
    stack: List[List[Any]] = []
    for i, tok in enumerate(tokens):
        if tok == "(":
            stack.append([])
            continue
        if tok == ")":
            if not stack:
                raise EncodingError("unexpected ')' in PDDL input", {"token_index": i})
            node: Any = stack.pop()
        else:
            node = tok
        if stack:
            stack[-1].append(node)
            continue
        if i + 1 != len(tokens):
            raise EncodingError("trailing tokens after PDDL definition", {"token": tokens[i + 1]})
        return node
    raise EncodingError("unexpected end of PDDL input: missing ')'")


def to_sexpr(node: Any, limit: int = 80) -> str:
    """Render a parsed node back to PDDL text for messages, cut after about limit characters."""
    parts: List[str] = []
    size = 0
    pending: List[Any] = [node]
    while pending and size <= limit:
        item = pending.pop()
        if isinstance(item, list):
            pending.append(")")
            pending.extend(reversed(item))
            item = "("
        parts.append(item)
        size += len(item) + 1
    text = " ".join(parts).replace("( ", "(").replace(" )", ")")
    return text + " ..." if pending else text


def _is_kw(x: Any, kw: str) -> bool:
    return isinstance(x, str) and x == kw


def _sections(tree: Any, kind: str) -> Tuple[str, List[Any]]:
    # (define (domain NAME) (:requirements ...) ...) -> ("NAME", [sections...])
    if not (isinstance(tree, list) and tree and _is_kw(tree[0], "define")):
        raise EncodingError(f"expected '(define ...)' at the top of the {kind} file")
    if len(tree) < 2 or not isinstance(tree[1], list) or len(tree[1]) != 2 or not _is_kw(tree[1][0], kind) \
            or not isinstance(tree[1][1], str):
        raise EncodingError(f"expected '({kind} NAME)' after define")
    sections = []
    for node in tree[2:]:
        if not (isinstance(node, list) and node and isinstance(node[0], str) and node[0].startswith(":")):
            raise EncodingError(f"unexpected element in {kind} definition: {to_sexpr(node)}")
        sections.append(node)
    return tree[1][1], sections


def _typed_list(items: List[Any]) -> List[Tuple[str, str]]:
    """
    Read a PDDL typed list such as "a b - block c" into [(a, block), (b, block), (c, object)].
    """
    out: List[Tuple[str, str]] = []
    pending: List[str] = []
    i = 0
    while i < len(items):
        item = items[i]
        if not isinstance(item, str):
            raise EncodingError(f"unexpected nested list in typed list: {to_sexpr(item)}")
        if item == "-":
            if i + 1 >= len(items) or not isinstance(items[i + 1], str):
                raise EncodingError("missing type name after '-'")
            out.extend((name, items[i + 1]) for name in pending)
            pending = []
            i += 2
            continue
        pending.append(item)
        i += 1
    out.extend((name, OBJECT_TYPE) for name in pending)
    return out


def _parse_action(blk: List[Any]) -> ActionSchema:
    # (:action name :parameters (...) :precondition (...) :effect (...))
    if len(blk) < 2 or not isinstance(blk[1], str):
        raise EncodingError("action without a name")
    act_name = blk[1]
    params: List[Tuple[str, str]] = []
    precond: Any = None
    effects: Any = None

    i = 2
    while i < len(blk):
        node = blk[i]
        if i + 1 >= len(blk):
            raise EncodingError(f"missing value after '{to_sexpr(node)}' in action '{act_name}'")
        value = blk[i + 1]
        if _is_kw(node, ":parameters"):
            if not isinstance(value, list):
                raise EncodingError(f"parameters of action '{act_name}' must be a list")
            params = _typed_list(value)
        elif _is_kw(node, ":precondition"):
            precond = value
        elif _is_kw(node, ":effect"):
            effects = value
        else:
            raise EncodingError(f"unsupported action field '{to_sexpr(node)}' in action '{act_name}'")
        i += 2

    for var, _ in params:
        if not var.startswith("?"):
            raise EncodingError(f"action '{act_name}' parameter '{var}' is not a variable")

    return ActionSchema(
        name=act_name,
        parameters=[p for p, _ in params],
        parameter_types=[t for _, t in params],
        preconditions=precond,
        effects=effects
    )


def parse_domain(domain_pddl: str) -> DomainIR:
    root = _parse(_tokenize(domain_pddl))
    name, sections = _sections(root, "domain")

    requirements: List[str] = []
    types: Dict[str, str] = {}
    constants: Dict[str, str] = {}
    predicates: Dict[str, int] = {}
    actions: Dict[str, ActionSchema] = {}

    for blk in sections:
        head = blk[0]
        if head == ":requirements":
            requirements.extend(r for r in blk[1:] if isinstance(r, str))
        elif head == ":types":
            for t, parent in _typed_list(blk[1:]):
                types[t] = parent
        elif head == ":constants":
            for c, t in _typed_list(blk[1:]):
                constants[c] = t
        elif head == ":predicates":
            # (:predicates (p ?x) (q ?x ?y) ...)
            for pred in blk[1:]:
                if not (isinstance(pred, list) and pred and isinstance(pred[0], str)):
                    raise EncodingError(f"malformed predicate declaration: {to_sexpr(pred)}")
                predicates[pred[0]] = len(_typed_list(pred[1:]))
        elif head == ":action":
            schema = _parse_action(blk)
            if schema.name in actions:
                raise EncodingError(f"action '{schema.name}' declared twice")
            actions[schema.name] = schema
        else:
            raise EncodingError(f"unsupported domain section '{head}'")

    return DomainIR(
        name=name,
        predicates=predicates,
        actions=actions,
        requirements=requirements,
        types=types,
        constants=constants
    )


def parse_problem(problem_pddl: str) -> ProblemIR:
    root = _parse(_tokenize(problem_pddl))
    name, sections = _sections(root, "problem")

    domain_name = ""
    object_types: Dict[str, str] = {}
    init_tree: List[Any] = []
    goal_tree: Any = None

    for blk in sections:
        head = blk[0]
        if head == ":domain":
            if len(blk) != 2 or not isinstance(blk[1], str):
                raise EncodingError("malformed ':domain' section")
            domain_name = blk[1]
        elif head == ":objects":
            # (:objects a b c - block)
            for obj, t in _typed_list(blk[1:]):
                object_types[obj] = t
        elif head == ":init":
            init_tree = blk[1:]
        elif head == ":goal":
            if len(blk) != 2:
                raise EncodingError("':goal' must hold exactly one formula")
            goal_tree = blk[1]
        elif head == ":requirements":
            continue
        else:
            raise EncodingError(f"unsupported problem section '{head}'")

    if goal_tree is None:
        raise EncodingError(f"problem '{name}' has no ':goal' section")

    return ProblemIR(
        name=name,
        domain_name=domain_name,
        objects=list(object_types),
        init=init_tree,
        goal=goal_tree,
        object_types=object_types
    )
