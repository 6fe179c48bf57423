from dataclasses import dataclass, field
from typing import Any, Dict, List


OBJECT_TYPE = "object"


@dataclass
class ActionSchema:
    name: str
    parameters: List[str]  # variable names as they appear in the domain (e.g., ?x, ?y)
    parameter_types: List[str] = field(default_factory=list)  # one type per parameter
    preconditions: Any = None  # raw s-expression subtree of :precondition
    effects: Any = None        # raw s-expression subtree of :effect


@dataclass
class DomainIR:
    name: str
    predicates: Dict[str, int]  # predicate name -> arity, in declaration order
    actions: Dict[str, ActionSchema]  # action name -> schema, in declaration order
    requirements: List[str] = field(default_factory=list)
    types: Dict[str, str] = field(default_factory=dict)  # type -> parent type
    constants: Dict[str, str] = field(default_factory=dict)  # constant -> type


@dataclass
class ProblemIR:
    name: str
    domain_name: str
    objects: List[str]
    init: Any  # raw s-expression subtree of init
    goal: Any  # raw s-expression subtree of goal
    object_types: Dict[str, str] = field(default_factory=dict)  # object -> type
