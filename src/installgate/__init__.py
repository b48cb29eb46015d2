"""installgate - condition evaluation for installer panels and packs.

installgate decides, during an installation, whether a panel is shown and
whether a pack may be installed. Conditions are declared in a
specification document, combined with boolean operators, and evaluated
against the live installer variables, the pack selection and facts about
the host.

Quick Start:
    >>> from installgate import EvaluationContext, GateEvaluator, build_registry, load_spec
    >>> spec = load_spec({
    ...     "conditions": [{"type": "variable", "id": "expert", "name": "MODE", "value": "expert"}],
    ...     "panelconditions": [{"panelid": "TuningPanel", "conditionid": "expert"}],
    ... })
    >>> context = EvaluationContext(variables={"MODE": "expert"})
    >>> gates = GateEvaluator(build_registry(spec, context))
    >>> gates.can_show_panel("TuningPanel")
    True

Main Components:
    - ConditionRegistry: Creates, stores and evaluates conditions by id or expression
    - GateEvaluator: Panel and pack gating decisions
    - load_spec() / build_registry(): Load a specification from dict, JSON or YAML
    - EvaluationContext: Installer variables, pack selection and host facts
    - ConditionTypes: Condition type table, extensible with custom types

Built-in Condition Types:
    - and, or, xor, not: Logical composition
    - ref: Reference to another condition by id
    - variable: Variable equals a value
    - exists, empty: Variable is set / is unset or empty
    - comparenumerics, compareversions: Compare with eq, ne, lt, le, gt, ge
    - packselection: Pack is selected
    - delegate: External fact (e.g. operating system) has a value
    - user: Flag recorded from a user answer

Expressions:
    - ``a+b|c``: simple chain, first operator wins (``a AND (b OR c)``)
    - ``@a&&b||c``: complex, split on ``||`` then ``&&`` then ``^``

Exceptions:
    - SpecLoadError: Specification document could not be loaded
    - ConditionSyntaxError: Invalid condition declaration
    - UnknownTypeError: Condition type not registered
    - DanglingReferenceError: Reference to an unknown condition id
    - MalformedExpressionError: Expression could not be parsed
    - UnboundContextError: Condition evaluated without a context
"""

from .builtins import Pack, synthesize_builtins
from .conditions import Condition
from .context import EvaluationContext
from .engine import GateDecision, GateEvaluator
from .errors import (
    ConditionSyntaxError,
    DanglingReferenceError,
    InstallGateError,
    MalformedExpressionError,
    SpecLoadError,
    UnboundContextError,
    UnknownTypeError,
)
from .facts import PlatformFacts
from .factories import ConditionTypes, get_default_types
from .loader import SpecDocument, build_registry, load_spec
from .registry import ConditionRegistry

__all__ = [
    "Condition",
    "ConditionRegistry",
    "ConditionSyntaxError",
    "ConditionTypes",
    "DanglingReferenceError",
    "EvaluationContext",
    "GateDecision",
    "GateEvaluator",
    "InstallGateError",
    "MalformedExpressionError",
    "Pack",
    "PlatformFacts",
    "SpecDocument",
    "SpecLoadError",
    "UnboundContextError",
    "UnknownTypeError",
    "build_registry",
    "get_default_types",
    "load_spec",
    "synthesize_builtins",
]
