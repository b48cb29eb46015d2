from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from .context import EvaluationContext
from .errors import DanglingReferenceError, UnboundContextError
from .utils import COMPARATORS, parse_bool, parse_version, to_int, to_text, variable_operand

logger = logging.getLogger(__name__)

UNKNOWN_ID = "UNKNOWN"


def generate_id(type_name: str) -> str:
    """Return a fresh ``"<type>-<uuid>"`` condition id."""
    condition_id = f"{type_name}-{uuid.uuid4()}"
    logger.debug("Random condition id %s generated", condition_id)
    return condition_id


class Condition:
    """Base class for all condition types.

    A condition is a boolean predicate over the installer state. It must be
    bound to an ``EvaluationContext`` with ``bind()`` before ``is_true()``
    is called.

    Subclasses implement ``evaluate()``; ``fields()`` and ``explain()`` can
    be overridden to expose variant details.

    Attributes:
        type_name: The declaration type tag (e.g. ``'variable'``, ``'and'``).
        id: Unique id within a registry.
        context: The bound evaluation context, or ``None``.
    """

    type_name: str = "condition"
    id: str = ""
    context: EvaluationContext | None = None

    def bind(self, context: EvaluationContext | None) -> Condition:
        """Attach the condition to ``context`` and return it."""
        self.context = context
        return self

    def is_true(self) -> bool:
        """Evaluate the condition against its bound context.

        Raises:
            UnboundContextError: If no context has been bound.
        """
        if self.context is None:
            raise UnboundContextError(f"condition '{self.id}' is not bound to an evaluation context")
        return self.evaluate(self.context)

    def evaluate(self, ctx: EvaluationContext) -> bool:
        raise NotImplementedError

    def fields(self) -> dict[str, Any]:
        """Return the variant-specific declaration fields."""
        return {}

    def to_declaration(self) -> dict[str, Any]:
        """Return the declaration that recreates this condition."""
        return {"type": self.type_name, "id": self.id, **self.fields()}

    def explain(self) -> dict[str, Any]:
        """Return a detailed explanation of this condition's evaluation.

        Returns:
            dict: Explanation containing at least 'id', 'type' and 'result'.
        """
        return {"id": self.id, "type": self.type_name, **self.fields(), "result": self.is_true()}


def operand_key(operand: Condition) -> str:
    """Return the id a composite declaration uses to refer to ``operand``."""
    if isinstance(operand, RefCondition) and operand.inline:
        return operand.refid
    return operand.id


@dataclass(eq=False)
class BinaryCondition(Condition):
    """Base for logical conditions with exactly two operands.

    Attributes:
        left: First operand.
        right: Second operand.
    """

    left: Condition
    right: Condition

    def bind(self, context: EvaluationContext | None) -> Condition:
        self.context = context
        for operand in (self.left, self.right):
            if operand.context is None:
                operand.bind(context)
        return self

    def fields(self) -> dict[str, Any]:
        return {"operands": [operand_key(self.left), operand_key(self.right)]}

    def explain(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type_name,
            "operands": [self.left.explain(), self.right.explain()],
            "result": self.is_true(),
        }


@dataclass(eq=False)
class AndCondition(BinaryCondition):
    """True iff both operands are true. Short-circuits on the left operand."""

    type_name = "and"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return self.left.is_true() and self.right.is_true()


@dataclass(eq=False)
class OrCondition(BinaryCondition):
    """True iff at least one operand is true. Short-circuits on the left operand."""

    type_name = "or"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return self.left.is_true() or self.right.is_true()


@dataclass(eq=False)
class XorCondition(BinaryCondition):
    """True iff exactly one operand is true."""

    type_name = "xor"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return self.left.is_true() != self.right.is_true()


@dataclass(eq=False)
class NotCondition(Condition):
    """Logical NOT of a single operand."""

    type_name = "not"
    operand: Condition

    def bind(self, context: EvaluationContext | None) -> Condition:
        self.context = context
        if self.operand.context is None:
            self.operand.bind(context)
        return self

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return not self.operand.is_true()

    def fields(self) -> dict[str, Any]:
        return {"operand": operand_key(self.operand)}

    def explain(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type_name, "operand": self.operand.explain(), "result": self.is_true()}


@dataclass(eq=False)
class RefCondition(Condition):
    """Named pointer to another condition.

    The target is looked up in the registry's resolution pass and the
    reference delegates to it from then on. Evaluating a reference that
    was never resolved raises ``DanglingReferenceError``.

    Attributes:
        refid: Id of the target condition.
        inline: ``True`` when the reference stands for an operand written
            as a bare id inside a composite declaration. Inline references
            are not stored in the registry under their own id.
    """

    type_name = "ref"
    refid: str
    inline: bool = False
    target: Condition | None = field(default=None, init=False, repr=False)

    def resolve(self, target: Condition) -> None:
        self.target = target

    def evaluate(self, ctx: EvaluationContext) -> bool:
        if self.target is None:
            raise DanglingReferenceError([self.refid])
        return self.target.is_true()

    def fields(self) -> dict[str, Any]:
        return {"refid": self.refid}

    def explain(self) -> dict[str, Any]:
        target = self.target.explain() if self.target is not None else None
        return {"id": self.id, "type": self.type_name, "refid": self.refid, "target": target, "result": self.is_true()}


@dataclass(eq=False)
class VariableCondition(Condition):
    """True iff variable ``name`` is set and its string value equals ``value``."""

    type_name = "variable"
    name: str
    value: str

    def evaluate(self, ctx: EvaluationContext) -> bool:
        actual = ctx.get_var(self.name)
        return actual is not None and to_text(actual) == self.value

    def fields(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass(eq=False)
class ExistsCondition(Condition):
    """True iff variable ``variable`` is set, whatever its value."""

    type_name = "exists"
    variable: str

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return ctx.is_set(self.variable)

    def fields(self) -> dict[str, Any]:
        return {"variable": self.variable}


@dataclass(eq=False)
class EmptyCondition(Condition):
    """True iff variable ``variable`` is unset or set to the empty string."""

    type_name = "empty"
    variable: str

    def evaluate(self, ctx: EvaluationContext) -> bool:
        value = ctx.get_var(self.variable)
        return value is None or str(value) == ""

    def fields(self) -> dict[str, Any]:
        return {"variable": self.variable}


@dataclass(eq=False)
class ComparisonCondition(Condition):
    """Base for conditions comparing two operands with an operator.

    Operands are literal strings, or ``${NAME}`` to read variable ``NAME``
    when the condition is evaluated.

    Supported operators: eq, ne, lt, le, gt, ge.

    Attributes:
        arg1: Left operand.
        arg2: Right operand.
        operator: The comparison operator.
    """

    arg1: str
    arg2: str
    operator: str = "eq"

    def _resolve(self, ctx: EvaluationContext, operand: str) -> Any:
        name = variable_operand(operand)
        if name is None:
            return operand
        value = ctx.get_var(name)
        if value is None:
            logger.warning("Condition %s: variable %s is not set", self.id, name)
        return value

    def _compare(self, left: Any, right: Any) -> bool:
        return COMPARATORS[self.operator](left, right)

    def fields(self) -> dict[str, Any]:
        return {"arg1": self.arg1, "arg2": self.arg2, "operator": self.operator}


@dataclass(eq=False)
class CompareNumericsCondition(ComparisonCondition):
    """Compares two integer operands.

    Evaluates to ``False`` with a warning if either operand is not an
    integer.
    """

    type_name = "comparenumerics"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        left = to_int(self._resolve(ctx, self.arg1))
        right = to_int(self._resolve(ctx, self.arg2))
        if left is None or right is None:
            logger.warning("Condition %s: cannot compare non-numeric operands %r and %r", self.id, self.arg1, self.arg2)
            return False
        return self._compare(left, right)


@dataclass(eq=False)
class CompareVersionsCondition(ComparisonCondition):
    """Compares two operands as dotted version numbers (``1.10 > 1.9``)."""

    type_name = "compareversions"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        left = self._resolve(ctx, self.arg1)
        right = self._resolve(ctx, self.arg2)
        if left is None or right is None:
            return False
        return self._compare(parse_version(str(left)), parse_version(str(right)))


@dataclass(eq=False)
class PackSelectionCondition(Condition):
    """True iff pack ``packid`` is currently selected for installation."""

    type_name = "packselection"
    packid: str

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return ctx.is_selected(self.packid)

    def fields(self) -> dict[str, Any]:
        return {"packid": self.packid}


@dataclass(eq=False)
class DelegateCondition(Condition):
    """Checks a fact exposed by the context's fact provider.

    The fact ``member`` of ``source`` is fetched and compared with
    ``expected`` according to ``result_type``:
        - boolean: both sides interpreted with ``parse_bool()``
        - integer: both sides converted to int
        - string: string equality

    An unknown fact evaluates to ``False`` with a warning.

    Attributes:
        source: Fact source name (e.g. ``'os'``).
        member: Fact name within the source (e.g. ``'IS_LINUX'``).
        expected: Value the fact must have.
        result_type: How to compare the fact with ``expected``.
    """

    type_name = "delegate"
    source: str
    member: str
    expected: str = "true"
    result_type: str = "boolean"

    def evaluate(self, ctx: EvaluationContext) -> bool:
        try:
            actual = ctx.fact(self.source, self.member)
        except LookupError as exc:
            logger.warning("Condition %s: fact %s.%s unavailable: %s", self.id, self.source, self.member, exc)
            return False
        if self.result_type == "boolean":
            return parse_bool(actual) == parse_bool(self.expected)
        if self.result_type == "integer":
            left = to_int(actual)
            return left is not None and left == to_int(self.expected)
        return actual is not None and to_text(actual) == self.expected

    def fields(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "member": self.member,
            "expected": self.expected,
            "result_type": self.result_type,
        }


@dataclass(eq=False)
class UserCondition(Condition):
    """Boolean flag captured from an earlier user answer.

    The installer session records the answer with ``record()``; the flag
    is persisted as the ``value`` field of the declaration.
    """

    type_name = "user"
    value: bool = False

    def record(self, choice: bool) -> None:
        self.value = bool(choice)

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return self.value

    def fields(self) -> dict[str, Any]:
        return {"value": self.value}
