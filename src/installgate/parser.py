"""Condition expression grammars.

Two independent grammars turn an expression into a condition tree. Both
only look up operands directly in the registry, and the nodes they build
are bound to the registry's context but never registered.

Simple chain syntax (no leading ``@``):
    Condition ids joined by ``+`` (AND), ``|`` (OR) and ``\\`` (XOR), with
    an optional leading ``!`` (NOT). The first operator found decides the
    outermost node: the text before it is the left operand and the rest of
    the expression, parsed again, is the right operand. ``"a+b|c"``
    therefore means ``a AND (b OR c)``. There is no precedence between the
    operators.

Complex syntax (after a leading ``@``):
    Condition ids joined by ``||``, ``&&``, ``^`` and prefixed by ``!``.
    The expression is split on the first ``||`` if it contains one
    anywhere, else on the first ``&&``, else on the first ``^``; a ``!``
    negates everything after it. ``"a&&b||c"`` means ``(a AND b) OR c``.
    Parentheses are not supported.

Existing installer descriptors depend on both behaviours, so neither is
rewritten into conventional boolean precedence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .conditions import AndCondition, Condition, NotCondition, OrCondition, XorCondition, generate_id
from .errors import MalformedExpressionError

if TYPE_CHECKING:
    from .registry import ConditionRegistry

SIMPLE_OPERATORS = {"+": AndCondition, "|": OrCondition, "\\": XorCondition}
COMPLEX_OPERATORS = (("||", OrCondition), ("&&", AndCondition), ("^", XorCondition))


class ExpressionParser:
    """Builds condition trees from expressions over a registry's conditions."""

    def __init__(self, registry: ConditionRegistry) -> None:
        self.registry = registry

    def parse(self, expression: str) -> Condition | None:
        """Parse ``expression`` with the grammar its first character selects.

        Returns:
            The condition tree, or ``None`` if the expression is a single id
            that names no registered condition.

        Raises:
            MalformedExpressionError: If the expression is malformed or an
                operand of a compound expression is unknown.
        """
        if expression.startswith("@"):
            return self.parse_complex(expression[1:])
        return self.parse_simple(expression)

    def parse_simple(self, expression: str) -> Condition | None:
        for index, char in enumerate(expression):
            if char in SIMPLE_OPERATORS:
                left = self._required(self.registry.get(expression[:index]), expression[:index], expression)
                rest = expression[index + 1 :]
                right = self._required(self.parse_simple(rest), rest, expression)
                return self._node(SIMPLE_OPERATORS[char](left=left, right=right))
            if char == "!":
                if index > 0:
                    raise MalformedExpressionError(expression, "'!' operator only allowed at position 0")
                rest = expression[1:]
                return self._node(NotCondition(operand=self._required(self.parse_simple(rest), rest, expression)))
        return self.registry.get(expression)

    def parse_complex(self, expression: str) -> Condition | None:
        expression = expression.strip()
        for token, cls in COMPLEX_OPERATORS:
            if token in expression:
                left_text, right_text = expression.split(token, 1)
                left = self._required(self.parse_complex(left_text), left_text, expression)
                right = self._required(self.parse_complex(right_text), right_text, expression)
                return self._node(cls(left=left, right=right))
        if "!" in expression:
            prefix, rest = expression.split("!", 1)
            if prefix.strip():
                raise MalformedExpressionError(expression, "'!' must precede its operand")
            return self._node(NotCondition(operand=self._required(self.parse_complex(rest), rest, expression)))
        return self.registry.get(expression)

    def _required(self, condition: Condition | None, operand: str, expression: str) -> Condition:
        if condition is None:
            raise MalformedExpressionError(expression, f"'{operand.strip()}' is not a known condition")
        return condition

    def _node(self, condition: Condition) -> Condition:
        condition.id = generate_id(condition.type_name)
        return condition.bind(self.registry.context)
