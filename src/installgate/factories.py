from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .conditions import (
    AndCondition,
    BinaryCondition,
    CompareNumericsCondition,
    CompareVersionsCondition,
    Condition,
    DelegateCondition,
    EmptyCondition,
    ExistsCondition,
    NotCondition,
    OrCondition,
    PackSelectionCondition,
    RefCondition,
    UserCondition,
    VariableCondition,
    XorCondition,
)
from .errors import ConditionSyntaxError, UnknownTypeError
from .utils import COMPARATORS, normalize_key, parse_bool, to_text

if TYPE_CHECKING:
    from .registry import ConditionRegistry

ConditionFactory = Callable[[dict[str, Any], "ConditionRegistry"], Condition]
"""Type alias for condition factory functions.

A condition factory takes a declaration dict and the registry the
condition is being created in, and returns an unbound ``Condition``
without an id. The registry assigns the id and binds the context.
"""


class ConditionTypes:
    """Mapping from condition type tags to factory functions.

    A ``ConditionTypes`` instance starts out with the built-in types.
    Installers that ship their own predicate kinds add them with
    ``register()``.

    Example:
        >>> types = ConditionTypes()
        >>> types.register("registrykey", my_registry_key_factory)
        >>> "registrykey" in types
        True
    """

    def __init__(self, extra: Mapping[str, ConditionFactory] | None = None) -> None:
        """Create a type table seeded with the built-in condition types.

        Args:
            extra: Optional additional factories keyed by type tag. These
                may override built-in tags.
        """
        self._factories: dict[str, ConditionFactory] = dict(BUILTIN_TYPES)
        for type_name, factory in (extra or {}).items():
            self.register(type_name, factory)

    def __contains__(self, type_name: str) -> bool:
        return normalize_key(type_name) in self._factories

    def names(self) -> list[str]:
        return sorted(self._factories)

    def register(self, type_name: str, factory: ConditionFactory) -> None:
        """Register a condition factory for a given type tag.

        If a factory is already registered for the tag, it will be
        replaced. Tags are matched case-insensitively.
        """
        self._factories[normalize_key(type_name)] = factory

    def unregister(self, type_name: str) -> None:
        """Remove a condition factory. Does nothing if the tag is unknown."""
        self._factories.pop(normalize_key(type_name), None)

    def create(self, declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
        """Create a condition instance from a declaration dictionary.

        Args:
            declaration: A condition declaration. Must have at least a
                ``"type"`` field identifying the condition type.
            registry: Registry that nested operands are registered in.

        Returns:
            An unbound ``Condition`` without an id.

        Raises:
            ConditionSyntaxError: If ``declaration`` is not a dict, has no
                ``"type"`` field, or lacks fields its type requires.
            UnknownTypeError: If the type tag is not registered.
        """
        type_name = declaration_type(declaration)
        if type_name not in self._factories:
            raise UnknownTypeError(type_name)
        return self._factories[type_name](declaration, registry)


def declaration_type(declaration: Any) -> str:
    """Return the normalized type tag of a declaration.

    Raises:
        ConditionSyntaxError: If the declaration is not a dict or has no
            non-empty ``"type"``.
    """
    if not isinstance(declaration, dict):
        raise ConditionSyntaxError("condition declaration must be a dict")
    type_name = declaration.get("type")
    if not isinstance(type_name, str) or not type_name.strip():
        raise ConditionSyntaxError("condition declaration requires non-empty 'type'")
    return normalize_key(type_name)


_default_types: ConditionTypes | None = None


def get_default_types() -> ConditionTypes:
    """Return the shared type table with only the built-in types.

    The table is lazily created on first access and cached for subsequent
    calls.
    """
    global _default_types
    if _default_types is None:
        _default_types = ConditionTypes()
    return _default_types


def _field(declaration: dict[str, Any], key: str, *, required: bool = True, default: str | None = None) -> str:
    value = declaration.get(key, default)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ConditionSyntaxError(f"{declaration_type(declaration)} condition requires non-empty '{key}'")
        return "" if default is None else default
    if isinstance(value, (dict, list)):
        raise ConditionSyntaxError(f"{declaration_type(declaration)} condition field '{key}' must be a scalar")
    return to_text(value)


def _binary(cls: type[BinaryCondition]) -> ConditionFactory:
    def factory(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
        items = declaration.get("operands")
        if not isinstance(items, list) or len(items) < 2:
            raise ConditionSyntaxError(f"{cls.type_name} condition requires a list of at least two 'operands'")
        operands = [registry.operand(item) for item in items]
        # More than two operands become a right-leaning chain.
        right = operands[-1]
        for left in reversed(operands[1:-1]):
            right = registry.add_condition(cls(left=left, right=right))
        return cls(left=operands[0], right=right)

    return factory


def _not(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    operand = declaration.get("operand")
    if operand is None:
        items = declaration.get("operands")
        if isinstance(items, list) and len(items) == 1:
            operand = items[0]
    if not isinstance(operand, (str, dict)) or not operand:
        raise ConditionSyntaxError("not condition requires exactly one 'operand'")
    return NotCondition(operand=registry.operand(operand))


def _ref(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return RefCondition(refid=_field(declaration, "refid"))


def _variable(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return VariableCondition(name=_field(declaration, "name"), value=_field(declaration, "value", required=False))


def _exists(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return ExistsCondition(variable=_field(declaration, "variable"))


def _empty(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return EmptyCondition(variable=_field(declaration, "variable"))


def _comparison(cls: type[CompareNumericsCondition] | type[CompareVersionsCondition]) -> ConditionFactory:
    def factory(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
        op = normalize_key(_field(declaration, "operator", required=False, default="eq"))
        if op not in COMPARATORS:
            raise ConditionSyntaxError(f"{cls.type_name} condition has unknown operator '{op}'")
        return cls(arg1=_field(declaration, "arg1"), arg2=_field(declaration, "arg2"), operator=op)

    return factory


def _packselection(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return PackSelectionCondition(packid=_field(declaration, "packid"))


def _delegate(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    result_type = normalize_key(_field(declaration, "result_type", required=False, default="boolean"))
    if result_type not in {"boolean", "integer", "string"}:
        raise ConditionSyntaxError(f"delegate condition has unknown result_type '{result_type}'")
    return DelegateCondition(
        source=_field(declaration, "source"),
        member=_field(declaration, "member"),
        expected=_field(declaration, "expected", required=False, default="true"),
        result_type=result_type,
    )


def _user(declaration: dict[str, Any], registry: ConditionRegistry) -> Condition:
    return UserCondition(value=parse_bool(declaration.get("value", False)))


BUILTIN_TYPES: Mapping[str, ConditionFactory] = MappingProxyType(
    {
        "and": _binary(AndCondition),
        "or": _binary(OrCondition),
        "xor": _binary(XorCondition),
        "not": _not,
        "ref": _ref,
        "variable": _variable,
        "exists": _exists,
        "empty": _empty,
        "comparenumerics": _comparison(CompareNumericsCondition),
        "compareversions": _comparison(CompareVersionsCondition),
        "packselection": _packselection,
        "delegate": _delegate,
        "user": _user,
    }
)
"""Read-only table of the built-in condition types."""
