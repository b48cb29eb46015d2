from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from .conditions import UNKNOWN_ID, Condition, RefCondition, generate_id
from .context import EvaluationContext
from .errors import ConditionSyntaxError, DanglingReferenceError, MalformedExpressionError
from .factories import ConditionTypes, declaration_type, get_default_types
from .parser import ExpressionParser

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "installer"


class ConditionRegistry:
    """Registry of the conditions known to one installer session.

    The registry creates conditions from declarations, stores them by id,
    resolves references between them and records which panels and packs
    are gated by which condition. Every condition it creates or stores is
    bound to the session's ``EvaluationContext``.

    Ids are unique: the first condition registered under an id wins and
    later registrations under the same id are ignored with a warning.

    Attributes:
        context: The evaluation context conditions are bound to.
        types: Condition type table used to create conditions.
        namespace: Prefix of the ids of built-in conditions.
        panel_conditions: Panel id to gating condition id or expression.
        pack_conditions: Pack id to gating condition id or expression.
        optional_pack_conditions: Subset of ``pack_conditions`` for packs
            the user may still choose when the gate is false.
        lock: Re-entrant lock held around each query.

    Example:
        >>> registry = ConditionRegistry()
        >>> registry.register({"type": "exists", "id": "has.java", "variable": "JAVA_HOME"})
        ExistsCondition(variable='JAVA_HOME')
        >>> registry.context.set_var("JAVA_HOME", "/opt/java")
        >>> registry.is_true("has.java")
        True
    """

    def __init__(
        self,
        context: EvaluationContext | None = None,
        *,
        types: ConditionTypes | None = None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.context = context if context is not None else EvaluationContext()
        self.types = types or get_default_types()
        self.namespace = namespace
        self.panel_conditions: dict[str, str] = {}
        self.pack_conditions: dict[str, str] = {}
        self.optional_pack_conditions: dict[str, str] = {}
        self.lock = threading.RLock()
        self.parser = ExpressionParser(self)
        self._conditions: dict[str, Condition] = {}
        self._pending: set[RefCondition] = set()

    def __contains__(self, condition_id: str) -> bool:
        return condition_id in self._conditions

    def __len__(self) -> int:
        return len(self._conditions)

    def register(self, declaration: dict[str, Any]) -> Condition:
        """Create, bind and store a condition from its declaration.

        Args:
            declaration: A dict with a ``"type"`` tag, an optional ``"id"``
                and the fields of that condition type. An absent, empty or
                ``"UNKNOWN"`` id is replaced by a generated one.

        Returns:
            The stored condition. If a condition with the declared id
            already exists, that existing condition is returned instead.

        Raises:
            ConditionSyntaxError: If the declaration is malformed.
            UnknownTypeError: If the type tag is not registered.
        """
        type_name = declaration_type(declaration)
        condition_id = declaration.get("id")
        if not isinstance(condition_id, str) or not condition_id.strip() or condition_id.strip() == UNKNOWN_ID:
            condition_id = None
        else:
            condition_id = condition_id.strip()
            if condition_id in self._conditions:
                logger.warning("Condition %s already registered, ignoring new %s declaration", condition_id, type_name)
                return self._conditions[condition_id]

        condition = self.types.create(declaration, self)
        condition.id = condition_id or generate_id(type_name)
        return self.add_condition(condition)

    def add_condition(self, condition: Condition) -> Condition:
        """Bind and store an already constructed condition.

        A condition without an id gets a generated one.

        Returns:
            ``condition``, or the condition already stored under its id.
        """
        if not condition.id or condition.id == UNKNOWN_ID:
            condition.id = generate_id(condition.type_name)
        existing = self._conditions.get(condition.id)
        if existing is not None:
            if existing is not condition:
                logger.warning("Condition %s already registered", condition.id)
            return existing
        condition.bind(self.context)
        self._conditions[condition.id] = condition
        if isinstance(condition, RefCondition):
            self._pending.add(condition)
        return condition

    def add_conditions(self, conditions: Mapping[str, Condition]) -> None:
        """Store several prebuilt conditions, keyed by the id to use."""
        for condition_id, condition in conditions.items():
            condition.id = condition_id
            self.add_condition(condition)

    def operand(self, value: Any) -> Condition:
        """Return the condition for an operand of a composite declaration.

        A string is a condition id and becomes an inline reference that is
        resolved together with the other references. A dict is a nested
        declaration and is registered.

        Raises:
            ConditionSyntaxError: If ``value`` is neither.
        """
        if isinstance(value, str) and value.strip():
            ref = RefCondition(refid=value.strip(), inline=True)
            ref.id = generate_id(ref.type_name)
            ref.bind(self.context)
            self._pending.add(ref)
            return ref
        if isinstance(value, dict):
            return self.register(value)
        raise ConditionSyntaxError(f"condition operand must be an id or a declaration, got {value!r}")

    @property
    def pending_references(self) -> list[str]:
        """Target ids of the references not resolved yet."""
        return sorted({ref.refid for ref in self._pending})

    def resolve_references(self) -> None:
        """Point every pending reference at its target condition.

        All references whose target exists are resolved, even if others
        are missing.

        Raises:
            DanglingReferenceError: Listing every target id not found.
        """
        missing: list[str] = []
        for ref in list(self._pending):
            target = self._conditions.get(ref.refid)
            if target is None:
                missing.append(ref.refid)
                continue
            ref.resolve(target)
            self._pending.discard(ref)
        if missing:
            raise DanglingReferenceError(missing)

    def bind_panel_condition(self, panel_id: str, condition_id: str) -> None:
        self.panel_conditions[panel_id] = condition_id

    def bind_pack_condition(self, pack_id: str, condition_id: str, optional: bool = False) -> None:
        """Gate pack ``pack_id`` by ``condition_id``.

        Args:
            pack_id: The pack to gate.
            condition_id: Condition id or expression deciding installation.
            optional: If ``True``, the pack may still be chosen by the user
                when the condition is false.
        """
        self.pack_conditions[pack_id] = condition_id
        if optional:
            self.optional_pack_conditions[pack_id] = condition_id
        else:
            self.optional_pack_conditions.pop(pack_id, None)

    def get(self, condition_id: str) -> Condition | None:
        return self._conditions.get(condition_id)

    def known_ids(self) -> list[str]:
        return list(self._conditions)

    def condition(self, expression: str) -> Condition | None:
        """Return the condition for an id or expression.

        The text is first looked up as an id. Otherwise text starting with
        ``@`` is parsed with the complex grammar and anything else with the
        simple chain grammar.

        Returns:
            The condition, or ``None`` if nothing matches.

        Raises:
            MalformedExpressionError: If the expression cannot be parsed.
        """
        found = self._conditions.get(expression)
        if found is not None:
            return found
        return self.parser.parse(expression)

    def is_true(self, expression: str) -> bool:
        """Evaluate a condition id or expression.

        Unknown ids, malformed expressions and references that were never
        resolved are logged and evaluate to ``False``.

        Raises:
            UnboundContextError: If a condition was never bound.
        """
        with self.lock:
            condition = self._lookup(expression)
            if condition is None:
                return False
            try:
                value = condition.is_true()
            except DanglingReferenceError as exc:
                logger.warning("Condition %s: %s", condition.id, exc)
                return False
            logger.debug("Condition %s: %s", condition.id, value)
            return value

    def explain(self, expression: str) -> dict[str, Any]:
        """Return the evaluation breakdown of a condition id or expression.

        For unknown ids, malformed expressions and unresolved references
        the result is
        ``{"id": expression, "result": False, "error": ...}``.
        """
        with self.lock:
            try:
                condition = self.condition(expression)
            except MalformedExpressionError as exc:
                return {"id": expression, "result": False, "error": str(exc)}
            if condition is None:
                return {"id": expression, "result": False, "error": "condition not found"}
            try:
                return condition.explain()
            except DanglingReferenceError as exc:
                return {"id": expression, "result": False, "error": str(exc)}

    def serialize_all(self) -> dict[str, Any]:
        """Return every condition and gate binding in declaration form.

        The result has the layout ``load_spec()`` accepts, so loading it
        into a new registry gives conditions with the same ids that
        evaluate the same way.
        """
        return {
            "conditions": [condition.to_declaration() for condition in self._conditions.values()],
            "panelconditions": [
                {"panelid": panel_id, "conditionid": condition_id}
                for panel_id, condition_id in self.panel_conditions.items()
            ],
            "packconditions": [
                {
                    "packid": pack_id,
                    "conditionid": condition_id,
                    "optional": pack_id in self.optional_pack_conditions,
                }
                for pack_id, condition_id in self.pack_conditions.items()
            ],
        }

    def _lookup(self, expression: str | None) -> Condition | None:
        if not expression:
            logger.warning("Empty condition id")
            return None
        try:
            condition = self.condition(expression)
        except MalformedExpressionError as exc:
            logger.warning("%s", exc)
            return None
        if condition is None:
            logger.warning("Condition %s not found", expression)
        return condition
