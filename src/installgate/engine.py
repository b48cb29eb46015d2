from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .registry import ConditionRegistry

logger = logging.getLogger(__name__)

PANEL = "panel"
PACK = "pack"
OPTIONAL_PACK = "optional-pack"


@dataclass(frozen=True)
class GateDecision:
    """The result of a gate query.

    This is a frozen (immutable) dataclass returned by
    ``GateEvaluator.decide()``.

    Attributes:
        allowed: The answer to the query.
        kind: ``"panel"``, ``"pack"`` or ``"optional-pack"``.
        subject: The panel or pack id that was asked about.
        condition_id: The gating condition id or expression, or ``None``
            if the subject is not gated.
        explanation: Evaluation breakdown of the gating condition. Only
            populated when ``explain=True`` was passed to ``decide()``.
    """

    allowed: bool
    kind: str
    subject: str | None
    condition_id: str | None = None
    explanation: dict[str, Any] | None = None


class GateEvaluator:
    """Answers panel and pack gating questions for an installer session.

    All queries are total: they never raise for unknown panels, packs or
    conditions and fall back to the conservative answer.

    Example:
        >>> registry = ConditionRegistry()
        >>> registry.register({"type": "variable", "id": "expert", "name": "MODE", "value": "expert"})
        VariableCondition(name='MODE', value='expert')
        >>> registry.bind_panel_condition("AdvancedPanel", "expert")
        >>> gates = GateEvaluator(registry)
        >>> gates.can_show_panel("AdvancedPanel")
        False
        >>> gates.can_show_panel("HelloPanel")
        True
    """

    def __init__(self, registry: ConditionRegistry) -> None:
        self.registry = registry

    def can_show_panel(self, panel_id: str) -> bool:
        """Return ``True`` if the panel has no condition or its condition is met."""
        condition_id = self.registry.panel_conditions.get(panel_id)
        if condition_id is None:
            logger.debug("Panel %s unconditionally activated", panel_id)
            return True
        result = self.registry.is_true(condition_id)
        logger.debug("Panel %s: activation depends on condition %s -> %s", panel_id, condition_id, result)
        return result

    def can_install_pack(self, pack_id: str | None) -> bool:
        """Return ``True`` if the pack has no condition or its condition is met."""
        if pack_id is None:
            return True
        condition_id = self.registry.pack_conditions.get(pack_id)
        if condition_id is None:
            logger.debug("Package %s unconditionally installable", pack_id)
            return True
        result = self.registry.is_true(condition_id)
        logger.debug("Package %s: installation depends on condition %s -> %s", pack_id, condition_id, result)
        return result

    def can_install_pack_optional(self, pack_id: str | None) -> bool:
        """Return ``True`` if the user may choose the pack even when its gate is false.

        This depends only on how the pack was bound, not on the current
        value of its condition.
        """
        if pack_id is None or pack_id not in self.registry.optional_pack_conditions:
            return False
        logger.debug("Package %s optional installation possible", pack_id)
        return True

    def decide(self, kind: str, subject: str | None, *, explain: bool = False) -> GateDecision:
        """Answer one gate query and describe how the answer was reached.

        Args:
            kind: ``"panel"``, ``"pack"`` or ``"optional-pack"``.
            subject: The panel or pack id.
            explain: If ``True``, populate ``GateDecision.explanation``.

        Raises:
            ValueError: If ``kind`` is not one of the three query kinds.
        """
        if kind == PANEL:
            allowed = self.can_show_panel(subject)
            condition_id = self.registry.panel_conditions.get(subject)
        elif kind == PACK:
            allowed = self.can_install_pack(subject)
            condition_id = self.registry.pack_conditions.get(subject) if subject is not None else None
        elif kind == OPTIONAL_PACK:
            allowed = self.can_install_pack_optional(subject)
            condition_id = self.registry.optional_pack_conditions.get(subject) if subject is not None else None
        else:
            raise ValueError(f"unknown gate kind '{kind}'")

        explanation = None
        if explain and condition_id is not None:
            explanation = self.registry.explain(condition_id)
        return GateDecision(
            allowed=allowed,
            kind=kind,
            subject=subject,
            condition_id=condition_id,
            explanation=explanation,
        )

    def evaluate_all(self) -> dict[str, dict[str, bool]]:
        """Return the current decision for every gated panel and pack.

        Returns:
            ``{"panels": {panel: shown}, "packs": {pack: installable},
            "optional_packs": {pack: optional}}``
        """
        return {
            "panels": {panel_id: self.can_show_panel(panel_id) for panel_id in self.registry.panel_conditions},
            "packs": {pack_id: self.can_install_pack(pack_id) for pack_id in self.registry.pack_conditions},
            "optional_packs": {
                pack_id: self.can_install_pack_optional(pack_id) for pack_id in self.registry.pack_conditions
            },
        }
