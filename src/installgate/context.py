from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .facts import PlatformFacts

FactProvider = Callable[[str, str], Any]
"""Type alias for fact providers used by delegate conditions.

A fact provider takes a fact source (e.g. ``"os"``) and a member name
(e.g. ``"IS_WINDOWS"``) and returns the fact's value. It raises
``LookupError`` for facts it does not know.
"""


@dataclass
class EvaluationContext:
    """Live installer state that conditions are evaluated against.

    The context is owned by the installer session, which mutates it
    between queries. Conditions only ever read from it.

    Attributes:
        variables: Installer variables by name. A variable whose value is
            ``None`` counts as unset.
        selected_packs: Ids of the packs currently selected for
            installation.
        facts: Provider used by delegate conditions to look up external
            facts such as the operating system family.
    """

    variables: dict[str, Any] = field(default_factory=dict)
    selected_packs: set[str] = field(default_factory=set)
    facts: FactProvider = field(default_factory=PlatformFacts)

    def get_var(self, name: str, default: Any = None) -> Any:
        """Return the value of variable ``name``, or ``default`` if unset."""
        value = self.variables.get(name)
        return default if value is None else value

    def set_var(self, name: str, value: Any) -> None:
        self.variables[name] = value

    def unset_var(self, name: str) -> None:
        self.variables.pop(name, None)

    def is_set(self, name: str) -> bool:
        return self.variables.get(name) is not None

    def select_pack(self, pack_id: str) -> None:
        self.selected_packs.add(pack_id)

    def deselect_pack(self, pack_id: str) -> None:
        self.selected_packs.discard(pack_id)

    def set_selection(self, pack_ids: Iterable[str]) -> None:
        """Replace the current pack selection."""
        self.selected_packs = set(pack_ids)

    def is_selected(self, pack_id: str) -> bool:
        return pack_id in self.selected_packs

    def fact(self, source: str, member: str) -> Any:
        """Look up an external fact through the configured provider.

        Raises:
            LookupError: If the provider does not know the fact.
        """
        return self.facts(source, member)
