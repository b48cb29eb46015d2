from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .conditions import DelegateCondition, PackSelectionCondition
from .facts import OS_SOURCE
from .registry import ConditionRegistry

logger = logging.getLogger(__name__)

PLATFORM_CONDITIONS: tuple[tuple[str, str], ...] = (
    ("IS_AIX", "aixinstall"),
    ("IS_WINDOWS", "windowsinstall"),
    ("IS_WINDOWS_XP", "windowsinstall.xp"),
    ("IS_WINDOWS_2003", "windowsinstall.2003"),
    ("IS_WINDOWS_VISTA", "windowsinstall.vista"),
    ("IS_WINDOWS_7", "windowsinstall.7"),
    ("IS_WINDOWS_8", "windowsinstall.8"),
    ("IS_WINDOWS_10", "windowsinstall.10"),
    ("IS_LINUX", "linuxinstall"),
    ("IS_MAC", "macinstall"),
    ("IS_SUNOS", "solarisinstall"),
    ("IS_SUNOS_X86", "solarisinstall.x86"),
    ("IS_SUNOS_SPARC", "solarisinstall.sparc"),
)
"""OS fact name and id suffix of each built-in platform condition."""


@dataclass(frozen=True)
class Pack:
    """An installable unit as far as gating is concerned.

    Attributes:
        id: Pack id, as used in the pack selection.
        lang_pack_id: Language/variant identifier. Built-in conditions are
            only synthesized for packs that have one.
        condition: Condition id or expression gating the pack, if any.
    """

    id: str
    lang_pack_id: str | None = None
    condition: str | None = None


def synthesize_builtins(registry: ConditionRegistry, packs: Iterable[Pack] = ()) -> None:
    """Register the built-in platform and pack-selection conditions.

    For each pack with a language/variant identifier a pack-selection
    condition ``"<namespace>.selected.<pack id>"`` is registered, and the
    pack's own condition becomes its gate unless the pack is already
    bound. The platform conditions are registered as
    ``"<namespace>.<suffix>"`` (see ``PLATFORM_CONDITIONS``).

    Calling this more than once has no further effect.
    """
    logger.debug("Initializing built-in conditions")
    for member, suffix in PLATFORM_CONDITIONS:
        condition_id = f"{registry.namespace}.{suffix}"
        if condition_id in registry:
            continue
        condition = DelegateCondition(source=OS_SOURCE, member=member)
        condition.id = condition_id
        registry.add_condition(condition)

    for pack in packs:
        if not pack.lang_pack_id:
            continue
        condition_id = f"{registry.namespace}.selected.{pack.id}"
        if condition_id not in registry:
            selection = PackSelectionCondition(packid=pack.id)
            selection.id = condition_id
            registry.add_condition(selection)
        if pack.condition and pack.id not in registry.pack_conditions:
            logger.debug('Adding pack condition "%s" for pack "%s"', pack.condition, pack.id)
            registry.bind_pack_condition(pack.id, pack.condition)
