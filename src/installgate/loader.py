from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .builtins import Pack, synthesize_builtins
from .context import EvaluationContext
from .errors import MalformedExpressionError, SpecLoadError
from .factories import ConditionTypes
from .registry import DEFAULT_NAMESPACE, ConditionRegistry

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass(frozen=True)
class PanelBinding:
    panel_id: str
    condition_id: str


@dataclass(frozen=True)
class PackBinding:
    pack_id: str
    condition_id: str
    optional: bool = False


@dataclass(frozen=True)
class SpecDocument:
    """A decoded and shape-checked specification document.

    This is a frozen (immutable) dataclass holding the parts of an
    installer descriptor the condition engine cares about. Conditions are
    not created yet; see ``build_registry()``.

    Attributes:
        conditions: Condition declaration dicts, in document order.
        panel_bindings: Panel gates.
        pack_bindings: Pack gates.
        packs: Installable units, used to synthesize built-in conditions.
    """

    conditions: list[dict[str, Any]] = field(default_factory=list)
    panel_bindings: list[PanelBinding] = field(default_factory=list)
    pack_bindings: list[PackBinding] = field(default_factory=list)
    packs: list[Pack] = field(default_factory=list)


def load_spec(source: Any, *, base_dir: str | Path | None = None) -> SpecDocument:
    """Load a specification document from a dict, JSON string, or file path.

    Args:
        source: Document source. Can be:
            - A ``dict`` with the keys ``conditions``, ``panelconditions``,
              ``packconditions`` and ``packs`` (all optional lists)
            - A JSON string (detected by leading ``{`` after stripping
              whitespace)
            - A file path (``str`` or ``Path``) to a JSON file, or to a
              YAML file if it ends in ``.yaml`` or ``.yml``
        base_dir: Base directory for resolving relative file paths.

    Returns:
        A ``SpecDocument``.

    Raises:
        SpecLoadError: If the source cannot be read or parsed, or does not
            have the expected shape.

    Examples:
        >>> load_spec({"conditions": [{"type": "exists", "id": "x", "variable": "X"}]})
        SpecDocument(conditions=[{'type': 'exists', 'id': 'x', 'variable': 'X'}], ...)

        >>> load_spec("install/conditions.yml", base_dir="/opt/product")
        SpecDocument(...)
    """
    try:
        if isinstance(source, (str, Path)):
            text = str(source)
            if text.strip().startswith("{"):
                data = json.loads(text)
            else:
                path = Path(text)
                if not path.is_absolute() and base_dir:
                    path = Path(base_dir) / path
                logger.debug("Loading conditions specification from %s", path)
                raw = path.read_text(encoding="utf-8")
                data = yaml.safe_load(raw) if path.suffix.lower() in YAML_SUFFIXES else json.loads(raw)
        elif isinstance(source, dict):
            data = source
        else:
            raise SpecLoadError(f"Unsupported specification source type: {type(source).__name__}")
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError, OSError) as exc:
        raise SpecLoadError(str(exc)) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SpecLoadError(f"specification must be a mapping, got {type(data).__name__}")

    conditions = _entries(data, "conditions")
    panel_bindings = [
        PanelBinding(
            panel_id=_text(entry, "panelid", "panelconditions"),
            condition_id=_text(entry, "conditionid", "panelconditions"),
        )
        for entry in _entries(data, "panelconditions")
    ]
    pack_bindings = [
        PackBinding(
            pack_id=_text(entry, "packid", "packconditions"),
            condition_id=_text(entry, "conditionid", "packconditions"),
            optional=_flag(entry.get("optional")),
        )
        for entry in _entries(data, "packconditions")
    ]
    packs = [
        Pack(
            id=_text(entry, "id", "packs"),
            lang_pack_id=_optional_text(entry.get("langpackid")),
            condition=_optional_text(entry.get("condition")),
        )
        for entry in _entries(data, "packs")
    ]
    return SpecDocument(conditions=conditions, panel_bindings=panel_bindings, pack_bindings=pack_bindings, packs=packs)


def build_registry(
    spec: SpecDocument,
    context: EvaluationContext | None = None,
    *,
    types: ConditionTypes | None = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> ConditionRegistry:
    """Create a registry holding everything a specification document declares.

    Conditions are registered in document order, then built-in conditions
    are synthesized, the panel and pack gates are recorded, references are
    resolved, and every gate is checked to name a known condition or a
    well-formed expression.

    Raises:
        ConditionSyntaxError: If a declaration is malformed.
        UnknownTypeError: If a declaration has an unknown type.
        DanglingReferenceError: If references point at unknown ids.
        MalformedExpressionError: If a gate names no known condition or
            an unparseable expression.
    """
    registry = ConditionRegistry(context, types=types, namespace=namespace)
    for declaration in spec.conditions:
        registry.register(declaration)
    for panel in spec.panel_bindings:
        registry.bind_panel_condition(panel.panel_id, panel.condition_id)
    for pack in spec.pack_bindings:
        registry.bind_pack_condition(pack.pack_id, pack.condition_id, optional=pack.optional)
    synthesize_builtins(registry, spec.packs)
    registry.resolve_references()

    gates = list(registry.panel_conditions.values()) + list(registry.pack_conditions.values())
    for condition_id in gates:
        if registry.condition(condition_id) is None:
            raise MalformedExpressionError(condition_id, "gate names no known condition")

    logger.info(
        "Loaded %d conditions, %d panel and %d pack gates",
        len(registry),
        len(registry.panel_conditions),
        len(registry.pack_conditions),
    )
    return registry


def _entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise SpecLoadError(f"specification '{key}' must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise SpecLoadError(f"specification '{key}' entries must be mappings")
    return items


def _text(entry: dict[str, Any], key: str, section: str) -> str:
    value = _optional_text(entry.get(key))
    if value is None:
        raise SpecLoadError(f"'{section}' entry requires non-empty '{key}'")
    return value


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"
