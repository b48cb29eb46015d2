from __future__ import annotations

from collections.abc import Iterable


class InstallGateError(Exception):
    """Base exception for all installgate errors.

    All other exceptions in this package inherit from this class,
    allowing callers to catch all installgate-related errors with
    a single except clause.
    """


class SpecLoadError(InstallGateError):
    """Raised when a specification document cannot be loaded or parsed.

    Common causes:
        - Invalid JSON or YAML syntax in the document
        - File not found or unreadable
        - ``conditions``, ``panelconditions``, ``packconditions`` or
          ``packs`` is not a list of mappings
        - A binding entry without ``panelid``/``packid`` or ``conditionid``
        - Unsupported source type passed to ``load_spec()``
    """


class ConditionSyntaxError(InstallGateError):
    """Raised when a condition declaration is structurally invalid.

    Common causes:
        - Declaration is not a dict
        - Missing or empty ``type`` field
        - Missing required fields for a specific condition type
          (e.g., ``name`` for variable conditions)
        - Wrong operand count for a logical condition
        - Unknown comparison operator
    """


class UnknownTypeError(InstallGateError):
    """Raised when a declaration names a condition type that is not registered.

    The exception message contains the unknown type tag.
    """


class DanglingReferenceError(InstallGateError):
    """Raised when one or more reference conditions point at unknown ids.

    All missing targets found during a single resolution pass are
    reported together.

    Attributes:
        missing: Sorted list of the target ids that could not be found.
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = sorted(set(missing))
        super().__init__("unresolved condition reference(s): " + ", ".join(self.missing))


class MalformedExpressionError(InstallGateError):
    """Raised when a condition expression cannot be turned into a condition.

    Common causes:
        - ``!`` anywhere but the start of a simple-chain expression
        - An operand that names no registered condition

    Attributes:
        expression: The offending expression text.
    """

    def __init__(self, expression: str, reason: str) -> None:
        self.expression = expression
        super().__init__(f"malformed condition expression '{expression}': {reason}")


class UnboundContextError(InstallGateError):
    """Raised when a condition is evaluated before being bound to a context.

    This always indicates an integration bug and is never swallowed by
    the query methods.
    """
