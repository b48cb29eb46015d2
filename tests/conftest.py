"""
Shared test fixtures and configuration.
"""

import pytest

from installgate import ConditionRegistry, EvaluationContext, PlatformFacts


@pytest.fixture
def context() -> EvaluationContext:
    """Return a context that reports a Linux x86_64 host."""
    return EvaluationContext(facts=PlatformFacts(system="Linux", release="6.1.0", machine="x86_64"))


@pytest.fixture
def registry(context: EvaluationContext) -> ConditionRegistry:
    """Return an empty registry bound to ``context``."""
    return ConditionRegistry(context)


@pytest.fixture
def flags(registry: ConditionRegistry):
    """Register user conditions ``a``, ``b`` and ``c`` and return a setter.

    ``flags(a=True, c=False)`` records the given answers.
    """
    for name in ("a", "b", "c"):
        registry.register({"type": "user", "id": name, "value": False})

    def set_flags(**values: bool) -> None:
        for name, value in values.items():
            registry.get(name).record(value)

    return set_flags
