import logging

import pytest

from installgate import GateEvaluator


@pytest.fixture
def gates(registry, flags):
    registry.bind_panel_condition("TuningPanel", "a")
    registry.bind_pack_condition("docs", "b")
    registry.bind_pack_condition("samples", "@a&&b", optional=True)
    return GateEvaluator(registry)


def test_unbound_panel_is_shown(gates):
    assert gates.can_show_panel("HelloPanel") is True


@pytest.mark.parametrize("value", [True, False])
def test_bound_panel_follows_condition(gates, flags, value):
    flags(a=value)
    assert gates.can_show_panel("TuningPanel") is value


def test_unbound_or_missing_pack_is_installable(gates):
    assert gates.can_install_pack(None) is True
    assert gates.can_install_pack("core") is True


@pytest.mark.parametrize("a,b", [(True, True), (True, False), (False, True), (False, False)])
def test_bound_pack_follows_condition(gates, flags, a, b):
    flags(a=a, b=b)
    assert gates.can_install_pack("docs") is b
    assert gates.can_install_pack("samples") is (a and b)


@pytest.mark.parametrize("value", [True, False])
def test_optional_pack_ignores_condition_value(gates, flags, value):
    flags(a=value, b=value)
    assert gates.can_install_pack_optional("samples") is True
    assert gates.can_install_pack_optional("docs") is False
    assert gates.can_install_pack_optional("core") is False
    assert gates.can_install_pack_optional(None) is False


def test_gate_on_unknown_condition_is_closed(registry, caplog):
    registry.bind_panel_condition("GhostPanel", "never.declared")
    gates = GateEvaluator(registry)
    with caplog.at_level(logging.WARNING):
        assert gates.can_show_panel("GhostPanel") is False
    assert "never.declared" in caplog.text


def test_decide_with_explanation(gates, flags):
    flags(a=True, b=False)
    decision = gates.decide("pack", "samples", explain=True)

    assert decision.allowed is False
    assert decision.condition_id == "@a&&b"
    assert decision.explanation["type"] == "and"
    assert [op["id"] for op in decision.explanation["operands"]] == ["a", "b"]


def test_decide_without_gate(gates):
    decision = gates.decide("panel", "HelloPanel", explain=True)
    assert decision.allowed is True
    assert decision.condition_id is None
    assert decision.explanation is None


def test_decide_rejects_unknown_kind(gates):
    with pytest.raises(ValueError):
        gates.decide("wizard", "x")


def test_evaluate_all(gates, flags):
    flags(a=True, b=False)
    assert gates.evaluate_all() == {
        "panels": {"TuningPanel": True},
        "packs": {"docs": False, "samples": False},
        "optional_packs": {"docs": False, "samples": True},
    }
