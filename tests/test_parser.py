import logging

import pytest

from installgate import MalformedExpressionError
from installgate.conditions import AndCondition, NotCondition, OrCondition, XorCondition


def test_simple_chain_first_operator_wins(registry, flags):
    condition = registry.condition("a+b|c")

    assert isinstance(condition, AndCondition)
    assert condition.left is registry.get("a")
    assert isinstance(condition.right, OrCondition)
    assert condition.right.left is registry.get("b")
    assert condition.right.right is registry.get("c")


def test_simple_chain_is_not_left_to_right_algebra(registry, flags):
    # (a OR b) AND c would be False here; a OR (b AND c) is True.
    flags(a=True, b=False, c=False)
    assert registry.is_true("a|b+c") is True


def test_simple_chain_xor(registry, flags):
    condition = registry.condition("a\\b")
    assert isinstance(condition, XorCondition)
    flags(a=True, b=True)
    assert registry.is_true("a\\b") is False


def test_simple_chain_leading_not_negates_rest(registry, flags):
    condition = registry.condition("!a+b")
    assert isinstance(condition, NotCondition)
    assert isinstance(condition.operand, AndCondition)

    flags(a=True, b=False)
    assert registry.is_true("!a+b") is True


def test_simple_chain_not_after_operator_starts_new_level(registry, flags):
    flags(a=True, b=False)
    assert registry.is_true("a+!b") is True


def test_simple_chain_not_inside_operand_is_malformed(registry, flags, caplog):
    with pytest.raises(MalformedExpressionError):
        registry.condition("a!b")
    with caplog.at_level(logging.WARNING):
        assert registry.is_true("a!b") is False
    assert "position 0" in caplog.text


def test_simple_chain_unknown_operand_is_malformed(registry, flags):
    with pytest.raises(MalformedExpressionError) as excinfo:
        registry.condition("a+missing")
    assert excinfo.value.expression == "a+missing"
    assert registry.is_true("a+missing") is False


def test_complex_splits_on_or_first(registry, flags):
    condition = registry.condition("@a&&b||c")

    assert isinstance(condition, OrCondition)
    assert isinstance(condition.left, AndCondition)
    assert condition.left.left is registry.get("a")
    assert condition.left.right is registry.get("b")
    assert condition.right is registry.get("c")


def test_complex_and_binds_before_xor(registry, flags):
    condition = registry.condition("@a ^ b && c")
    assert isinstance(condition, AndCondition)
    assert isinstance(condition.left, XorCondition)


def test_complex_not_negates_remainder(registry, flags):
    condition = registry.condition("@ ! a")
    assert isinstance(condition, NotCondition)
    assert condition.operand is registry.get("a")

    flags(a=False, b=True, c=False)
    assert registry.is_true("@!a && b") is True
    assert registry.is_true("@a || !c") is True


def test_complex_text_before_not_is_malformed(registry, flags):
    with pytest.raises(MalformedExpressionError):
        registry.condition("@a !b")


def test_complex_unknown_literal_is_missing(registry, flags, caplog):
    assert registry.condition("@nothing") is None
    with caplog.at_level(logging.WARNING):
        assert registry.is_true("@nothing") is False
    assert "Condition @nothing not found" in caplog.text


def test_parsed_nodes_are_bound_but_not_registered(registry, flags):
    before = registry.known_ids()
    condition = registry.condition("@a||b")

    assert condition.context is registry.context
    assert condition.id.startswith("or-")
    assert registry.known_ids() == before


def test_direct_id_wins_over_expression(registry, flags):
    registry.register({"type": "user", "id": "a+b", "value": True})
    assert registry.is_true("a+b") is True


def test_unknown_id_is_false_with_warning(registry, caplog):
    with caplog.at_level(logging.WARNING):
        assert registry.is_true("nope") is False
    assert "Condition nope not found" in caplog.text
