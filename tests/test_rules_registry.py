import pytest

from boxing_sim.rules_registry import load_rule_set, rule_value


def test_rule_sets_are_cached() -> None:
    assert load_rule_set("fight") is load_rule_set("fight")


def test_unknown_rule_set_raises() -> None:
    with pytest.raises(FileNotFoundError, match="Rule set not found"):
        load_rule_set("no_such_table")


def test_dotted_lookup_and_default() -> None:
    assert rule_value("ringcraft", "ring.half_size") == 3.5
    assert rule_value("ringcraft", "ring.trampoline", default=None) is None
    with pytest.raises(KeyError, match="ring.trampoline"):
        rule_value("ringcraft", "ring.trampoline")
