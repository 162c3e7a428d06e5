import pytest

from budget_engine.allocation import allocation_total, resolve_allocations
from budget_engine.domain import CustomRule, CustomRuleEntry, Rule156520, Rule503020, Rule702010


def test_rule_50_30_20():
    result = resolve_allocations(Rule503020(), 5000)
    assert result.is_some()
    assert result.get_or_else(None) == pytest.approx({"needs": 2500, "wants": 1500, "savings": 1000})


def test_rule_70_20_10():
    allocations = resolve_allocations(Rule702010(), 4000).get_or_else(None)
    assert allocations == pytest.approx({"expenses": 2800, "savings": 800, "debt_or_donation": 400})


def test_rule_15_65_20():
    allocations = resolve_allocations(Rule156520(), 1000).get_or_else(None)
    assert allocations == pytest.approx({"wants": 150, "needs": 650, "savings": 200})


@pytest.mark.parametrize("rule", [Rule503020(), Rule702010(), Rule156520()])
@pytest.mark.parametrize("income", [0, 1, 1234.56, 5000, 987654.321])
def test_fixed_rules_sum_to_income(rule, income):
    allocations = resolve_allocations(rule, income).get_or_else(None)
    assert allocation_total(allocations) == pytest.approx(income)
    assert all(v >= 0 for v in allocations.values())


def test_custom_rule_proportional():
    rule = CustomRule(entries=(
        CustomRuleEntry("rent", 40),
        CustomRuleEntry("food", 25),
        CustomRuleEntry("fun", 10),
    ))
    allocations = resolve_allocations(rule, 2000).get_or_else(None)
    assert allocations == pytest.approx({"rent": 800, "food": 500, "fun": 200})
    assert allocation_total(allocations) == pytest.approx(2000 * 75 / 100)


def test_custom_rule_without_entries_is_unavailable():
    result = resolve_allocations(CustomRule(), 3000)
    assert result.is_none()
    assert result.get_or_else("missing") == "missing"


def test_custom_rule_over_allocation_is_kept_and_logged(caplog):
    rule = CustomRule(entries=(CustomRuleEntry("a", 80), CustomRuleEntry("b", 40)))
    with caplog.at_level("WARNING", logger="budget_engine"):
        allocations = resolve_allocations(rule, 100).get_or_else(None)
    assert allocations == pytest.approx({"a": 80, "b": 40})
    assert "120%" in caplog.text


def test_custom_rule_skips_negative_percentages():
    rule = CustomRule(entries=(CustomRuleEntry("a", 50), CustomRuleEntry("b", -10)))
    allocations = resolve_allocations(rule, 1000).get_or_else(None)
    assert allocations == pytest.approx({"a": 500})


def test_negative_income_treated_as_zero():
    allocations = resolve_allocations(Rule503020(), -500).get_or_else(None)
    assert allocations == {"needs": 0, "wants": 0, "savings": 0}


def test_unknown_rule_object_is_a_programming_error():
    with pytest.raises(TypeError):
        resolve_allocations("50/30/20", 1000)
