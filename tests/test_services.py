from datetime import date

import pytest

from budget_engine.domain import (
    BudgetConfig,
    Category,
    CategoryType,
    CustomRule,
    CustomRuleEntry,
    Rule503020,
    Transaction,
)
from budget_engine.events import EventBus, INSIGHTS_COMPUTED, UNUSUAL_SPENDING
from budget_engine.services import (
    InsightService,
    calc_allocations,
    default_service,
    validate_ledger,
    validate_rule,
)

AS_OF = date(2025, 3, 15)
CATS = (
    Category("food", "Food", CategoryType.NEED),
    Category("fund", "Fund", CategoryType.SAVINGS),
)


def sample_transactions():
    return (
        Transaction("t1", "food", 100, "2025-02-10"),
        Transaction("t2", "food", 150, "2025-03-10", is_essential=True),
        Transaction("t3", "fund", 200, "2025-03-11"),
    )


def test_default_service_report():
    config = BudgetConfig(rule=Rule503020(), monthly_income=2000)
    report = default_service().insight_report(sample_transactions(), CATS, config, AS_OF)

    assert report["as_of"] == "2025-03-15"
    assert [s["calculator"] for s in report["steps"]] == [
        "calc_allocations",
        "calc_monthly_spending",
        "calc_guilt_free_balance",
        "calc_unusual_spending",
        "calc_projected_savings",
    ]
    assert all(not v["messages"] for v in report["validation"])

    result = report["result"]
    assert result["allocation_available"] is True
    assert result["monthly_spending_by_category"] == {"food": 150, "fund": 200}
    assert result["guilt_free_balance"] == pytest.approx(2000 - 150 - 200 - 400)
    assert result["unusual_spending"] == [
        {"category_id": "food", "amount": 150, "percentage_increase": pytest.approx(0.5)}
    ]
    assert result["new_spending"] == [{"category_id": "fund", "amount": 200}]


def test_validators_report_bad_input():
    trans = sample_transactions() + (
        Transaction("t4", "food", -5, "2025-03-01"),
        Transaction("t5", "fuel", 5, "2025-03-01"),
    )
    config = BudgetConfig(
        rule=CustomRule(entries=(CustomRuleEntry("food", 80), CustomRuleEntry("fund", 30))),
        monthly_income=1000,
    )
    report = default_service().insight_report(trans, CATS, config, AS_OF)
    messages = {v["validator"]: v["messages"] for v in report["validation"]}

    assert len(messages["validate_ledger"]) == 2
    assert "110%" in messages["validate_rule"][0]
    assert messages["validate_income"] == []
    assert report["result"]["allocations"] == pytest.approx({"food": 800, "fund": 300})


def test_validate_rule_ignores_fixed_rules():
    config = BudgetConfig(rule=Rule503020(), monthly_income=1000)
    assert validate_rule((), CATS, config) == []


def test_validate_ledger_accepts_clean_ledger():
    config = BudgetConfig(rule=Rule503020(), monthly_income=1000)
    assert validate_ledger(sample_transactions(), CATS, config) == []


def test_validator_error_does_not_stop_report():
    def bad_validator(transactions, categories, config):
        raise RuntimeError("oops")

    svc = InsightService(validators=[bad_validator], calculators=[calc_allocations])
    config = BudgetConfig(rule=Rule503020(), monthly_income=100)
    rpt = svc.insight_report((), CATS, config, AS_OF)
    assert "validator_error" in rpt["validation"][0]["messages"][0]
    assert rpt["result"]["allocations"] == pytest.approx({"needs": 50, "wants": 30, "savings": 20})


def test_calculators_see_accumulated_results():
    def calc_double_balance(transactions, categories, config, as_of, settings, acc):
        return {"double": acc["allocations"]["savings"] * 2}

    svc = InsightService(validators=[], calculators=[calc_allocations, calc_double_balance])
    config = BudgetConfig(rule=Rule503020(), monthly_income=1000)
    rpt = svc.insight_report((), CATS, config, AS_OF)
    assert rpt["steps"][1]["output"] == {"double": pytest.approx(400)}


def test_unavailable_allocation_in_report():
    config = BudgetConfig(rule=CustomRule(), monthly_income=1000)
    report = default_service().insight_report((), CATS, config, AS_OF)
    assert report["result"]["allocation_available"] is False
    assert report["result"]["allocations"] == {}


def test_snapshot_publishes_alerts():
    bus = EventBus()
    received = []
    bus.subscribe(UNUSUAL_SPENDING, lambda e: received.append(e.payload) or {})
    bus.subscribe(INSIGHTS_COMPUTED, lambda e: received.append(e.name) or {})

    config = BudgetConfig(rule=Rule503020(), monthly_income=2000)
    result = default_service(bus=bus).snapshot(sample_transactions(), CATS, config, AS_OF)

    assert result.is_right()
    assert received[0]["category_id"] == "food"
    assert received[-1] == INSIGHTS_COMPUTED
