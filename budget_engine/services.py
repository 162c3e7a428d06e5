from dataclasses import asdict
from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from budget_engine.aggregation import monthly_spending_by_category
from budget_engine.allocation import resolve_allocations
from budget_engine.config import Config
from budget_engine.domain import BudgetConfig, Category, CustomRule, InsightSnapshot
from budget_engine.events import EventBus, publish_insight_alerts
from budget_engine.functional import Either, validate_custom_rule, validate_transaction
from budget_engine.insights import (
    compute_insights,
    detect_unusual_spending,
    guilt_free_balance,
    project_savings,
)
from budget_engine.logger import get_logger
from budget_engine.transforms import Ledger, active_categories, categories_by_id, ledger_values

logger = get_logger()

Validator = Callable[..., Sequence[str]]
Calculator = Callable[..., Dict[str, Any]]


def validate_ledger(transactions, categories, config) -> list[str]:
    index = categories_by_id(categories)
    messages = []
    for t in transactions:
        result = validate_transaction(t, index)
        if result.is_left():
            messages.append(result.get_error()["message"])
    return messages


def validate_rule(transactions, categories, config) -> list[str]:
    if not isinstance(config.rule, CustomRule):
        return []
    result = validate_custom_rule(config.rule)
    return [result.get_error()["message"]] if result.is_left() else []


def validate_income(transactions, categories, config) -> list[str]:
    if config.monthly_income is None or config.monthly_income < 0:
        return [f"Monthly income must be zero or positive, got {config.monthly_income!r}"]
    return []


def calc_allocations(transactions, categories, config, as_of, settings, acc) -> dict:
    allocation = resolve_allocations(config.rule, config.monthly_income)
    return {
        "allocation_available": allocation.is_some(),
        "allocations": allocation.get_or_else({}),
    }


def calc_monthly_spending(transactions, categories, config, as_of, settings, acc) -> dict:
    return {"monthly_spending_by_category": monthly_spending_by_category(transactions, categories, as_of)}


def calc_guilt_free_balance(transactions, categories, config, as_of, settings, acc) -> dict:
    return {"guilt_free_balance": guilt_free_balance(transactions, categories, config, as_of)}


def calc_unusual_spending(transactions, categories, config, as_of, settings, acc) -> dict:
    unusual, new = detect_unusual_spending(
        transactions,
        categories,
        as_of,
        threshold=settings.unusual_spending_threshold,
        new_spending_floor=settings.new_spending_floor,
    )
    return {
        "unusual_spending": [asdict(u) for u in unusual],
        "new_spending": [asdict(n) for n in new],
    }


def calc_projected_savings(transactions, categories, config, as_of, settings, acc) -> dict:
    return {
        "projected_savings": project_savings(
            transactions,
            categories,
            config,
            months_ahead=settings.projection_months,
            window_months=settings.expense_window_months,
        )
    }


DEFAULT_VALIDATORS: tuple[Validator, ...] = (validate_ledger, validate_rule, validate_income)
DEFAULT_CALCULATORS: tuple[Calculator, ...] = (
    calc_allocations,
    calc_monthly_spending,
    calc_guilt_free_balance,
    calc_unusual_spending,
    calc_projected_savings,
)


class InsightService:
    """Facade for insight computation using injected validators and calculators.

    validators: functions taking (transactions, categories, config) -> Sequence[str]
    calculators: functions taking (transactions, categories, config, as_of, settings, acc) -> dict
    bus: optional EventBus; snapshot() publishes alerts on it.
    """

    def __init__(
        self,
        validators: Sequence[Validator],
        calculators: Sequence[Calculator],
        settings: Optional[Config] = None,
        bus: Optional[EventBus] = None,
    ):
        self.validators = validators
        self.calculators = calculators
        self.settings = settings or Config.default()
        self.bus = bus

    def insight_report(
        self,
        transactions: Ledger,
        categories: Iterable[Category],
        config: BudgetConfig,
        as_of: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Run validators and calculators and return an aggregated report with intermediate steps."""
        as_of = as_of or date.today()
        transactions = ledger_values(transactions)
        categories = active_categories(categories)
        report = {
            "as_of": as_of.isoformat(),
            "validation": [],
            "steps": [],
            "result": {},
        }

        # validators only report; a failing validator must not stop the report
        for v in self.validators:
            try:
                msgs = v(transactions, categories, config)
            except Exception as e:
                logger.warning(f"Validator {getattr(v, '__name__', v)} failed: {e}")
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(transactions, categories, config, as_of, self.settings, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report

    def snapshot(
        self,
        transactions: Ledger,
        categories: Iterable[Category],
        config: BudgetConfig,
        as_of: Optional[date] = None,
    ) -> Either[dict, InsightSnapshot]:
        result = compute_insights(transactions, categories, config, as_of, self.settings)
        if self.bus is not None:
            publish_insight_alerts(self.bus, result)
        return result


def default_service(settings: Optional[Config] = None, bus: Optional[EventBus] = None) -> InsightService:
    return InsightService(DEFAULT_VALIDATORS, DEFAULT_CALCULATORS, settings=settings, bus=bus)
