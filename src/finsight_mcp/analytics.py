"""Category breakdown and monthly timeline computed from the transaction store."""

import logging
from collections import defaultdict
from datetime import date

from .errors import InvalidDateError
from .models import (
    CategoryDetail,
    CategorySummary,
    FinancialSummary,
    Period,
    TimelinePoint,
    TimelineResponse,
    Transaction,
    TransactionsResponse,
)
from .store import TransactionStore, date_bounds
from .utils import months_between, round_money, safe_percentage


logger = logging.getLogger(__name__)


def make_period(start: date, end: date) -> Period:
    return Period(
        start=start.isoformat(),
        end=end.isoformat(),
        months=months_between(start, end),
    )


def _aggregate_categories(transactions: list[Transaction]) -> dict[str, dict]:
    """Sum absolute amounts and counts per category."""
    categories: dict[str, dict] = defaultdict(lambda: {"total": 0.0, "count": 0})

    for tx in transactions:
        acc = categories[tx.category]
        acc["total"] += tx.absolute_amount
        acc["count"] += 1

    return categories


def _with_percentages(categories: dict[str, dict], type_total: float) -> dict[str, CategoryDetail]:
    return {
        category: CategoryDetail(
            total=round_money(acc["total"]),
            count=acc["count"],
            percentage=round_money(safe_percentage(acc["total"], type_total)),
        )
        for category, acc in sorted(categories.items())
    }


class AnalyticsEngine:
    """Derived views over a ``TransactionStore``.

    Holds no state besides the store reference; every call recomputes from
    the snapshot, so concurrent calls are independent.
    """

    def __init__(self, store: TransactionStore):
        self.store = store

    def get_category_summary(self) -> CategorySummary:
        """Income and expense breakdown by category with overall figures.

        Raises:
            NoTransactionsError: If the store is empty.
        """
        transactions = self.store.get_all()

        income = [tx for tx in transactions if tx.is_income]
        expenses = [tx for tx in transactions if tx.is_expense]

        total_income = sum(tx.amount for tx in income)
        total_expenses = sum(tx.absolute_amount for tx in expenses)

        income_categories = _aggregate_categories(income)
        expense_categories = _aggregate_categories(expenses)

        start, end = date_bounds(transactions)

        # Savings rate is derived from the rounded figures it is reported with
        rounded_income = round_money(total_income)
        net_savings = round_money(total_income - total_expenses)
        summary = FinancialSummary(
            total_income=rounded_income,
            total_expenses=round_money(total_expenses),
            net_savings=net_savings,
            savings_rate=round_money(safe_percentage(net_savings, rounded_income)),
        )

        return CategorySummary(
            income=_with_percentages(income_categories, total_income),
            expenses=_with_percentages(expense_categories, total_expenses),
            summary=summary,
            period=make_period(start, end),
        )

    def get_timeline(self) -> TimelineResponse:
        """Monthly income vs expenses in chronological order.

        Transactions with an unparseable date are left out and counted in
        ``skipped``.

        Raises:
            NoTransactionsError: If the store is empty.
        """
        transactions = self.store.get_all()

        monthly: dict[str, dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})
        skipped = 0

        for tx in transactions:
            try:
                key = tx.year_month()
            except InvalidDateError:
                skipped += 1
                continue

            # Any parseable date opens its month, even for an unknown type
            point = monthly[key]
            if tx.is_income:
                point["income"] += tx.amount
            elif tx.is_expense:
                point["expenses"] += tx.absolute_amount

        if skipped:
            logger.warning("Timeline skipped %d transactions with unparseable dates", skipped)

        timeline = []
        for key in sorted(monthly):
            income = round_money(monthly[key]["income"])
            expenses = round_money(monthly[key]["expenses"])
            timeline.append(
                TimelinePoint(
                    period=key,
                    income=income,
                    expenses=expenses,
                    net=round_money(income - expenses),
                )
            )

        return TimelineResponse(timeline=timeline, aggregation="monthly", skipped=skipped)

    def get_transactions(self) -> TransactionsResponse:
        transactions = self.store.get_all()
        start, end = date_bounds(transactions)
        return TransactionsResponse(
            transactions=transactions,
            count=len(transactions),
            period=make_period(start, end),
        )

    def get_transactions_by_date_range(self, start: date, end: date) -> TransactionsResponse:
        """Transactions within ``[start, end]``; the period echoes the window.

        Raises:
            InvalidDateRangeError: If start is after end.
            NoTransactionsError: If nothing falls within the range.
        """
        transactions = self.store.get_by_date_range(start, end)
        return TransactionsResponse(
            transactions=transactions,
            count=len(transactions),
            period=make_period(start, end),
        )
