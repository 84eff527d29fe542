"""Domain types for transactions and the views derived from them."""

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from .errors import (
    InvalidAmountError,
    InvalidCategoryError,
    InvalidTypeError,
)
from .utils import parse_iso_date, year_month


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    """A single dated transaction.

    ``amount`` is signed: positive for income, negative for expenses.
    ``date`` keeps the ``YYYY-MM-DD`` text from the source so that records
    with a malformed date can still be held (and reported) by the store.
    """

    date: str
    amount: float
    category: str
    description: str
    type: str

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME.value

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE.value

    @property
    def absolute_amount(self) -> float:
        return abs(self.amount)

    def parse_date(self) -> date:
        """Return the calendar date, raising ``InvalidDateError`` if malformed."""
        return parse_iso_date(self.date)

    def year_month(self) -> str:
        """Return the ``YYYY-MM`` key used for timeline aggregation."""
        return year_month(self.parse_date())

    def validate(self) -> None:
        """Check the record against the domain rules.

        Rules are checked in order (date, category, type, amount) and the
        first violation is raised.
        """
        self.parse_date()
        if not self.category:
            raise InvalidCategoryError()
        if self.type not in (TransactionType.INCOME.value, TransactionType.EXPENSE.value):
            raise InvalidTypeError()
        if not math.isfinite(self.amount):
            raise InvalidAmountError("amount must be a finite number")
        if self.is_income and self.amount < 0:
            raise InvalidAmountError()
        if self.is_expense and self.amount > 0:
            raise InvalidAmountError()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Period:
    start: str
    end: str
    months: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CategoryDetail:
    total: float
    count: int
    percentage: float


@dataclass(frozen=True)
class FinancialSummary:
    total_income: float
    total_expenses: float
    net_savings: float
    savings_rate: float


@dataclass(frozen=True)
class CategorySummary:
    """Income/expense breakdown by category plus overall figures."""

    income: dict[str, CategoryDetail]
    expenses: dict[str, CategoryDetail]
    summary: FinancialSummary
    period: Period

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TimelinePoint:
    period: str
    income: float
    expenses: float
    net: float


@dataclass(frozen=True)
class TimelineResponse:
    timeline: list[TimelinePoint]
    aggregation: str = "monthly"
    # Transactions left out because their date could not be parsed
    skipped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TransactionsResponse:
    transactions: list[Transaction]
    count: int
    period: Period

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AdviceRequest:
    context: str = "general"
    category: str | None = None


@dataclass(frozen=True)
class AdviceResponse:
    """Advice text plus the structured lists extracted from it.

    ``source`` is ``"model"`` when the text came from the language model and
    ``"heuristic"`` when the deterministic generator produced it.
    """

    advice: str
    insights: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    timestamp: str = ""
    source: str = "heuristic"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
