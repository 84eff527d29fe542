"""Test fixtures for finsight MCP server tests."""

import pytest

from finsight_mcp.analytics import AnalyticsEngine
from finsight_mcp.models import CategorySummary, Transaction
from finsight_mcp.store import TransactionStore, load_transactions


SAMPLE_RECORDS = [
    {"date": "2024-01-01", "amount": 2800, "category": "salary", "description": "Bi-weekly salary", "type": "income"},
    {"date": "2024-01-02", "amount": -1200, "category": "rent", "description": "Monthly rent", "type": "expense"},
    {"date": "2024-01-03", "amount": -85, "category": "groceries", "description": "Whole Foods", "type": "expense"},
    {"date": "2024-01-05", "amount": -45, "category": "utilities", "description": "Electric bill", "type": "expense"},
    {"date": "2024-01-16", "amount": 2800, "category": "salary", "description": "Bi-weekly salary", "type": "income"},
    {"date": "2024-02-01", "amount": 2800, "category": "salary", "description": "Bi-weekly salary", "type": "income"},
    {"date": "2024-02-02", "amount": -1200, "category": "rent", "description": "Monthly rent", "type": "expense"},
    {"date": "2024-02-04", "amount": -110, "category": "groceries", "description": "Costco", "type": "expense"},
]


def make_tx(
    date: str = "2024-01-01",
    amount: float = -10.0,
    category: str = "groceries",
    tx_type: str | None = None,
    description: str = "",
) -> Transaction:
    """Build a transaction, deriving the type from the amount sign by default."""
    if tx_type is None:
        tx_type = "income" if amount > 0 else "expense"
    return Transaction(
        date=date,
        amount=amount,
        category=category,
        description=description,
        type=tx_type,
    )


@pytest.fixture
def transactions() -> list[Transaction]:
    """Two months of salary, rent, groceries and utilities."""
    return load_transactions(SAMPLE_RECORDS)


@pytest.fixture
def store(transactions: list[Transaction]) -> TransactionStore:
    return TransactionStore(transactions)


@pytest.fixture
def empty_store() -> TransactionStore:
    return TransactionStore([])


@pytest.fixture
def engine(store: TransactionStore) -> AnalyticsEngine:
    return AnalyticsEngine(store)


@pytest.fixture
def summary(engine: AnalyticsEngine) -> CategorySummary:
    return engine.get_category_summary()


@pytest.fixture
def discretionary_summary() -> CategorySummary:
    """Summary with low savings and heavy dining/shopping spend."""
    store = TransactionStore([
        make_tx("2024-03-01", 3000, "salary"),
        make_tx("2024-03-02", -1500, "rent"),
        make_tx("2024-03-05", -400, "dining"),
        make_tx("2024-03-12", -350, "shopping"),
        make_tx("2024-03-20", -250, "entertainment"),
        make_tx("2024-04-01", 3000, "salary"),
        make_tx("2024-04-02", -1500, "rent"),
        make_tx("2024-04-09", -1200, "dining"),
    ])
    return AnalyticsEngine(store).get_category_summary()


@pytest.fixture
def model_text() -> str:
    """Well-formed model response following the requested format."""
    return (
        "INSIGHTS:\n"
        "- Rent takes 90.9% of your spending\n"
        "- You save 68.6% of your income\n"
        "\n"
        "RECOMMENDATIONS:\n"
        "- Move $2000 per month into a high-yield savings account\n"
        "- Review your grocery budget monthly\n"
        "- Consider investing part of your savings\n"
        "\n"
        "POSITIVE:\n"
        "Great job keeping expenses well below income!\n"
    )
