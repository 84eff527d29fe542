"""In-memory transaction store and the JSON loader that builds it."""

import json
import logging
import math
from collections.abc import Iterable
from datetime import date
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import (
    InvalidAmountError,
    InvalidDateError,
    InvalidDateRangeError,
    InvalidTransactionDataError,
    NoTransactionsError,
    TransactionValidationError,
)
from .models import Transaction


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("date", "amount", "category", "type")


class TransactionStore:
    """Read-only snapshot of validated transactions.

    The collection is fixed at construction. Queries return fresh lists, so
    callers can never modify the shared snapshot.
    """

    def __init__(self, transactions: Iterable[Transaction], strict: bool = False):
        """Initialize the store.

        Args:
            transactions: Records to hold.
            strict: If True, the first record failing validation raises its
                error. If False, invalid records are logged and kept.
        """
        records = tuple(transactions)

        for index, tx in enumerate(records):
            try:
                tx.validate()
            except TransactionValidationError as e:
                if strict:
                    raise
                logger.warning("Transaction #%d (%s, %r) is invalid: %s", index, tx.date, tx.category, e)

        self._transactions = records

    def __len__(self) -> int:
        return len(self._transactions)

    def count(self) -> int:
        return len(self._transactions)

    def get_all(self) -> list[Transaction]:
        if not self._transactions:
            raise NoTransactionsError()
        return list(self._transactions)

    def get_by_date_range(self, start: date, end: date) -> list[Transaction]:
        """Return transactions dated within ``[start, end]``, inclusive.

        Raises:
            InvalidDateRangeError: If start is after end.
            NoTransactionsError: If nothing falls within the range.
        """
        if start > end:
            raise InvalidDateRangeError()

        filtered = []
        for tx in self._transactions:
            try:
                tx_date = tx.parse_date()
            except InvalidDateError:
                continue
            if start <= tx_date <= end:
                filtered.append(tx)

        if not filtered:
            raise NoTransactionsError()
        return filtered

    def get_by_type(self, tx_type: str) -> list[Transaction]:
        filtered = [tx for tx in self._transactions if tx.type == tx_type]
        if not filtered:
            raise NoTransactionsError()
        return filtered

    def get_by_category(self, category: str) -> list[Transaction]:
        filtered = [tx for tx in self._transactions if tx.category == category]
        if not filtered:
            raise NoTransactionsError()
        return filtered

    def get_date_range(self) -> tuple[date, date]:
        """Earliest and latest parseable transaction dates."""
        return date_bounds(self._transactions)


def date_bounds(transactions: Iterable[Transaction]) -> tuple[date, date]:
    """Min and max parseable dates across transactions.

    Raises:
        NoTransactionsError: If there are no transactions or none has a
            parseable date.
    """
    dates = []
    for tx in transactions:
        try:
            dates.append(tx.parse_date())
        except InvalidDateError:
            continue

    if not dates:
        raise NoTransactionsError()
    return min(dates), max(dates)


# ============================================================================
# Loading
# ============================================================================

def _record_to_transaction(index: int, record: Any) -> Transaction:
    if not isinstance(record, dict):
        raise InvalidTransactionDataError(f"Record #{index} is not an object")

    missing = [name for name in REQUIRED_FIELDS if name not in record]
    if missing:
        raise InvalidTransactionDataError(
            f"Record #{index} is missing fields: {', '.join(missing)}"
        )

    amount = record["amount"]
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Record #{index} has a non-numeric amount: {amount!r}")
    try:
        amount = float(amount)
    except (TypeError, ValueError) as e:
        raise InvalidAmountError(f"Record #{index} has a non-numeric amount: {amount!r}") from e
    if not math.isfinite(amount):
        raise InvalidAmountError(f"Record #{index} has a non-finite amount: {amount!r}")

    return Transaction(
        date=str(record["date"] or ""),
        amount=amount,
        category=str(record["category"] or ""),
        description=str(record.get("description") or ""),
        type=str(record["type"] or ""),
    )


def load_transactions(source: str | bytes | Path | list[dict[str, Any]]) -> list[Transaction]:
    """Decode a serialized transaction list.

    Args:
        source: JSON text or bytes, a path to a JSON file, or already-decoded
            records.

    Returns:
        Transactions in source order (not yet validated).

    Raises:
        InvalidTransactionDataError: If the payload is not a list of records.
        InvalidAmountError: If a record carries a non-numeric or non-finite amount.
    """
    if isinstance(source, Path):
        source = source.read_bytes()

    if isinstance(source, (str, bytes)):
        try:
            records = json.loads(source)
        except ValueError as e:
            raise InvalidTransactionDataError(f"Invalid JSON: {e}") from e
    else:
        records = source

    if not isinstance(records, list):
        raise InvalidTransactionDataError("Transaction source must be a JSON array")

    return [_record_to_transaction(i, record) for i, record in enumerate(records)]


def load_store(path: str | Path | None = None, strict: bool = False) -> TransactionStore:
    """Build a store from a JSON file, or from the bundled sample dataset.

    Args:
        path: JSON file with the transaction list. None uses the bundled data.
        strict: Passed through to ``TransactionStore``.
    """
    if path is None:
        data = resources.files("finsight_mcp").joinpath("data/transactions.json").read_bytes()
        origin = "bundled dataset"
    else:
        data = Path(path).read_bytes()
        origin = str(path)

    store = TransactionStore(load_transactions(data), strict=strict)
    logger.info("Loaded %d transactions from %s", store.count(), origin)
    return store
