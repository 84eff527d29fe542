"""Error types raised by the transaction store, analytics and advisory layers."""


class FinsightError(Exception):
    """Base class for all finsight errors."""

    pass


class NoTransactionsError(FinsightError):
    """No transactions matched the query (or the store is empty)."""

    def __init__(self, message: str = "no transactions found"):
        super().__init__(message)


class InvalidDateRangeError(FinsightError):
    """Start date of a range lies after its end date."""

    def __init__(self, message: str = "invalid date range: start date must be before end date"):
        super().__init__(message)


class InvalidTransactionDataError(FinsightError):
    """Serialized transaction source could not be decoded into records."""

    pass


# ============================================================================
# Record validation
# ============================================================================

class TransactionValidationError(FinsightError):
    """A transaction record violates one of the domain rules."""

    default_message = "invalid transaction"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InvalidDateError(TransactionValidationError):
    default_message = "invalid date format, expected YYYY-MM-DD"


class InvalidCategoryError(TransactionValidationError):
    default_message = "category cannot be empty"


class InvalidTypeError(TransactionValidationError):
    default_message = "type must be either 'income' or 'expense'"


class InvalidAmountError(TransactionValidationError):
    default_message = "amount sign must match transaction type"


# ============================================================================
# Advisory / model errors
# ============================================================================

class AdvisoryError(FinsightError):
    """Failure while obtaining advice from the language model.

    These never leave ``AdvisoryService.get_financial_advice``; they are
    absorbed into the heuristic fallback.
    """

    retryable = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(AdvisoryError):
    """Credential or endpoint configuration rejected by the provider."""

    pass


class ServiceBusyError(AdvisoryError):
    """Provider rate limit exceeded."""

    retryable = True


class ServiceUnavailableError(AdvisoryError):
    """Provider temporarily unavailable."""

    retryable = True


class UpstreamError(AdvisoryError):
    """Any other non-success outcome or malformed payload from the provider."""

    pass
