"""Financial advice from a language model, backed by the heuristic generator."""

import logging
from datetime import datetime, timezone

from .advice_parser import parse_advice
from .errors import AdvisoryError, ConfigurationError
from .heuristics import default_insights, default_recommendations, heuristic_advice
from .llm import CompletionModel
from .models import AdviceRequest, AdviceResponse, CategorySummary


logger = logging.getLogger(__name__)

RESPONSE_FORMAT = """Please provide a structured response with:
1. INSIGHTS (2-3 key observations about spending patterns)
2. RECOMMENDATIONS (3-4 specific, actionable steps to improve financial health)
3. POSITIVE REINFORCEMENT (1 encouraging statement)

Format your response as:
INSIGHTS:
- [insight 1]
- [insight 2]

RECOMMENDATIONS:
- [recommendation 1]
- [recommendation 2]

POSITIVE:
[encouraging message]

Keep advice practical, specific to the data, and encouraging. Use exact dollar amounts when relevant."""


def build_prompt(summary: CategorySummary, request: AdviceRequest) -> str:
    """Describe the summary to the model and ask for marked sections."""
    period = summary.period
    figures = summary.summary
    months = max(period.months, 1)

    lines = [
        "You are a helpful and encouraging financial advisor. "
        "Analyze this user's financial data and provide personalized advice.",
        "",
        "Financial Overview:",
        f"Period: {period.start} to {period.end} ({period.months} months)",
        "",
        "Income:",
        f"- Total: ${figures.total_income:.2f}",
        f"- Average monthly: ${figures.total_income / months:.2f}",
        "",
        "Expenses by Category:",
    ]
    for category in sorted(summary.expenses):
        detail = summary.expenses[category]
        lines.append(
            f"- {category}: ${detail.total:.2f} ({detail.percentage:.1f}%, {detail.count} transactions)"
        )
    lines.extend([
        "",
        f"Total Expenses: ${figures.total_expenses:.2f}",
        f"Net Savings: ${figures.net_savings:.2f}",
        f"Savings Rate: {figures.savings_rate:.1f}%",
        "",
    ])
    if request.category:
        lines.extend([f"Focus specifically on the '{request.category}' category.", ""])
    lines.append(RESPONSE_FORMAT)

    return "\n".join(lines)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AdvisoryService:
    """Produces advice for a category summary.

    With a model configured, the model's text is used and parsed; any model
    failure falls back to the heuristic generator. Only cancellation by the
    caller escapes ``get_financial_advice``.
    """

    def __init__(self, llm: CompletionModel | None = None):
        """Initialize the service.

        Args:
            llm: Completion model. None (no credential configured) skips the
                network path and always returns heuristic advice.
        """
        self.llm = llm

    def heuristic_response(self, summary: CategorySummary) -> AdviceResponse:
        advice, insights, recommendations = heuristic_advice(summary)
        return AdviceResponse(
            advice=advice,
            insights=insights,
            recommendations=recommendations,
            timestamp=_now(),
            source="heuristic",
        )

    def parse_response(self, text: str, summary: CategorySummary) -> AdviceResponse:
        """Structure model text, backfilling empty sections from the heuristics."""
        parsed = parse_advice(text)
        insights = parsed.insights or default_insights(summary)
        recommendations = parsed.recommendations or default_recommendations(summary)
        return AdviceResponse(
            advice=text,
            insights=insights,
            recommendations=recommendations,
            timestamp=_now(),
            source="model",
        )

    async def get_financial_advice(
        self,
        summary: CategorySummary,
        request: AdviceRequest | None = None,
    ) -> AdviceResponse:
        """Generate advice for the summary.

        The call is bounded by the caller (``asyncio.wait_for``, task
        cancellation); no timeout is added here.

        Args:
            summary: Category summary to advise on.
            request: Context and optional category focus.

        Returns:
            AdviceResponse from the model, or from the heuristics when no model
            is configured or the model call fails.

        Raises:
            asyncio.CancelledError: If the caller cancels while the model call
                is in flight.
        """
        request = request or AdviceRequest()

        if self.llm is None:
            logger.debug("No AI credential configured, using heuristic advice")
            return self.heuristic_response(summary)

        prompt = build_prompt(summary, request)

        try:
            text = await self.llm.complete(prompt)
        except ConfigurationError as e:
            logger.error("AI service configuration error, using heuristic advice: %s", e)
            return self.heuristic_response(summary)
        except AdvisoryError as e:
            logger.warning(
                "AI service failed (%s, retryable=%s), using heuristic advice: %s",
                type(e).__name__, e.retryable, e,
            )
            return self.heuristic_response(summary)

        return self.parse_response(text, summary)
