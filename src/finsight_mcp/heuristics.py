"""Deterministic advice generated straight from a category summary.

Used when no model credential is configured and as the fallback whenever the
model call fails. Output depends only on the summary passed in.
"""

from .models import CategorySummary


TARGET_SAVINGS_RATE = 20.0
DISCRETIONARY_CATEGORIES = ("dining", "entertainment", "shopping", "subscriptions")
DISCRETIONARY_SHARE_LIMIT = 0.2

ADVICE_HEADER = "Based on your financial data analysis:"
POSITIVE_MESSAGE = (
    "You're tracking your finances, which is a great first step toward financial wellness!"
)


def _savings_rate_insight(rate: float) -> str:
    if rate > 20:
        return f"Excellent savings rate of {rate:.1f}% - you're saving more than the recommended 20%"
    if rate > 10:
        return f"Your savings rate of {rate:.1f}% is on track - aim for 20% for optimal financial health"
    if rate > 0:
        return (
            f"Your savings rate of {rate:.1f}% has room for improvement - "
            "consider cutting discretionary spending"
        )
    return (
        f"Your savings rate is {rate:.1f}% - you're currently spending more than you earn, "
        "immediate action needed to avoid debt"
    )


def largest_expense(summary: CategorySummary) -> tuple[str, float] | None:
    """Expense category with the largest total; ties go to the first name."""
    largest = None
    for category in sorted(summary.expenses):
        total = summary.expenses[category].total
        if total > 0 and (largest is None or total > largest[1]):
            largest = (category, total)
    return largest


def discretionary_total(summary: CategorySummary) -> float:
    return sum(
        detail.total
        for category, detail in summary.expenses.items()
        if category in DISCRETIONARY_CATEGORIES
    )


def default_insights(summary: CategorySummary) -> list[str]:
    insights = [_savings_rate_insight(summary.summary.savings_rate)]

    total_expenses = summary.summary.total_expenses
    largest = largest_expense(summary)
    if largest is not None and total_expenses > 0:
        category, amount = largest
        share = amount / total_expenses * 100
        insights.append(f"Your largest expense is {category} at ${amount:.2f} ({share:.1f}% of spending)")

    months = max(summary.period.months, 1)
    monthly = total_expenses / months
    insights.append(f"Average monthly expenses: ${monthly:.2f} over {months} months")

    return insights


def default_recommendations(summary: CategorySummary) -> list[str]:
    recommendations = []

    if summary.summary.savings_rate < TARGET_SAVINGS_RATE:
        recommendations.append(
            "Set up automatic transfers to savings account to reach a 20% savings rate"
        )

    discretionary = discretionary_total(summary)
    if discretionary > summary.summary.total_expenses * DISCRETIONARY_SHARE_LIMIT:
        recommendations.append(
            "Consider reducing discretionary spending (dining, entertainment, shopping) "
            f"- currently ${discretionary:.2f}"
        )

    recommendations.append("Track your spending weekly to identify patterns and opportunities to save")
    recommendations.append("Build an emergency fund covering 3-6 months of expenses")

    return recommendations


def format_advice(insights: list[str], recommendations: list[str]) -> str:
    lines = [ADVICE_HEADER, "", "INSIGHTS:"]
    lines.extend(f"- {insight}" for insight in insights)
    lines.extend(["", "RECOMMENDATIONS:"])
    lines.extend(f"- {rec}" for rec in recommendations)
    lines.extend(["", "POSITIVE:", POSITIVE_MESSAGE])
    return "\n".join(lines)


def heuristic_advice(summary: CategorySummary) -> tuple[str, list[str], list[str]]:
    """Build advice text, insights and recommendations without any I/O.

    Returns:
        Tuple of (advice text, insights, recommendations).
    """
    insights = default_insights(summary)
    recommendations = default_recommendations(summary)
    return format_advice(insights, recommendations), insights, recommendations
