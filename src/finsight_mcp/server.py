"""MCP server exposing finsight analytics and advice."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool

from .advisor import AdvisoryService
from .analytics import AnalyticsEngine
from .config import Settings
from .errors import FinsightError, NoTransactionsError
from .llm import CompletionModel
from .models import AdviceRequest
from .store import TransactionStore, load_store
from .utils import parse_iso_date


logger = logging.getLogger(__name__)

# Initialize MCP server
server = Server("finsight-mcp")

# Global state
_settings: Settings | None = None
_engine: AnalyticsEngine | None = None
_advisor: AdvisoryService | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def get_engine() -> AnalyticsEngine:
    """Get or create the analytics engine over the configured dataset."""
    global _engine
    if _engine is None:
        settings = get_settings()
        store = load_store(settings.transactions_file, strict=settings.strict_validation)
        _engine = AnalyticsEngine(store)
    return _engine


def get_advisor() -> AdvisoryService:
    """Get or create the advisory service."""
    global _advisor
    if _advisor is None:
        llm = get_settings().build_llm()
        if llm is None:
            logger.warning("OPENAI_API_KEY not set - advice will use heuristic responses")
        _advisor = AdvisoryService(llm)
    return _advisor


def init_for_testing(store: TransactionStore, llm: CompletionModel | None = None) -> None:
    """Initialize server with a given store and optional model.

    Args:
        store: Transaction store to serve.
        llm: Completion model (None means heuristic advice only).
    """
    global _settings, _engine, _advisor
    _settings = Settings()
    _engine = AnalyticsEngine(store)
    _advisor = AdvisoryService(llm)


def _dump(result: dict[str, Any]) -> str:
    return json.dumps(result, ensure_ascii=False, indent=2)


def _error_result(e: FinsightError) -> dict[str, Any]:
    """Payload for store/analytics errors.

    An empty result is reported as a message, not an error.
    """
    if isinstance(e, NoTransactionsError):
        return {"message": "No transactions found"}
    return {"error": type(e).__name__, "message": str(e)}


# ============================================================================
# Tools
# ============================================================================

@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="health",
            description="Check that the server is running.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="get_transactions",
            description="List transactions with count and covered period. Optionally filter by an inclusive date range.",
            inputSchema={
                "type": "object",
                "properties": {
                    "start_date": {
                        "type": "string",
                        "description": "Range start, YYYY-MM-DD (requires end_date)",
                    },
                    "end_date": {
                        "type": "string",
                        "description": "Range end, YYYY-MM-DD (requires start_date)",
                    },
                },
            },
        ),
        Tool(
            name="get_category_summary",
            description="Spending and income breakdown by category with totals, percentages, net savings and savings rate.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="get_timeline",
            description="Monthly income vs expenses over time, in chronological order.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="get_financial_advice",
            description="Personalized financial advice with insights and recommendations based on the category summary.",
            inputSchema={
                "type": "object",
                "properties": {
                    "context": {
                        "type": "string",
                        "description": "Advice context: 'general', 'savings', 'budgeting', 'specific_category'",
                        "default": "general",
                    },
                    "category": {
                        "type": "string",
                        "description": "Category to focus the advice on",
                    },
                },
            },
        ),
    ]


async def run_tool(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a tool and return its JSON-ready result."""
    if name == "health":
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    engine = get_engine()

    try:
        if name == "get_transactions":
            start_date = arguments.get("start_date")
            end_date = arguments.get("end_date")
            if start_date or end_date:
                if not (start_date and end_date):
                    return {"error": "InvalidDateRangeError", "message": "Both start_date and end_date are required"}
                result = engine.get_transactions_by_date_range(
                    parse_iso_date(start_date),
                    parse_iso_date(end_date),
                )
            else:
                result = engine.get_transactions()
            return result.to_dict()

        elif name == "get_category_summary":
            return engine.get_category_summary().to_dict()

        elif name == "get_timeline":
            return engine.get_timeline().to_dict()

        elif name == "get_financial_advice":
            request = AdviceRequest(
                context=arguments.get("context") or "general",
                category=arguments.get("category") or None,
            )
            summary = engine.get_category_summary()
            advice = await get_advisor().get_financial_advice(summary, request)
            return advice.to_dict()

    except FinsightError as e:
        return _error_result(e)

    raise ValueError(f"Unknown tool: {name}")


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    result = await run_tool(name, arguments or {})
    return [TextContent(type="text", text=_dump(result))]


# ============================================================================
# Resources
# ============================================================================

@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri="finsight://summary",
            name="Category Summary",
            description="Income and expense breakdown by category",
            mimeType="application/json",
        ),
        Resource(
            uri="finsight://timeline",
            name="Timeline",
            description="Monthly income vs expenses",
            mimeType="application/json",
        ),
    ]


def get_resource(uri: str) -> dict[str, Any]:
    """Resolve a resource URI to its JSON-ready content."""
    engine = get_engine()

    try:
        if uri == "finsight://summary":
            return engine.get_category_summary().to_dict()
        elif uri == "finsight://timeline":
            return engine.get_timeline().to_dict()
    except FinsightError as e:
        return _error_result(e)

    raise ValueError(f"Unknown resource: {uri}")


@server.read_resource()
async def read_resource(uri: str) -> str:
    """Read resource content."""
    return _dump(get_resource(str(uri).rstrip("/")))


# ============================================================================
# Main
# ============================================================================

def main() -> None:
    """Run the MCP server."""
    import asyncio

    from mcp.server.stdio import stdio_server

    settings = get_settings()
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    get_engine()
    get_advisor()

    async def run():
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
