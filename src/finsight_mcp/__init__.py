"""Financial analytics and advice over a fixed transaction set, served over MCP."""

__version__ = "0.1.0"
