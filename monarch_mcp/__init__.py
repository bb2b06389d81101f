"""
Monarch MCP - Monarch Money as a set of MCP tools.

Exposes a Monarch Money account to an AI agent over MCP:
- One tool per supported client operation (accounts, transactions, budgets, ...)
- Natural-language transaction search (transactions_smartQuery)
- Compact summary tools for common questions
- Output kept short with brief / summary / detailed verbosity
"""

__version__ = "0.1.0"
