"""
Utility functions for the shared finance MCP server.
"""

from shared_finance_mcp.utils.api_response import normalize_list_response
from shared_finance_mcp.utils.date_utils import (
    format_month_label,
    get_month_range,
    get_month_range_for_key,
    parse_period,
)
from shared_finance_mcp.utils.pagination import page_buttons, paginate

__all__ = [
    "format_month_label",
    "get_month_range",
    "get_month_range_for_key",
    "normalize_list_response",
    "page_buttons",
    "paginate",
    "parse_period",
]
