"""
Analytics view: monthly trends and spending by category.
"""

import asyncio
import logging
from typing import Optional

from shared_finance_mcp.models.transaction import TransactionFilter
from shared_finance_mcp.services.transactions import TransactionService
from shared_finance_mcp.utils.aggregation import (
    DEMO_ANALYTICS,
    AnalyticsSummary,
    build_analytics,
)
from shared_finance_mcp.utils.date_utils import parse_period

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, transactions: TransactionService):
        self.transactions = transactions

    async def get_analytics(
        self, user_id: str, period: Optional[str] = None
    ) -> AnalyticsSummary:
        """
        Build the analytics summary for a user.

        Args:
            period: Optional period shorthand (see parse_period) limiting the
                    transactions considered

        Returns:
            Computed summary, or the demo placeholder (is_demo=True) when
            the user has no transactions
        """
        filters = TransactionFilter(user_id=user_id)
        if period:
            filters.date_from, filters.date_to = parse_period(period)

        transactions, category_names = await asyncio.gather(
            self.transactions.list_transactions(filters),
            self.transactions.category_names(user_id),
        )

        summary = build_analytics(transactions, category_names)
        if summary is None:
            logger.info("No transactions for user %s, showing demo analytics", user_id)
            return DEMO_ANALYTICS
        return summary
