"""
In-app notifications: listing and read state.
"""

import logging
from typing import List

from shared_finance_mcp.core.api_client import FinanceApi
from shared_finance_mcp.models.notification import Notification
from shared_finance_mcp.utils.api_response import parse_list, parse_one

logger = logging.getLogger(__name__)


class NotificationService:
    """Notifications of one user and their read flags."""

    def __init__(self, api: FinanceApi):
        self.api = api

    async def list_notifications(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """
        The user's notifications, newest first.

        Args:
            user_id: Recipient
            unread_only: Only notifications not yet marked as read
        """
        if unread_only:
            payload = await self.api.notifications.get_unread_by_user(user_id)
        else:
            payload = await self.api.notifications.get_by_user(user_id)
        notifications = parse_list(payload, Notification)
        notifications.sort(key=lambda n: n.created_at or "", reverse=True)
        return notifications

    async def unread_count(self, user_id: str) -> int:
        return len(await self.list_notifications(user_id, unread_only=True))

    async def mark_as_read(self, notification_id: str) -> Notification:
        payload = await self.api.notifications.mark_as_read(notification_id)
        return parse_one(payload, Notification)

    async def mark_as_unread(self, notification_id: str) -> Notification:
        payload = await self.api.notifications.mark_as_unread(notification_id)
        return parse_one(payload, Notification)

    async def mark_all_as_read(self, user_id: str) -> int:
        """
        Mark every unread notification of the user as read.

        Returns:
            How many notifications were unread beforehand
        """
        unread = await self.unread_count(user_id)
        if unread:
            await self.api.notifications.mark_all_as_read(user_id)
            logger.info("Marked %d notifications as read for %s", unread, user_id)
        return unread

    async def delete_notification(self, notification_id: str) -> None:
        await self.api.notifications.delete(notification_id)
