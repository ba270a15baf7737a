"""
Async REST client for the shared finance backend.

Wraps httpx with bearer-token auth, `{"data": ...}` envelope unwrapping and
backend error-message extraction, and groups the endpoints per resource.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from shared_finance_mcp.config import Settings
from shared_finance_mcp.core.exceptions import ApiError

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "ไม่พบข้อมูลการเข้าสู่ระบบ กรุณาเข้าสู่ระบบใหม่"


def build_query_params(filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Convert a filter mapping into query parameters.

    None values are dropped; booleans are sent as "true"/"false".
    """
    if not filters:
        return {}

    params: Dict[str, str] = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params


def unwrap_response(payload: Any) -> Any:
    """Return the `data` member of an envelope, or the payload unchanged."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class FinanceApiClient:
    """Thin async HTTP client bound to one backend and one access token."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Backend URL, token and timeout
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.settings = settings
        self._client = httpx.AsyncClient(timeout=settings.timeout, transport=transport)

    def build_url(self, endpoint: str) -> str:
        """Resolve an endpoint against the configured base URL."""
        if endpoint.startswith("http"):
            return endpoint
        base = self.settings.base_url.rstrip("/")
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{base}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        skip_auth: bool = False,
    ) -> Any:
        """
        Send a request and return the unwrapped response body.

        Returns:
            Decoded JSON (envelope unwrapped), response text for non-JSON
            bodies, or None for 204/205 responses

        Raises:
            ApiError: If no token is configured, the request cannot be sent,
                      or the backend answers with a non-2xx status
        """
        headers = {"Accept": "application/json"}
        if not skip_auth:
            if not self.settings.access_token:
                raise ApiError(MISSING_TOKEN_MESSAGE, 401)
            headers["Authorization"] = f"Bearer {self.settings.access_token}"

        url = self.build_url(endpoint)
        try:
            response = await self._client.request(
                method,
                url,
                params=build_query_params(params),
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise ApiError(f"Request to {url} failed: {e}") from e

        logger.debug("%s %s -> %s", method, url, response.status_code)

        status = response.status_code
        expects_body = status not in (204, 205)
        content_type = response.headers.get("content-type", "")
        is_json = expects_body and "application/json" in content_type

        data: Any = None
        if is_json:
            try:
                data = response.json()
            except ValueError:
                data = None
        elif expects_body:
            data = response.text

        if not response.is_success:
            message = None
            if is_json and isinstance(data, dict):
                message = data.get("message") or data.get("error")
            raise ApiError(
                message or f"Request failed with status {status}", status, data
            )

        if not expects_body:
            return None

        return unwrap_response(data)

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, json=body, **kwargs)

    async def patch(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", endpoint, json=body, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FinanceApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class ResourceApi:
    """CRUD endpoints shared by every backend resource."""

    path = ""

    def __init__(self, client: FinanceApiClient):
        self.client = client

    async def list(self, **filters: Any) -> Any:
        return await self.client.get(self.path, params=filters)

    async def get(self, resource_id: str) -> Any:
        return await self.client.get(f"{self.path}/{resource_id}")

    async def create(self, data: Dict[str, Any]) -> Any:
        return await self.client.post(self.path, data)

    async def update(self, resource_id: str, data: Dict[str, Any]) -> Any:
        return await self.client.patch(f"{self.path}/{resource_id}", data)

    async def delete(self, resource_id: str) -> Any:
        return await self.client.delete(f"{self.path}/{resource_id}")


class AccountApi(ResourceApi):
    path = "/accounts"

    async def get_by_user(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/user/{user_id}")

    async def get_by_share_code(self, share_code: str) -> Any:
        return await self.client.get(f"{self.path}/share/{share_code}")

    async def update_balance(
        self,
        account_id: str,
        operation: str,
        amount: float,
        note: Optional[str] = None,
    ) -> Any:
        """Adjust a balance server-side; operation is 'add', 'subtract' or 'set'."""
        data: Dict[str, Any] = {"operation": operation, "amount": amount}
        if note:
            data["note"] = note
        return await self.client.patch(f"{self.path}/{account_id}/balance", data)


class AccountMemberApi(ResourceApi):
    path = "/account-members"

    async def get_by_account(self, account_id: str) -> Any:
        return await self.client.get(f"{self.path}/account/{account_id}")


class AccountTransferApi(ResourceApi):
    path = "/account-transfers"


class AccountTransactionApi(ResourceApi):
    path = "/account-transactions"


class TransactionApi(ResourceApi):
    path = "/transactions"


class CategoryApi(ResourceApi):
    path = "/categories"

    async def get_by_user(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/user/{user_id}")


class BudgetApi(ResourceApi):
    path = "/budgets"


class NotificationApi(ResourceApi):
    path = "/notifications"

    async def get_by_user(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/user/{user_id}")

    async def get_unread_by_user(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/user/{user_id}/unread")

    async def mark_as_read(self, notification_id: str) -> Any:
        return await self.client.post(f"{self.path}/{notification_id}/read")

    async def mark_as_unread(self, notification_id: str) -> Any:
        return await self.client.post(f"{self.path}/{notification_id}/unread")

    async def mark_all_as_read(self, user_id: str) -> Any:
        return await self.client.post(f"{self.path}/user/{user_id}/read-all")


class GoalApi(ResourceApi):
    path = "/goals"


class SharedGoalApi(ResourceApi):
    path = "/shared-goals"


class SharedGoalMemberApi(ResourceApi):
    path = "/shared-goal-members"

    async def get_by_goal(self, goal_id: str) -> Any:
        return await self.client.get(f"{self.path}/goal/{goal_id}")

    async def get_membership(self, goal_id: str, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/goal/{goal_id}/user/{user_id}")

    async def invite(self, goal_id: str, email: str) -> Any:
        return await self.client.post(
            f"{self.path}/invite", {"shared_goal_id": goal_id, "email": email}
        )


class GoalContributionApi(ResourceApi):
    """Contributions to personal and shared goals alike."""

    path = "/goal-contributions"

    async def get_by_goal(self, goal_id: str) -> Any:
        return await self.client.get(f"{self.path}/goal/{goal_id}")

    async def get_by_user(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/user/{user_id}")


class DebtApi(ResourceApi):
    path = "/debts"

    async def get_by_creditor(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/creditor/{user_id}")

    async def get_by_debtor(self, user_id: str) -> Any:
        return await self.client.get(f"{self.path}/debtor/{user_id}")


class DebtPaymentApi(ResourceApi):
    path = "/debt-payments"

    async def get_by_debt(self, debt_id: str) -> Any:
        return await self.client.get(f"{self.path}/debt/{debt_id}")


class HealthApi:
    def __init__(self, client: FinanceApiClient):
        self.client = client

    async def ready(self) -> Any:
        return await self.client.get("/readyz", skip_auth=True)


class FinanceApi:
    """All endpoint groups of the backend, sharing one client."""

    def __init__(self, client: FinanceApiClient):
        self.client = client
        self.accounts = AccountApi(client)
        self.account_members = AccountMemberApi(client)
        self.account_transfers = AccountTransferApi(client)
        self.account_transactions = AccountTransactionApi(client)
        self.transactions = TransactionApi(client)
        self.categories = CategoryApi(client)
        self.budgets = BudgetApi(client)
        self.notifications = NotificationApi(client)
        self.goals = GoalApi(client)
        self.shared_goals = SharedGoalApi(client)
        self.shared_goal_members = SharedGoalMemberApi(client)
        self.goal_contributions = GoalContributionApi(client)
        self.debts = DebtApi(client)
        self.debt_payments = DebtPaymentApi(client)
        self.health = HealthApi(client)

    async def aclose(self) -> None:
        await self.client.aclose()
