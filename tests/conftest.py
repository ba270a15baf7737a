"""
Pytest configuration and fixtures for shared-finance-mcp tests.

`FakeBackend` is an in-memory stand-in for the REST backend, served to the
client through `httpx.MockTransport`. It answers list endpoints in the
three shapes the real backend uses (bare array, `{"data": [...]}` and a
paginated `{"items": [...], "meta": {...}}` envelope) and records every
request so tests can assert on call order.
"""

import itertools
import json
import re
from collections import defaultdict
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from pydantic.alias_generators import to_camel

from shared_finance_mcp.config import Settings
from shared_finance_mcp.core.api_client import FinanceApi, FinanceApiClient

BASE_URL = "http://backend.test/api/v1"
TOKEN = "test-token"
USER_ID = "user-1"

# Resources whose list endpoint answers with a bare array
BARE_LISTS = {"budgets", "categories"}
# Resources whose list endpoint answers with a paginated envelope
PAGINATED_LISTS = {"transactions"}

_NON_FILTER_PARAMS = {"page", "limit", "search", "date_from", "date_to"}

# Record field behind each `GET /<resource>/<lookup>/<id>` endpoint
_LOOKUP_KEYS: Dict[str, Dict[str, str]] = {
    "user": {
        "accounts": "user_id",
        "transactions": "user_id",
        "categories": "user_id",
        "goal-contributions": "user_id",
        "notifications": "user_id",
    },
    "account": {"account-members": "account_id", "transactions": "account_id"},
    "goal": {"shared-goal-members": "shared_goal_id", "goal-contributions": "goal_id"},
    "creditor": {"debts": "creditor_id"},
    "debtor": {"debts": "debtor_id"},
    "debt": {"debt-payments": "debt_id"},
}


def _as_query(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _field(record: Dict[str, Any], key: str) -> Any:
    """Look a query key up on a record stored in snake_case or camelCase."""
    if key in record:
        return record[key]
    return record.get(to_camel(key))


class FakeBackend:
    """In-memory REST backend."""

    def __init__(self) -> None:
        self.stores: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.calls: List[Tuple[str, str]] = []
        self._failures: List[Tuple[str, str, int, Optional[Callable[[httpx.Request], bool]]]] = []
        self._ids = itertools.count(1)

    # Test helpers

    def add(self, resource: str, **record: Any) -> Dict[str, Any]:
        """Seed a record; an id is generated when none is given."""
        record.setdefault("id", f"{resource}-{next(self._ids)}")
        self.stores[resource][record["id"]] = record
        return record

    def get(self, resource: str, record_id: str) -> Dict[str, Any]:
        return self.stores[resource][record_id]

    def all(self, resource: str) -> List[Dict[str, Any]]:
        return list(self.stores[resource].values())

    def fail(
        self,
        method: str,
        pattern: str,
        status: int = 500,
        when: Optional[Callable[[httpx.Request], bool]] = None,
    ) -> None:
        """Answer requests matching method and path pattern with an error."""
        self._failures.append((method, pattern, status, when))

    def calls_to(self, method: str, pattern: str) -> List[str]:
        return [path for m, path in self.calls if m == method and re.fullmatch(pattern, path)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Request handling

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api/v1"):
            path = path[len("/api/v1"):]
        method = request.method
        self.calls.append((method, path))

        for fail_method, pattern, status, when in self._failures:
            if fail_method == method and re.fullmatch(pattern, path):
                if when is None or when(request):
                    return httpx.Response(status, json={"message": f"{method} {path} failed"})

        if path == "/readyz":
            return httpx.Response(200, json={"status": "ok"})

        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"error": "unauthorized"})

        params = dict(request.url.params)
        body = json.loads(request.content) if request.content else None
        return self._route(method, path, params, body)

    def _route(
        self, method: str, path: str, params: Dict[str, str], body: Any
    ) -> httpx.Response:
        parts = path.strip("/").split("/")
        resource = parts[0]

        if resource == "shared-goal-members" and len(parts) == 5 and parts[1::2] == ["goal", "user"]:
            for record in self.all("shared-goal-members"):
                if record.get("shared_goal_id") == parts[2] and record.get("user_id") == parts[4]:
                    return self._one(record)
            return self._not_found()

        if resource == "notifications" and len(parts) == 4 and parts[1] == "user":
            if method == "GET" and parts[3] == "unread":
                return self._list(resource, {"user_id": parts[2], "is_read": "false"})
            if method == "POST" and parts[3] == "read-all":
                for record in self.all("notifications"):
                    if record.get("user_id") == parts[2]:
                        record["is_read"] = True
                return httpx.Response(204)

        if resource == "notifications" and len(parts) == 3 and parts[2] in ("read", "unread"):
            record = self.stores[resource].get(parts[1])
            if record is None:
                return self._not_found()
            record["is_read"] = parts[2] == "read"
            return self._one(record)

        if method == "GET" and len(parts) == 3 and parts[1] in _LOOKUP_KEYS:
            key = _LOOKUP_KEYS[parts[1]][resource]
            return self._list(resource, {key: parts[2]})

        if resource == "accounts" and len(parts) == 3 and parts[1] == "share":
            for record in self.all("accounts"):
                if record.get("share_code") == parts[2]:
                    return self._one(record)
            return self._not_found()

        if resource == "accounts" and len(parts) == 3 and parts[2] == "balance":
            return self._update_balance(parts[1], body)

        if resource == "shared-goal-members" and parts[1:] == ["invite"]:
            member = self.add(
                "shared-goal-members",
                shared_goal_id=body["shared_goal_id"],
                user_id=f"invited:{body['email']}",
                user_email=body["email"],
                role="member",
                contribution_amount=0.0,
            )
            return self._one(member, status=201)

        if len(parts) == 1:
            if method == "GET":
                return self._list(resource, params)
            if method == "POST":
                record = self.add(resource, **body)
                record.setdefault("created_at", f"2026-01-01T00:00:{len(self.calls):02d}")
                if resource == "accounts":
                    record.setdefault("current_balance", record.get("start_amount", 0.0))
                if resource == "goals":
                    record.setdefault("current_amount", 0.0)
                    record.setdefault("status", "active")
                if resource == "debts":
                    record.setdefault("paid_amount", 0.0)
                    record.setdefault("status", "pending")
                if resource == "notifications":
                    record.setdefault("is_read", False)
                if resource == "account-transfers":
                    self._move(record)
                if resource == "goal-contributions":
                    self._contribute(record, 1)
                if resource == "debt-payments":
                    self._repay(record, 1)
                return self._one(record, status=201)

        if len(parts) == 2:
            record_id = parts[1]
            record = self.stores[resource].get(record_id)
            if record is None:
                return self._not_found()
            if method == "GET":
                return self._one(record)
            if method == "PATCH":
                record.update(body)
                return self._one(record)
            if method == "DELETE":
                del self.stores[resource][record_id]
                if resource == "transactions":
                    self._refund(record)
                if resource == "goal-contributions":
                    self._contribute(record, -1)
                if resource == "debt-payments":
                    self._repay(record, -1)
                return httpx.Response(204)

        return httpx.Response(405, json={"message": f"{method} {path} not supported"})

    def _list(self, resource: str, params: Dict[str, str]) -> httpx.Response:
        items = [r for r in self.all(resource) if self._matches(r, params)]
        if resource in BARE_LISTS:
            return httpx.Response(200, json=items)
        if resource in PAGINATED_LISTS:
            meta = {"page": 1, "limit": 100, "total": len(items), "totalPages": 1}
            return httpx.Response(200, json={"data": {"items": items, "meta": meta}})
        return httpx.Response(200, json={"data": items})

    @staticmethod
    def _matches(record: Dict[str, Any], params: Dict[str, str]) -> bool:
        txn_date = _field(record, "transaction_date") or ""
        if "date_from" in params and txn_date < params["date_from"]:
            return False
        if "date_to" in params and txn_date > params["date_to"]:
            return False
        if "search" in params:
            if params["search"].lower() not in (record.get("description") or "").lower():
                return False
        for key, value in params.items():
            if key in _NON_FILTER_PARAMS:
                continue
            if _as_query(_field(record, key)) != value:
                return False
        return True

    def _update_balance(self, account_id: str, body: Dict[str, Any]) -> httpx.Response:
        account = self.stores["accounts"].get(account_id)
        if account is None:
            return self._not_found()
        sign = 1 if body["operation"] == "add" else -1
        account["current_balance"] = account["current_balance"] + sign * body["amount"]
        return self._one(account)

    def _move(self, transfer: Dict[str, Any]) -> None:
        self.stores["accounts"][transfer["from_account_id"]]["current_balance"] -= transfer["amount"]
        self.stores["accounts"][transfer["to_account_id"]]["current_balance"] += transfer["amount"]

    def _contribute(self, contribution: Dict[str, Any], sign: int) -> None:
        # Personal goals only; shared goal totals are written by the client
        goal = self.stores["goals"].get(contribution["goal_id"])
        if goal is None:
            return
        goal["current_amount"] = max(goal["current_amount"] + sign * contribution["amount"], 0.0)

    def _repay(self, payment: Dict[str, Any], sign: int) -> None:
        debt = self.stores["debts"].get(payment["debt_id"])
        if debt is None:
            return
        debt["paid_amount"] = max(debt["paid_amount"] + sign * payment["amount"], 0.0)
        debt["status"] = "settled" if debt["paid_amount"] >= debt["amount"] else "pending"

    def _refund(self, transaction: Dict[str, Any]) -> None:
        account = self.stores["accounts"].get(_field(transaction, "account_id"))
        if account is None:
            return
        sign = 1 if transaction.get("type") == "expense" else -1
        account["current_balance"] = account["current_balance"] + sign * transaction["amount"]

    @staticmethod
    def _one(record: Dict[str, Any], status: int = 200) -> httpx.Response:
        return httpx.Response(status, json={"data": record})

    @staticmethod
    def _not_found() -> httpx.Response:
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def backend() -> FakeBackend:
    """Empty in-memory backend."""
    return FakeBackend()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the fake backend, with no settle notice delay."""
    return Settings(
        base_url=BASE_URL,
        access_token=TOKEN,
        user_id=USER_ID,
        settle_notice_delay=0,
    )


@pytest_asyncio.fixture
async def api(settings: Settings, backend: FakeBackend) -> AsyncGenerator[FinanceApi, None]:
    """FinanceApi wired to the fake backend."""
    client = FinanceApiClient(settings, transport=backend.transport())
    yield FinanceApi(client)
    await client.aclose()
