"""
End-to-end tests for the MCP server.

Drives tool calls through the server dispatch against the in-memory
backend, the same way an MCP client would.
"""

import inspect
import json

import pytest
import pytest_asyncio

from shared_finance_mcp.server import ERROR_PREFIX, TOOL_NAMES, FinanceServer
from shared_finance_mcp.tools.tools import FinanceTools, create_tool_schemas

USER_ID = "user-1"


@pytest_asyncio.fixture
async def server(settings, backend):
    """FinanceServer wired to the fake backend."""
    backend.add("accounts", id="acc-1", user_id=USER_ID, name="บัญชีหลัก",
                bank_name="กสิกรไทย", current_balance=1000.0)
    backend.add("accounts", id="acc-2", user_id=USER_ID, name="เงินออม", current_balance=500.0)
    server = FinanceServer(settings, transport=backend.transport())
    yield server
    await server.aclose()


async def call(server: FinanceServer, name: str, **arguments) -> str:
    content = await server.handle_call(name, arguments)
    assert len(content) == 1
    assert content[0].type == "text"
    return content[0].text


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_server_initialization(server):
    """Server wires the API, tools and MCP server for the configured user."""
    assert server.api is not None
    assert server.tools is not None
    assert server.server is not None
    assert server.tools.user_id == USER_ID


@pytest.mark.e2e
def test_tool_schemas_match_tool_methods():
    """Every schema names an async tool method whose parameters cover its properties."""
    schemas = create_tool_schemas()
    names = [schema["name"] for schema in schemas]

    assert len(names) == 21
    assert len(set(names)) == len(names)
    assert set(names) == TOOL_NAMES
    for schema in schemas:
        method = getattr(FinanceTools, schema["name"])
        assert inspect.iscoroutinefunction(method)
        params = inspect.signature(method).parameters
        for prop in schema["inputSchema"]["properties"]:
            assert prop in params, f"{schema['name']} has no parameter {prop}"
        for required in schema["inputSchema"].get("required", []):
            assert params[required].default is inspect.Parameter.empty


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_accounts(server):
    """Accounts are listed with their total balance and display names."""
    result = json.loads(await call(server, "list_accounts"))

    assert result["count"] == 2
    assert result["total_balance"] == 1500.0
    names = {acc["display_name"] for acc in result["accounts"]}
    assert "บัญชีหลัก (กสิกรไทย)" in names


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_deposit(server, backend):
    """Deposit raises the balance, sends one notification and keeps Thai text readable."""
    text = await call(server, "deposit", account_id="acc-1", amount=250.0, note="เงินทอน")
    result = json.loads(text)

    assert "฿250.00" in result["message"]
    assert result["account"]["current_balance"] == 1250.0
    assert backend.get("accounts", "acc-1")["current_balance"] == 1250.0
    assert len(backend.all("notifications")) == 1
    # Thai text is not escaped
    assert "ฝากเงิน" in text


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_withdraw_more_than_balance_is_rejected(server, backend):
    """An overdraft is refused after only the account lookup."""
    backend.calls.clear()

    text = await call(server, "withdraw", account_id="acc-1", amount=5000.0)

    assert text.startswith("Error: ")
    assert "ไม่เพียงพอ" in text
    assert backend.calls == [("GET", "/accounts/acc-1")]


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_transfer(server, backend):
    """Transfer moves money between the two accounts."""
    result = json.loads(
        await call(server, "transfer", from_account_id="acc-1", to_account_id="acc-2", amount=300.0)
    )

    assert result["from_account"]["current_balance"] == 700.0
    assert backend.get("accounts", "acc-2")["current_balance"] == 800.0


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_backend_failure_is_reported_in_thai(server, backend):
    """Backend errors come back with the Thai error prefix."""
    backend.fail("GET", "/accounts/acc-1")

    text = await call(server, "deposit", account_id="acc-1", amount=10.0)

    assert text.startswith(ERROR_PREFIX)


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_failed_saga_is_reported_in_thai(server, backend):
    """A failed multi-step deposit is reported and its balance change undone."""
    backend.fail("POST", "/notifications")

    text = await call(server, "deposit", account_id="acc-1", amount=10.0)

    assert text.startswith(ERROR_PREFIX)
    assert backend.get("accounts", "acc-1")["current_balance"] == 1000.0


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_unknown_tool(server):
    """Unknown tool names are reported, not raised."""
    assert await call(server, "drop_database") == "Unknown tool: drop_database"


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_bad_arguments_are_reported(server):
    """Unexpected arguments are reported as errors."""
    text = await call(server, "deposit", account="acc-1")
    assert text.startswith("Error: ")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_missing_user_is_reported(settings, backend):
    """Tools refuse to run without a configured user."""
    server = FinanceServer(settings.model_copy(update={"user_id": None}),
                           transport=backend.transport())
    try:
        text = await call(server, "list_accounts")
    finally:
        await server.aclose()

    assert text.startswith("Error: ")
    assert backend.calls == []


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_transactions_with_limit(server, backend):
    """The limit keeps the newest transactions."""
    for day in range(1, 6):
        backend.add("transactions", userId=USER_ID, type="expense", amount=float(day),
                    transactionDate=f"2026-03-0{day}", description=f"รายการ {day}")

    result = json.loads(await call(server, "list_transactions", limit=3))

    assert result["count"] == 3
    assert [t["transaction_date"] for t in result["transactions"]] == [
        "2026-03-05",
        "2026-03-04",
        "2026-03-03",
    ]


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_get_analytics_demo_for_new_user(server):
    """Users without transactions get six months of demo analytics."""
    result = json.loads(await call(server, "get_analytics"))

    assert result["is_demo"] is True
    assert len(result["monthly"]) == 6


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_budgets(server, backend):
    """Budget listing includes totals and the resolved category name."""
    backend.add("categories", id="cat-food", name="อาหาร", user_id=USER_ID)
    backend.add("budgets", id="b1", userId=USER_ID, categoryId="cat-food",
                budgetAmount=1000.0, periodStart="2026-03-01", periodEnd="2026-03-31")
    backend.add("transactions", userId=USER_ID, categoryId="cat-food", type="expense",
                amount=1200.0, transactionDate="2026-03-10")

    result = json.loads(await call(server, "list_budgets"))

    assert result["totals"]["over_budget_count"] == 1
    assert result["budgets"][0]["category"] == "อาหาร"
    assert result["budgets"][0]["is_over_budget"] is True


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_bills(server):
    """Bills can be filtered by status."""
    result = json.loads(await call(server, "list_bills", status="active"))

    assert result["count"] == 3
    assert all(bill["status"] == "active" for bill in result["bills"])


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_bills_rejects_unknown_status(server):
    """Unknown bill statuses are refused."""
    assert (await call(server, "list_bills", status="archived")).startswith("Error: ")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_mark_bill_paid_settles_last_member(server):
    """The bill settles when its last member pays."""
    first = json.loads(await call(server, "mark_bill_paid", bill_id="2", member_name="คุณ"))
    assert first["settled"] is False
    assert first["payment"]["amount"] == 93.33

    last = json.loads(await call(server, "mark_bill_paid", bill_id="2", member_name="โยชิ"))

    assert last["settled"] is True
    assert last["bill"]["status"] == "settled"
    assert last["bill"]["settled_at"] is not None
    await server.bills.wait_for_notices()


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_mark_bill_paid_twice_is_rejected(server):
    """A member cannot pay the same bill twice."""
    await call(server, "mark_bill_paid", bill_id="1", member_name="โยชิ")
    text = await call(server, "mark_bill_paid", bill_id="1", member_name="โยชิ")
    assert text.startswith("Error: ")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_paginate_transactions(server, backend):
    """Pages report navigation state and clamp past the last page."""
    for i in range(1, 26):
        backend.add("transactions", userId=USER_ID, type="expense" if i % 5 else "income",
                    amount=float(i), transactionDate=f"2026-01-{i:02d}",
                    description=f"รายการที่ {i}")

    result = json.loads(await call(server, "paginate_transactions", page=2, page_size=10))

    assert result["current_page"] == 2
    assert result["total_pages"] == 3
    assert len(result["items"]) == 10
    assert result["has_previous"] is True
    assert result["has_next"] is True
    assert result["buttons"] == [1, 2, 3]

    clamped = json.loads(
        await call(server, "paginate_transactions", page=9, page_size=10, type="income")
    )
    assert clamped["current_page"] == 1
    assert clamped["total_items"] == 5
    assert clamped["has_next"] is False


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_paginate_transactions_matches_category_ids_exactly(server, backend):
    """Filtering by category "1" leaves out categories "10" and "21"."""
    for i, category in enumerate(["1", "10", "21", "1", "11"], start=1):
        backend.add("transactions", userId=USER_ID, type="expense", amount=float(i),
                    categoryId=category, transactionDate=f"2026-02-{i:02d}",
                    description=f"หมวด {category}")

    result = json.loads(await call(server, "paginate_transactions", category_id="1"))

    assert result["total_items"] == 2
    assert {item["category_id"] for item in result["items"]} == {"1"}


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_paginate_transactions_search_matches_substrings(server, backend):
    """The search filter still matches part of a description."""
    backend.add("transactions", userId=USER_ID, type="expense", amount=1.0,
                transactionDate="2026-02-01", description="Coffee at Amazon Cafe")
    backend.add("transactions", userId=USER_ID, type="expense", amount=2.0,
                transactionDate="2026-02-02", description="ค่าไฟ")

    result = json.loads(await call(server, "paginate_transactions", search="amazon"))

    assert result["total_items"] == 1


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_goals_and_contribute(server, backend):
    """Contributing to a personal goal reports the backend's new total."""
    backend.add("goals", id="pg1", user_id=USER_ID, name="กล้องใหม่",
                target_amount=20000.0, current_amount=5000.0, status="active")

    listed = json.loads(await call(server, "list_goals", status="active"))
    assert listed["count"] == 1
    assert listed["total_saved"] == 5000.0

    result = json.loads(await call(server, "add_goal_contribution", goal_id="pg1", amount=1500.0))

    assert result["goal"]["current_amount"] == 6500.0
    assert result["goal"]["progress_percentage"] == 32.5


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_list_goals_rejects_unknown_status(server):
    """Goal statuses outside the known set are refused."""
    assert (await call(server, "list_goals", status="archived")).startswith("Error: ")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_debts_and_repayment(server, backend):
    """Debts are listed by direction and a full repayment settles one."""
    backend.add("debts", id="d1", creditor_id="u2", debtor_id=USER_ID,
                amount=400.0, paid_amount=100.0, status="pending")

    overview = json.loads(await call(server, "list_debts"))
    assert overview["lent"] == []
    assert overview["total_owed_outstanding"] == 300.0

    result = json.loads(await call(server, "record_debt_payment", debt_id="d1", amount=300.0))
    assert result["settled"] is True
    assert result["debt"]["remaining_amount"] == 0.0

    too_much = await call(server, "record_debt_payment", debt_id="d1", amount=1.0)
    assert too_much.startswith("Error: ")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_notifications_read_flow(server, backend):
    """A deposit notification shows as unread until it is marked read."""
    await call(server, "deposit", account_id="acc-1", amount=100.0)

    unread = json.loads(await call(server, "list_notifications", unread_only=True))
    assert unread["count"] == 1
    notification_id = unread["notifications"][0]["id"]

    marked = json.loads(
        await call(server, "mark_notifications_read", notification_id=notification_id)
    )
    assert marked["marked"] == 1
    assert marked["notification"]["is_read"] is True

    remaining = json.loads(await call(server, "list_notifications"))
    assert remaining["count"] == 1
    assert remaining["unread"] == 0


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_mark_all_notifications_read(server, backend):
    """Omitting the ID marks every unread notification."""
    backend.add("notifications", user_id=USER_ID, title="a", message="a", is_read=False)
    backend.add("notifications", user_id=USER_ID, title="b", message="b", is_read=False)

    result = json.loads(await call(server, "mark_notifications_read"))

    assert result == {"marked": 2}
    assert all(n["is_read"] for n in backend.all("notifications"))


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_check_backend(server, backend):
    """Readiness is reported without raising when the backend is down."""
    assert await server.check_backend() is True

    backend.fail("GET", "/readyz", status=503)

    assert await server.check_backend() is False
