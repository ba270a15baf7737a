"""
Integration tests for account workflows against the in-memory backend.
"""

import pytest

from shared_finance_mcp.core.exceptions import (
    ApiError,
    InsufficientBalanceError,
    InvalidInputError,
    SagaFailedError,
)
from shared_finance_mcp.models.account import Account, AccountMember
from shared_finance_mcp.services.accounts import AccountService

USER_ID = "user-1"


@pytest.fixture
def service(api) -> AccountService:
    return AccountService(api)


@pytest.fixture
def account(backend) -> Account:
    record = backend.add(
        "accounts",
        id="acc-1",
        user_id=USER_ID,
        name="บัญชีหลัก",
        bank_name="KBank",
        current_balance=10000.0,
    )
    return Account.model_validate(record)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_list_accounts(service, backend, account):
    """Only the user's accounts are listed, with bank-qualified display names."""
    backend.add("accounts", user_id="someone-else", name="อื่น", current_balance=5.0)

    accounts = await service.list_accounts(USER_ID)

    assert [a.id for a in accounts] == ["acc-1"]
    assert accounts[0].display_name == "บัญชีหลัก (KBank)"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_missing_account(service):
    """An unknown account surfaces the backend's 404."""
    with pytest.raises(ApiError) as exc_info:
        await service.get_account("nope")
    assert exc_info.value.status == 404


@pytest.mark.integration
@pytest.mark.asyncio
async def test_deposit_updates_balance_and_records_transaction(service, backend, account):
    """Deposit ฿5,000 into a ฿10,000 account."""
    change = await service.deposit(account, USER_ID, 5000.0, "เงินเดือน")

    assert change.account.current_balance == 15000.0
    assert backend.get("accounts", "acc-1")["current_balance"] == 15000.0

    records = backend.all("account-transactions")
    assert len(records) == 1
    assert records[0]["transaction_type"] == "deposit"
    assert records[0]["amount"] == 5000.0
    assert change.transaction.amount == 5000.0
    assert [t.id for t in change.history] == [records[0]["id"]]

    notifications = backend.all("notifications")
    assert len(notifications) == 1
    assert notifications[0]["user_id"] == USER_ID


@pytest.mark.integration
@pytest.mark.asyncio
async def test_deposit_call_order(service, backend, account):
    """The record is written before the balance and the notification goes last."""
    await service.deposit(account, USER_ID, 100.0)

    assert backend.calls[:2] == [
        ("POST", "/account-transactions"),
        ("PATCH", "/accounts/acc-1/balance"),
    ]
    assert backend.calls[-1] == ("POST", "/notifications")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_withdraw(service, backend, account):
    """Withdrawing lowers the balance and records a withdraw transaction."""
    change = await service.withdraw(account, USER_ID, 2500.0)

    assert change.account.current_balance == 7500.0
    assert change.transaction.transaction_type == "withdraw"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_overdraw_rejected_before_any_request(service, backend):
    """Withdraw ฿200 from ฿100: rejected with no network call."""
    account = Account(id="acc-9", name="เงินสด", current_balance=100.0)

    with pytest.raises(InsufficientBalanceError):
        await service.withdraw(account, USER_ID, 200.0)

    assert backend.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -50.0, float("nan")])
async def test_invalid_amount_rejected_before_any_request(service, backend, account, amount):
    """Zero, negative and NaN amounts are refused up front."""
    with pytest.raises(InvalidInputError):
        await service.deposit(account, USER_ID, amount)
    assert backend.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_failed_notification_rolls_back_deposit(service, backend, account):
    """A failure late in the deposit undoes the balance change and the record."""
    backend.fail("POST", "/notifications")

    with pytest.raises(SagaFailedError) as exc_info:
        await service.deposit(account, USER_ID, 5000.0)

    assert exc_info.value.step == "notify"
    assert exc_info.value.compensated == ["balance", "record"]
    assert backend.get("accounts", "acc-1")["current_balance"] == 10000.0
    assert backend.all("account-transactions") == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_failed_balance_update_deletes_record(service, backend, account):
    """A rejected balance update deletes the recorded transaction."""
    backend.fail("PATCH", r"/accounts/[^/]+/balance", status=409)

    with pytest.raises(SagaFailedError) as exc_info:
        await service.withdraw(account, USER_ID, 100.0)

    assert exc_info.value.step == "balance"
    assert exc_info.value.compensated == ["record"]
    assert backend.all("account-transactions") == []
    assert backend.get("accounts", "acc-1")["current_balance"] == 10000.0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transfer(service, backend, account):
    """Transfers move money from one account to the other."""
    backend.add("accounts", id="acc-2", user_id=USER_ID, name="ออม", current_balance=0.0)

    transfer = await service.transfer(account, "acc-2", 3000.0, "เก็บออม")

    assert transfer.amount == 3000.0
    assert backend.get("accounts", "acc-1")["current_balance"] == 7000.0
    assert backend.get("accounts", "acc-2")["current_balance"] == 3000.0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transfer_to_same_account_rejected(service, backend, account):
    """Transfers to the source account are refused."""
    with pytest.raises(InvalidInputError):
        await service.transfer(account, "acc-1", 10.0)
    assert backend.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transfer_more_than_balance_rejected(service, backend, account):
    """Transfers larger than the balance are refused."""
    with pytest.raises(InsufficientBalanceError):
        await service.transfer(account, "acc-2", 10000.01)
    assert backend.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_add_member_sets_permission_flags(service, backend, account):
    """Permissions translate into the member's capability flags."""
    member = await service.add_member("acc-1", "u2", permissions=["view", "deposit"])

    assert member.can_deposit is True
    assert member.can_withdraw is False
    assert member.permissions == ["view", "deposit"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unknown_permission_rejected(service):
    """Unknown permission names are refused."""
    with pytest.raises(InvalidInputError):
        await service.add_member("acc-1", "u2", permissions=["admin"])


@pytest.mark.integration
@pytest.mark.asyncio
async def test_owner_cannot_be_changed_or_removed(service, backend):
    """The account owner can be neither changed nor removed."""
    owner = AccountMember(id="m1", account_id="acc-1", user_id=USER_ID, role="owner")

    with pytest.raises(InvalidInputError):
        await service.update_member(owner, ["view"])
    with pytest.raises(InvalidInputError):
        await service.remove_member(owner)
    assert backend.calls == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_update_and_remove_member(service, backend):
    """Member permissions can be updated and the member removed."""
    backend.add("account-members", id="m2", account_id="acc-1", user_id="u2", role="member")
    member = AccountMember(id="m2", account_id="acc-1", user_id="u2")

    updated = await service.update_member(member, ["view", "withdraw"])
    assert updated.can_withdraw is True

    await service.remove_member(member)
    assert backend.all("account-members") == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_join_shared_account_by_code(service, backend):
    """Share codes are matched case-insensitively to join a shared account."""
    backend.add(
        "accounts",
        id="acc-s",
        user_id="u9",
        name="กองกลางห้อง",
        account_type="shared",
        share_code="ABC123",
        current_balance=0.0,
    )

    member = await service.join_by_share_code("abc123", USER_ID)

    assert member.account_id == "acc-s"
    assert member.permissions == ["view"]
    assert [m.user_id for m in await service.list_members("acc-s")] == [USER_ID]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_join_personal_account_rejected(service, backend, account):
    """Personal accounts cannot be joined by share code."""
    backend.get("accounts", "acc-1")["share_code"] = "PERS01"

    with pytest.raises(InvalidInputError):
        await service.join_by_share_code("PERS01", "u2")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_create_account_validates_name(service, backend):
    """Blank account names are refused before any request."""
    with pytest.raises(InvalidInputError):
        await service.create_account(USER_ID, "   ")
    assert backend.calls == []

    account = await service.create_account(USER_ID, "บัญชีใหม่", start_amount=0.0)
    assert account.name == "บัญชีใหม่"
