"""Unit tests for BankSessionClient: login state machine and lazy-auth fetch."""

import asyncio
from datetime import date

import pytest

from trxsync.application.events import EventBus
from trxsync.application.services import BankSessionClient, SessionState
from trxsync.domain.banking.exceptions import (
    AuthSessionExpiredError,
    AuthTimeoutError,
    BankAuthenticationError,
    BankNotFoundError,
    BankSessionStateError,
    BankTransactionFetchError,
    InvalidDateRangeError,
    MissingBankParamsError,
)
from trxsync.domain.banking.ports import BankIntegration
from trxsync.domain.banking.value_objects import AuthStatus, DedupConfig, Transaction
from trxsync.infrastructure.banking import BankRegistry

START = date(2025, 3, 1)
END = date(2025, 3, 15)


class FakeBank(BankIntegration):
    """Integration whose login the test drives step by step."""

    name = "fakebank"
    required_params = ("user",)

    def __init__(self):
        self.approve = asyncio.Event()
        self.tokens = ["QR_1"]
        self.login_error: Exception | None = None
        self.fetch_error: Exception | None = None
        self.authenticate_calls = 0
        self.fetch_calls = 0
        self.cleanup_calls = 0
        self.initialized_with = None

    async def initialize(self, params):
        self.initialized_with = params

    async def authenticate(self, listener):
        self.authenticate_calls += 1
        listener.on_message("Waiting for BankID...")
        for token in self.tokens:
            listener.on_qr_token(token)
            await asyncio.sleep(0)
        await self.approve.wait()
        if self.login_error is not None:
            raise self.login_error

    async def fetch_transactions_from_bank(self, start_date, end_date):
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return [
            Transaction(date=END, amount=-100, external_id="b"),
            Transaction(date=START, amount=-200, external_id="a"),
        ]

    async def cleanup(self):
        self.cleanup_calls += 1


def _registry(bank: FakeBank) -> BankRegistry:
    registry = BankRegistry()
    registry.register(FakeBank.name, lambda: bank)
    return registry


def _client(bank: FakeBank, qr_timeout: float = 1.0) -> BankSessionClient:
    return BankSessionClient(_registry(bank), qr_timeout=qr_timeout)


@pytest.fixture
def bank() -> FakeBank:
    return FakeBank()


@pytest.fixture
async def client(bank):
    client = _client(bank)
    await client.initialize("fakebank", {"user": "me"})
    yield client
    await client.cleanup()


class TestInitialize:
    @pytest.mark.asyncio
    async def test_initialize_moves_to_initialized(self, bank):
        client = _client(bank)
        assert client.state is SessionState.UNINITIALIZED

        await client.initialize("FakeBank", {"user": "me"})

        assert client.state is SessionState.INITIALIZED
        assert bank.initialized_with == {"user": "me"}

    @pytest.mark.asyncio
    async def test_unknown_bank(self, bank):
        client = _client(bank)
        with pytest.raises(BankNotFoundError):
            await client.initialize("nordea", {})
        assert client.state is SessionState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_missing_required_params(self, bank):
        client = _client(bank)
        with pytest.raises(MissingBankParamsError) as exc_info:
            await client.initialize("fakebank", {"user": ""})
        assert exc_info.value.details["missing"] == ["user"]

    @pytest.mark.asyncio
    async def test_initialize_twice_is_rejected(self, client):
        with pytest.raises(BankSessionStateError):
            await client.initialize("fakebank", {"user": "me"})

    @pytest.mark.asyncio
    async def test_operations_before_initialize(self, bank):
        client = _client(bank)
        with pytest.raises(BankSessionStateError):
            await client.fetch_transactions(START, END)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_returns_first_qr_token(self, client, bank):
        qr = await client.authenticate()

        assert qr.token == "QR_1"
        assert client.state is SessionState.AUTHENTICATING
        assert client.session.status is AuthStatus.PENDING
        assert client.session.qr_payload == "QR_1"

    @pytest.mark.asyncio
    async def test_qr_timeout(self, bank):
        bank.tokens = []
        client = _client(bank, qr_timeout=0.05)
        await client.initialize("fakebank", {"user": "me"})

        with pytest.raises(AuthTimeoutError):
            await client.authenticate()
        await client.cleanup()

    @pytest.mark.asyncio
    async def test_failure_before_qr_is_raised(self, bank):
        bank.tokens = []
        bank.login_error = BankAuthenticationError("rejected", bank="fakebank")
        bank.approve.set()
        client = _client(bank)
        await client.initialize("fakebank", {"user": "me"})

        with pytest.raises(BankAuthenticationError, match="rejected"):
            await client.authenticate()
        assert client.state is SessionState.FAILED
        await client.cleanup()

    @pytest.mark.asyncio
    async def test_refreshed_tokens_are_published(self, client, bank):
        bank.tokens = ["QR_1", "QR_2", "QR_3"]
        sessions = []
        client.on_status_change(sessions.append)

        await client.authenticate()
        bank.approve.set()
        await client.ensure_authenticated()

        payloads = [s.qr_payload for s in sessions if s.qr_payload]
        assert payloads == ["QR_1", "QR_2", "QR_3"]
        assert sessions[-1].status is AuthStatus.AUTHENTICATED
        assert client.is_authenticated


class TestLazyAuthentication:
    @pytest.mark.asyncio
    async def test_fetch_logs_in_first(self, client, bank):
        bank.approve.set()

        transactions = await client.fetch_transactions(START, END)

        assert client.state is SessionState.AUTHENTICATED
        assert bank.authenticate_calls == 1
        assert [tx.external_id for tx in transactions] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_fetch_reuses_in_flight_login(self, client, bank):
        await client.authenticate()
        fetch = asyncio.create_task(client.fetch_transactions(START, END))
        await asyncio.sleep(0)
        assert not fetch.done()

        bank.approve.set()
        await fetch

        assert bank.authenticate_calls == 1

    @pytest.mark.asyncio
    async def test_second_fetch_does_not_log_in_again(self, client, bank):
        bank.approve.set()
        await client.fetch_transactions(START, END)
        await client.fetch_transactions(START, END)

        assert bank.authenticate_calls == 1
        assert bank.fetch_calls == 2

    @pytest.mark.asyncio
    async def test_failed_login_is_not_retried(self, client, bank):
        bank.login_error = BankAuthenticationError("nope", bank="fakebank")
        bank.approve.set()

        with pytest.raises(BankAuthenticationError):
            await client.fetch_transactions(START, END)
        with pytest.raises(BankAuthenticationError):
            await client.fetch_transactions(START, END)

        assert bank.authenticate_calls == 1
        assert bank.fetch_calls == 0

    @pytest.mark.asyncio
    async def test_expired_login(self, client, bank):
        sessions = []
        client.on_status_change(sessions.append)
        bank.login_error = AuthSessionExpiredError(bank="fakebank")
        bank.approve.set()

        with pytest.raises(AuthSessionExpiredError):
            await client.fetch_transactions(START, END)

        assert client.state is SessionState.EXPIRED
        assert sessions[-1].status is AuthStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_unexpected_login_error_is_wrapped(self, client, bank):
        bank.login_error = RuntimeError("socket closed")
        bank.approve.set()

        with pytest.raises(BankAuthenticationError, match="socket closed"):
            await client.ensure_authenticated()
        assert client.state is SessionState.FAILED

    @pytest.mark.asyncio
    async def test_invalid_range_fails_before_login(self, client, bank):
        with pytest.raises(InvalidDateRangeError):
            await client.fetch_transactions(END, START)
        assert bank.authenticate_calls == 0

    @pytest.mark.asyncio
    async def test_fetch_error_is_wrapped(self, client, bank):
        bank.approve.set()
        bank.fetch_error = KeyError("transactionDate")

        with pytest.raises(BankTransactionFetchError) as exc_info:
            await client.fetch_transactions(START, END)
        assert exc_info.value.details["reason"] == "KeyError"


class TestCleanup:
    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, bank):
        client = _client(bank)
        await client.initialize("fakebank", {"user": "me"})

        await client.cleanup()
        await client.cleanup()

        assert bank.cleanup_calls == 1

    @pytest.mark.asyncio
    async def test_cleanup_cancels_pending_login(self, bank):
        client = _client(bank)
        await client.initialize("fakebank", {"user": "me"})
        await client.authenticate()

        await client.cleanup()

        assert bank.cleanup_calls == 1
        assert client.session is None

    @pytest.mark.asyncio
    async def test_no_events_after_cleanup(self, bank):
        bus = EventBus()
        client = BankSessionClient(_registry(bank), status_bus=bus)
        sessions = []
        client.on_status_change(sessions.append)
        await client.initialize("fakebank", {"user": "me"})

        await client.cleanup()

        assert bus.subscriber_count == 0
        with pytest.raises(BankSessionStateError):
            await client.authenticate()
        assert sessions == []

    @pytest.mark.asyncio
    async def test_dedup_config_reads_profile_override(self, bank):
        client = _client(bank)
        await client.initialize(
            "fakebank",
            {"user": "me", "deduplication": {"enabled": True, "overlapDays": 4}},
        )

        assert client.dedup_config() == DedupConfig(enabled=True, overlap_days=4)
        await client.cleanup()
