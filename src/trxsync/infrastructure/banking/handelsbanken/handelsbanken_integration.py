"""Handelsbanken adapter - Anti-Corruption Layer for the bank's JSON API.

Translates between Handelsbanken's BankID login, account and
transaction payloads and the domain model, and converts transport
errors into domain exceptions.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date
from typing import Any, Optional

import httpx

from trxsync.domain.banking.exceptions import (
    AuthSessionExpiredError,
    BankAccountNotFoundError,
    BankAuthenticationError,
    BankConnectionError,
    BankSessionStateError,
    BankTransactionFetchError,
)
from trxsync.domain.banking.ports import AuthListener, BankIntegration
from trxsync.domain.banking.services import PreliminaryReplacePolicy
from trxsync.domain.banking.value_objects import DedupConfig, DedupResult, Transaction
from trxsync.domain.shared.exceptions import ConfigurationError
from trxsync.infrastructure.banking.handelsbanken.api_client import (
    HandelsbankenApiClient,
)
from trxsync.infrastructure.banking.handelsbanken.models import (
    BASE_URL,
    PRELIMINARY_PREFIX,
    AuthMode,
    HandelsbankenAccount,
    LoginStatus,
)
from trxsync.infrastructure.banking.handelsbanken.parsers import (
    parse_accounts,
    parse_transactions,
    select_account,
)

logger = logging.getLogger(__name__)

_PERSONNUMMER = re.compile(r"^(\d{6}|\d{8})-?\d{4}$")

DEFAULT_LOGIN_TIMEOUT_SECONDS = 120.0
DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class HandelsbankenIntegration(BankIntegration):
    """
    Handelsbanken private banking via BankID.

    Required ``bankParams``: ``personnummer`` and ``accountName``.
    Optional: ``authMode`` (``same-device`` or ``other-device``, the
    default) and ``deduplication``.
    """

    name = "handelsbanken"
    required_params = ("personnummer", "accountName")

    def __init__(
        self,
        login_timeout: float = DEFAULT_LOGIN_TIMEOUT_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        api: Optional[HandelsbankenApiClient] = None,
    ):
        self._login_timeout = login_timeout
        self._poll_interval = poll_interval
        self._api = api
        self._personnummer = ""
        self._account_name = ""
        self._auth_mode = AuthMode.OTHER_DEVICE
        self._authenticated = False
        self._account: Optional[HandelsbankenAccount] = None
        self._policy = PreliminaryReplacePolicy(PRELIMINARY_PREFIX)

    def default_dedup_config(self) -> DedupConfig:
        # Preliminary card bookings settle within a week
        return DedupConfig(enabled=True, overlap_days=7)

    def deduplicate_transactions(
        self,
        new_transactions: list[Transaction],
        existing_transactions: list[Transaction],
    ) -> DedupResult:
        return self._policy.apply(new_transactions, existing_transactions)

    async def initialize(self, params: dict[str, Any]) -> None:
        personnummer = str(params["personnummer"]).strip()
        if not _PERSONNUMMER.match(personnummer):
            msg = "personnummer must be YYMMDD-XXXX or YYYYMMDDXXXX"
            raise ConfigurationError(msg, details={"param": "personnummer"})
        self._personnummer = personnummer.replace("-", "")
        self._account_name = str(params["accountName"]).strip()

        mode = params.get("authMode", AuthMode.OTHER_DEVICE.value)
        try:
            self._auth_mode = AuthMode(mode)
        except ValueError as e:
            msg = (
                f"Invalid authMode '{mode}'. Use "
                f"'{AuthMode.SAME_DEVICE.value}' or '{AuthMode.OTHER_DEVICE.value}'"
            )
            raise ConfigurationError(msg, details={"param": "authMode"}) from e

        if self._api is None:
            self._api = HandelsbankenApiClient(base_url=params.get("baseUrl", BASE_URL))

    def _require_api(self) -> HandelsbankenApiClient:
        if self._api is None:
            msg = "Handelsbanken integration is not initialized"
            raise BankSessionStateError(msg)
        return self._api

    async def authenticate(self, listener: AuthListener) -> None:
        api = self._require_api()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._login_timeout

        try:
            start = await api.start_login(self._personnummer, self._auth_mode)
        except httpx.HTTPError as e:
            msg = f"Could not start BankID login: {e}"
            raise BankConnectionError(msg, bank=self.name) from e

        order_ref = start.get("orderRef")
        if not order_ref:
            msg = "Handelsbanken did not return a BankID order reference"
            raise BankAuthenticationError(msg, bank=self.name)

        listener.on_message("Waiting for BankID...")
        tokens = _TokenForwarder(listener, start.get("sessionId"))
        tokens.forward(start)

        try:
            while True:
                if loop.time() >= deadline:
                    await api.cancel_login(order_ref)
                    raise AuthSessionExpiredError(
                        f"BankID login timed out after {self._login_timeout:g}s",
                        bank=self.name,
                    )
                await asyncio.sleep(self._poll_interval)

                try:
                    body = await api.login_status(order_ref)
                except httpx.HTTPError as e:
                    msg = f"BankID status check failed: {e}"
                    raise BankConnectionError(msg, bank=self.name) from e

                status = LoginStatus.parse(body.get("status"))
                if status is LoginStatus.COMPLETE:
                    self._authenticated = True
                    logger.info("BankID login complete")
                    return
                if status is LoginStatus.EXPIRED:
                    raise AuthSessionExpiredError(bank=self.name)
                if status in (LoginStatus.FAILED, LoginStatus.CANCELLED):
                    hint = body.get("hintCode") or status.value.lower()
                    msg = f"BankID login {status.value.lower()} ({hint})"
                    raise BankAuthenticationError(msg, bank=self.name)
                tokens.forward(body)
        except asyncio.CancelledError:
            await api.cancel_login(order_ref)
            raise

    async def fetch_transactions_from_bank(
        self,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        api = self._require_api()
        if not self._authenticated:
            msg = "Handelsbanken session is not authenticated"
            raise BankSessionStateError(msg)

        try:
            account = await self._resolve_account(api)
            data = await api.fetch_transactions(account, start_date, end_date)
        except httpx.HTTPError as e:
            msg = f"Failed to fetch transactions from Handelsbanken: {e}"
            raise BankTransactionFetchError(
                msg,
                bank=self.name,
                reason=type(e).__name__,
            ) from e

        try:
            transactions = parse_transactions(data)
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Could not parse Handelsbanken transactions: {e}"
            raise BankTransactionFetchError(msg, bank=self.name, reason="parse") from e

        logger.info(
            "Parsed %d transactions for account %s",
            len(transactions),
            account.chosen_name,
        )
        return transactions

    async def _resolve_account(self, api: HandelsbankenApiClient) -> HandelsbankenAccount:
        if self._account is not None:
            return self._account
        accounts = parse_accounts(await api.fetch_accounts())
        account = select_account(accounts, self._account_name)
        if account is None:
            raise BankAccountNotFoundError(
                self._account_name,
                [a.chosen_name for a in accounts],
            )
        self._account = account
        return account

    async def cleanup(self) -> None:
        self._authenticated = False
        self._account = None
        if self._api is not None:
            await self._api.close()


class _TokenForwarder:
    """Forwards each new QR / auto-start token exactly once."""

    def __init__(self, listener: AuthListener, session_id: Optional[str]):
        self._listener = listener
        self._session_id = session_id
        self._last_qr: Optional[str] = None
        self._last_app: Optional[str] = None

    def forward(self, body: dict) -> None:
        qr = body.get("qrStartToken") or body.get("qrData")
        if qr and qr != self._last_qr:
            self._last_qr = qr
            self._listener.on_qr_token(qr)
        app = body.get("autoStartToken")
        if app and app != self._last_app:
            self._last_app = app
            self._listener.on_app_token(app, body.get("sessionId") or self._session_id)
