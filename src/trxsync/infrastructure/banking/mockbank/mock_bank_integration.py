"""Mock bank integration.

Simulates a BankID QR handshake and serves generated transactions.
Behaviour is controlled through the profile's ``bankParams``:

``qrRefreshes``
    Number of QR tokens shown before the login completes (default 1).
``appToken``
    Also emit an app-to-app token (default False).
``delaySeconds``
    Pause between handshake steps (default 0).
``outcome``
    ``"authenticated"`` (default), ``"failed"`` or ``"expired"``.
``transactionCount``
    Number of daily transactions ending today (default 10).
``deduplication``
    Optional ``{"enabled": bool, "overlapDays": int}`` override.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Callable

from trxsync.domain.banking.exceptions import (
    AuthSessionExpiredError,
    BankAuthenticationError,
    BankSessionStateError,
)
from trxsync.domain.banking.ports import AuthListener, BankIntegration
from trxsync.domain.banking.value_objects import Transaction
from trxsync.domain.shared.exceptions import ConfigurationError
from trxsync.domain.shared.time import today_utc

logger = logging.getLogger(__name__)

MOCK_PAYEES = (
    "ICA Supermarket",
    "Systembolaget",
    "Spotify",
    "Netflix",
    "Salary",
    "Restaurant",
    "Gas Station",
    "Pharmacy",
)
MOCK_AMOUNTS = (-24550, -18900, -11900, -14900, 2500000, -42000, -61230, -8950)

OUTCOMES = ("authenticated", "failed", "expired")


class MockBankIntegration(BankIntegration):
    name = "mockbank"
    required_params = ()

    def __init__(self, today: Callable[[], date] = today_utc):
        self._today = today
        self._qr_refreshes = 1
        self._app_token = False
        self._delay = 0.0
        self._outcome = "authenticated"
        self._transaction_count = 10
        self._authenticated = False
        self.cleanup_calls = 0

    async def initialize(self, params: dict[str, Any]) -> None:
        try:
            self._qr_refreshes = int(params.get("qrRefreshes", 1))
            self._delay = float(params.get("delaySeconds", 0.0))
            self._transaction_count = int(params.get("transactionCount", 10))
        except (TypeError, ValueError) as e:
            msg = f"Invalid mockbank parameter: {e}"
            raise ConfigurationError(msg) from e
        self._app_token = bool(params.get("appToken", False))
        self._outcome = str(params.get("outcome", "authenticated")).lower()
        if self._outcome not in OUTCOMES:
            msg = f"mockbank outcome must be one of {', '.join(OUTCOMES)}"
            raise ConfigurationError(msg)

    async def authenticate(self, listener: AuthListener) -> None:
        for refresh in range(self._qr_refreshes):
            await asyncio.sleep(self._delay)
            listener.on_qr_token(f"MOCK_QR_TOKEN_{refresh + 1}")
        if self._app_token:
            listener.on_app_token("MOCK_AUTOSTART_TOKEN", "mock-session")
        await asyncio.sleep(self._delay)

        if self._outcome == "failed":
            msg = "Mock bank rejected the login"
            raise BankAuthenticationError(msg, bank=self.name)
        if self._outcome == "expired":
            raise AuthSessionExpiredError(bank=self.name)
        self._authenticated = True
        logger.debug("Mock bank login complete")

    async def fetch_transactions_from_bank(
        self,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        if not self._authenticated:
            msg = "Mock bank session is not authenticated"
            raise BankSessionStateError(msg)
        await asyncio.sleep(self._delay)
        return [
            tx
            for tx in self.generate_transactions()
            if start_date <= tx.date <= end_date
        ]

    def generate_transactions(self) -> list[Transaction]:
        today = self._today()
        transactions = []
        for index in range(self._transaction_count):
            booked = today - timedelta(days=index)
            payee = MOCK_PAYEES[index % len(MOCK_PAYEES)]
            transactions.append(
                Transaction(
                    date=booked,
                    amount=MOCK_AMOUNTS[index % len(MOCK_AMOUNTS)],
                    payee_name=payee,
                    imported_payee=payee,
                    external_id=f"MOCK_{booked.isoformat()}_{index}",
                    notes=f"Mock transaction {index + 1}",
                ),
            )
        return transactions

    async def cleanup(self) -> None:
        self.cleanup_calls += 1
        self._authenticated = False
