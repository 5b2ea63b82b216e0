"""Bank integration port interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Protocol

from trxsync.domain.banking.services.deduplication_policy import ExternalIdPolicy
from trxsync.domain.banking.value_objects import DedupConfig, DedupResult, Transaction


class AuthListener(Protocol):
    """Receives token material while a login handshake is pending."""

    def on_qr_token(self, token: str) -> None: ...

    def on_app_token(self, token: str, session_id: str | None = None) -> None: ...

    def on_message(self, message: str) -> None: ...


class BankIntegration(ABC):
    """
    Interface for a bank-specific client.

    Each supported bank implements this once and is registered by name.
    The session client drives it through initialize, authenticate,
    fetch and cleanup, exactly once each per import run.
    """

    #: Registry key, e.g. ``"handelsbanken"``
    name: str = ""

    #: Keys that must be present in the profile's ``bankParams``
    required_params: tuple[str, ...] = ()

    def default_dedup_config(self) -> DedupConfig:
        """
        Deduplication settings used when the profile does not override them.

        Returns
        -------
        Disabled dedup with one overlap day unless the bank overrides it
        """
        return DedupConfig()

    def missing_params(self, params: dict[str, Any]) -> list[str]:
        """Return the required parameter names absent from ``params``."""
        return [
            key
            for key in self.required_params
            if params.get(key) in (None, "")
        ]

    @abstractmethod
    async def initialize(self, params: dict[str, Any]) -> None:
        """
        Prepare the integration with profile parameters.

        Parameters
        ----------
        params
            The profile's ``bankParams``; required keys are already checked

        Raises
        ------
        ConfigurationError
            If a parameter has an invalid value
        """

    @abstractmethod
    async def authenticate(self, listener: AuthListener) -> None:
        """
        Run the login handshake until the bank approves it.

        Token material is forwarded to ``listener`` as it appears. The
        coroutine returns once the session is authenticated.

        Raises
        ------
        BankAuthenticationError
            If the bank rejects or the user cancels the login
        AuthSessionExpiredError
            If the login window runs out
        """

    @abstractmethod
    async def fetch_transactions_from_bank(
        self,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        """
        Fetch normalized transactions for an authenticated session.

        Parameters
        ----------
        start_date
            First day of the range (inclusive)
        end_date
            Last day of the range (inclusive)

        Returns
        -------
        Transactions in domain format

        Raises
        ------
        BankTransactionFetchError
            If the request or parsing fails
        """

    def deduplicate_transactions(
        self,
        new_transactions: list[Transaction],
        existing_transactions: list[Transaction],
    ) -> DedupResult:
        """
        Bank-specific matching of new against existing transactions.

        The default matches on ``external_id`` and drops duplicates.
        Integrations with provisional bookings override this.
        """
        return ExternalIdPolicy().apply(new_transactions, existing_transactions)

    @abstractmethod
    async def cleanup(self) -> None:
        """Release the session and any open connections."""
