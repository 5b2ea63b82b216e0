"""Actual Budget adapter over an ``actual-http-api`` bridge.

The bridge exposes the budget as REST resources under
``/v1/budgets/{sync_id}``. Requests authenticate with the ``x-api-key``
header; end-to-end encrypted budgets also need
``budget-encryption-password``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any, Callable, Optional

import httpx

from trxsync.domain.banking.value_objects import Transaction
from trxsync.domain.ledger.exceptions import (
    LedgerAccountNotFoundError,
    LedgerConnectionError,
    LedgerImportError,
    LedgerVersionMismatchError,
)
from trxsync.domain.ledger.ports import LedgerPort
from trxsync.domain.ledger.value_objects import ImportResult, LedgerAccount, LedgerConfig
from trxsync.domain.shared.time import today_utc

logger = logging.getLogger(__name__)

# Cleared by reloading the budget, so worth exactly one retry
TRANSIENT_ERROR_PATTERNS = (
    "out-of-sync-migrations",
    "Database is out of sync",
    "file-has-reset",
)

VERSION_MISMATCH_PATTERNS = (
    "out-of-sync-migrations",
    "Database is out of sync",
    "migration",
    "file-has-reset",
    "version mismatch",
    "incompatible version",
    "schema mismatch",
)

LOOKBACK_STEPS_DAYS = (10, 20, 30, 40, 50, 60)
LOOKBACK_FALLBACK_DAYS = 5 * 365


def _matches(text: str, patterns: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


class ActualHttpLedger(LedgerPort):
    """LedgerPort backed by an actual-http-api server."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = today_utc,
    ):
        self._transport = transport
        self._today = today
        self._config: LedgerConfig | None = None
        self._client: httpx.AsyncClient | None = None
        self._known_accounts: dict[str, LedgerAccount] = {}

    # -------------------------------------------------------------------------
    # Connection handling
    # -------------------------------------------------------------------------

    def _require_config(self) -> LedgerConfig:
        if self._config is None:
            msg = "Ledger is not connected. Call connect() first."
            raise LedgerConnectionError(msg)
        return self._config

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            config = self._require_config()
            headers = {
                "Accept": "application/json",
                "x-api-key": config.password.get_secret_value(),
            }
            if config.encryption_key is not None:
                headers["budget-encryption-password"] = (
                    config.encryption_key.get_secret_value()
                )
            self._client = httpx.AsyncClient(
                base_url=f"{config.server_url.rstrip('/')}/v1/budgets/{config.sync_id}",
                timeout=config.timeout,
                transport=self._transport,
                headers=headers,
            )
        return self._client

    async def _invalidate_client(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._known_accounts.clear()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request, retrying once on a transient out-of-sync error."""
        for attempt in range(2):
            client = await self._get_client()
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                msg = f"Failed to connect to Actual Budget: {e}"
                raise LedgerConnectionError(msg, reason=type(e).__name__) from e

            if response.is_success:
                if not response.content:
                    return None
                return response.json().get("data")

            body = response.text or ""
            if attempt == 0 and _matches(body, TRANSIENT_ERROR_PATTERNS):
                logger.warning(
                    "Budget out of sync (%d), reloading and retrying once",
                    response.status_code,
                )
                await self._invalidate_client()
                continue
            self._raise_for_response(response, body)

        msg = "Actual Budget request failed"
        raise LedgerConnectionError(msg)

    @staticmethod
    def _raise_for_response(response: httpx.Response, body: str) -> None:
        if _matches(body, VERSION_MISMATCH_PATTERNS):
            logger.error(
                "Actual Budget server error looks like a version mismatch: %s",
                body[:200],
            )
            raise LedgerVersionMismatchError(reason=body[:200])
        if response.status_code in (401, 403):
            msg = "Actual Budget rejected the credentials (check ACTUAL_PASSWORD)"
            raise LedgerConnectionError(msg, reason=str(response.status_code))
        msg = f"Actual Budget returned {response.status_code}: {body[:200]}"
        raise LedgerConnectionError(msg, reason=str(response.status_code))

    # -------------------------------------------------------------------------
    # LedgerPort
    # -------------------------------------------------------------------------

    async def connect(self, config: LedgerConfig) -> None:
        await self._invalidate_client()
        self._config = config
        accounts = await self.list_accounts()
        logger.info(
            "Connected to Actual Budget %s (%d accounts)",
            config.server_url,
            len(accounts),
        )

    async def list_accounts(self) -> list[LedgerAccount]:
        data = await self._request("GET", "/accounts") or []
        accounts = [LedgerAccount.model_validate(item) for item in data]
        self._known_accounts = {account.id: account for account in accounts}
        return accounts

    async def _validate_account(self, account_id: str) -> LedgerAccount:
        account = self._known_accounts.get(account_id)
        if account is None:
            await self.list_accounts()
            account = self._known_accounts.get(account_id)
        if account is None:
            raise LedgerAccountNotFoundError(account_id)
        return account

    async def get_transactions(
        self,
        account_id: str,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        data = await self._request(
            "GET",
            f"/accounts/{account_id}/transactions",
            params={
                "since_date": start_date.isoformat(),
                "until_date": end_date.isoformat(),
            },
        )
        return [Transaction.from_ledger_payload(item) for item in data or []]

    async def get_smart_start_date(self, account_id: str) -> date | None:
        await self._validate_account(account_id)
        today = self._today()

        for days in (*LOOKBACK_STEPS_DAYS, LOOKBACK_FALLBACK_DAYS):
            transactions = await self.get_transactions(
                account_id,
                today - timedelta(days=days),
                today,
            )
            if transactions:
                latest = max(tx.date for tx in transactions)
                logger.debug(
                    "Latest transaction in %s is %s (looked back %d days)",
                    account_id,
                    latest,
                    days,
                )
                return latest - timedelta(days=1)
        return None

    async def import_transactions(
        self,
        account_id: str,
        transactions: list[Transaction],
        dry_run: bool = False,
        superseded_ids: Sequence[str] = (),
    ) -> ImportResult:
        if not transactions:
            msg = "No transactions to import"
            raise LedgerImportError(msg)
        await self._validate_account(account_id)

        if dry_run:
            logger.info(
                "Dry run: would import %d transactions into %s",
                len(transactions),
                account_id,
            )
            return ImportResult(added=len(transactions), dry_run=True)

        try:
            data = await self._request(
                "POST",
                f"/accounts/{account_id}/transactions/import",
                json={
                    "transactions": [
                        tx.to_ledger_payload(account_id) for tx in transactions
                    ],
                },
            )
        except LedgerVersionMismatchError:
            raise
        except LedgerConnectionError as e:
            msg = f"Actual Budget rejected the import: {e.message}"
            raise LedgerImportError(msg, reason=e.details.get("reason")) from e

        data = data or {}
        added = len(data.get("added") or [])
        errors = [str(error) for error in data.get("errors") or []]
        skipped = max(len(transactions) - added - len(errors), 0)
        errors.extend(await self._delete_superseded(superseded_ids))
        result = ImportResult(added=added, skipped=skipped, errors=errors)
        logger.info(
            "Imported %d transactions into %s (%d skipped, %d errors)",
            result.added,
            account_id,
            result.skipped,
            len(result.errors),
        )
        return result

    async def _delete_superseded(self, superseded_ids: Sequence[str]) -> list[str]:
        """Remove rows replaced by the import that just succeeded."""
        errors = []
        for ledger_id in superseded_ids:
            logger.info("Deleting superseded transaction %s", ledger_id)
            try:
                await self._request("DELETE", f"/transactions/{ledger_id}")
            except LedgerConnectionError as e:
                logger.warning(
                    "Could not delete superseded transaction %s: %s",
                    ledger_id,
                    e,
                )
                errors.append(f"Failed to delete superseded transaction {ledger_id}")
        return errors

    async def shutdown(self) -> None:
        await self._invalidate_client()
        self._config = None
