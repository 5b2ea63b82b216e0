"""HTTP client for Handelsbanken's private-banking JSON endpoints."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import httpx

from trxsync.infrastructure.banking.handelsbanken.models import (
    ACCOUNTS_PATH,
    ALTERNATIVE_ACCOUNTS_PATH,
    ALTERNATIVE_TRANSACTIONS_PATH,
    BASE_URL,
    LOGIN_CANCEL_PATH,
    LOGIN_START_PATH,
    LOGIN_STATUS_PATH,
    TRANSACTIONS_PATH,
    TRANSACTIONS_QUERY,
    AuthMode,
    HandelsbankenAccount,
)

logger = logging.getLogger(__name__)

# Statuses on which the primary endpoint is retried on the alternative one
_FALLBACK_STATUSES = {401, 403, 404}


class HandelsbankenApiClient:
    """Thin wrapper around one cookie-carrying ``httpx.AsyncClient``.

    The login cookies set by the BankID endpoints authorize the account
    and transaction requests, so a single client instance must be used
    for the whole session.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
                headers={
                    "Accept": "application/json",
                    "X-Requested-With": "XMLHttpRequest",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # BankID login
    # -------------------------------------------------------------------------

    async def start_login(self, personnummer: str, auth_mode: AuthMode) -> dict:
        client = await self._get_client()
        response = await client.post(
            LOGIN_START_PATH,
            json={"personnummer": personnummer, "authMode": auth_mode.value},
        )
        response.raise_for_status()
        return response.json()

    async def login_status(self, order_ref: str) -> dict:
        client = await self._get_client()
        response = await client.get(LOGIN_STATUS_PATH, params={"orderRef": order_ref})
        response.raise_for_status()
        return response.json()

    async def cancel_login(self, order_ref: str) -> None:
        client = await self._get_client()
        try:
            await client.post(LOGIN_CANCEL_PATH, json={"orderRef": order_ref})
        except httpx.HTTPError as e:
            logger.debug("Cancelling login %s failed: %s", order_ref, e)

    # -------------------------------------------------------------------------
    # Accounts and transactions
    # -------------------------------------------------------------------------

    async def fetch_accounts(self) -> dict[str, Any]:
        client = await self._get_client()
        response = await client.get(ACCOUNTS_PATH)
        if response.status_code in _FALLBACK_STATUSES:
            logger.info(
                "Accounts endpoint returned %d, trying alternative",
                response.status_code,
            )
            response = await client.get(
                ALTERNATIVE_ACCOUNTS_PATH,
                params={"sort": "+accountAlias", "categoryFilter": "ALL_PERSONAL"},
            )
        response.raise_for_status()
        return response.json()

    async def fetch_transactions(
        self,
        account: HandelsbankenAccount,
        start_date: date,
        end_date: date,
    ) -> dict[str, Any]:
        client = await self._get_client()
        response = await client.post(
            TRANSACTIONS_PATH,
            params=TRANSACTIONS_QUERY,
            json={
                "account": account.transactions_key,
                "dateFrom": start_date.isoformat(),
                "dateTo": end_date.isoformat(),
                "transactionType": "A",
                "amountFrom": "",
                "amountTo": "",
            },
        )
        if response.status_code in _FALLBACK_STATUSES:
            logger.info(
                "Transactions endpoint returned %d, trying alternative",
                response.status_code,
            )
            response = await client.get(
                ALTERNATIVE_TRANSACTIONS_PATH,
                params={
                    "accountNumber": account.account_number,
                    "fromDate": start_date.isoformat(),
                    "toDate": end_date.isoformat(),
                },
            )
        response.raise_for_status()
        return response.json()
