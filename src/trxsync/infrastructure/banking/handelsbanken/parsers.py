"""Parsers for Handelsbanken API responses."""

from __future__ import annotations

import hashlib
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import unquote

from trxsync.domain.banking.value_objects import Transaction
from trxsync.infrastructure.banking.handelsbanken.models import (
    DEFAULT_STATUS,
    DEFAULT_SYSTEM,
    HandelsbankenAccount,
)

logger = logging.getLogger(__name__)

_ATHENA_ACCOUNT = re.compile(r"account=([^&]+)")
_KONTO = re.compile(r"Konto=([^&]+)")
_SPACES = re.compile(r"\s")


def parse_amount_to_cents(value: Any) -> int:
    """Convert a bank amount to integer cents.

    Accepts numbers and strings in Swedish (``"-1 422,30"``) or plain
    (``"1422.30"``) notation. Rounds half away from zero.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = _SPACES.sub("", str(value)).replace("−", "-")
        if "," in text and "." in text:
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", ".")
        try:
            amount = Decimal(text)
        except InvalidOperation as e:
            msg = f"Unparseable amount: {value!r}"
            raise ValueError(msg) from e
    cents = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _system_and_status(links: dict[str, Any]) -> tuple[str, str]:
    athena = (links.get("athena_transactions") or {}).get("href")
    if athena:
        match = _ATHENA_ACCOUNT.search(athena)
        if match:
            parts = unquote(match.group(1)).split("~")
            if len(parts) >= 3:
                return parts[1], parts[2]

    transactions = (links.get("transactions") or {}).get("href")
    if transactions:
        match = _KONTO.search(transactions)
        if match:
            parts = unquote(match.group(1), encoding="latin-1").split("~")
            if len(parts) >= 3:
                return parts[1], parts[2]

    return DEFAULT_SYSTEM, DEFAULT_STATUS


def parse_accounts(data: dict[str, Any]) -> list[HandelsbankenAccount]:
    """Parse either the ``agreements`` or the ``accounts`` response format."""
    agreements = data.get("agreements")
    if agreements:
        accounts = []
        for agreement in agreements:
            identifier = agreement.get("identifier") or {}
            number = identifier.get("valueRaw")
            name = agreement.get("name")
            if not number or not name:
                continue
            system, status = _system_and_status(agreement.get("_links") or {})
            accounts.append(
                HandelsbankenAccount(
                    account_number=str(number),
                    chosen_name=name,
                    account_name=name,
                    system=system,
                    status=status,
                ),
            )
        return accounts

    alternative = data.get("accounts")
    if isinstance(alternative, list):
        accounts = []
        for item in alternative:
            number = item.get("accountNumber")
            if not number:
                continue
            alias = item.get("accountAlias")
            name = item.get("accountName")
            accounts.append(
                HandelsbankenAccount(
                    account_number=str(number),
                    chosen_name=alias or name or str(number),
                    account_name=name or alias or str(number),
                    account_holder=item.get("ownerName") or "",
                ),
            )
        return accounts

    return []


def _fallback_id(tx: dict[str, Any], booked: str) -> str:
    digest = hashlib.sha1(
        "|".join(
            str(tx.get(key, ""))
            for key in ("amount", "transactionAmount", "message", "description")
        ).encode("utf-8"),
    ).hexdigest()[:10]
    return f"{booked}-{digest}"


def parse_transactions(data: dict[str, Any]) -> list[Transaction]:
    """Parse either the ``inlaAccountTransactions`` or ``transactions`` format."""
    standard = data.get("inlaAccountTransactions")
    if standard is not None:
        return [
            Transaction(
                date=tx["transactionDate"],
                amount=parse_amount_to_cents(tx.get("transactionAmount")),
                payee_name=tx.get("transactionText") or None,
                imported_payee=tx.get("transactionText") or None,
                external_id=(
                    f"{tx['transactionDate']}-{tx.get('serialNumber', '')}"
                    f"-{tx.get('eventTime', '')}"
                ),
            )
            for tx in standard
        ]

    alternative = data.get("transactions")
    if isinstance(alternative, list):
        parsed = []
        for tx in alternative:
            booked: Optional[str] = (
                tx.get("bookingDate") or tx.get("transactionDate") or tx.get("dateTime")
            )
            if not booked:
                logger.warning("Skipping transaction without date: %s", tx)
                continue
            payee = tx.get("message") or tx.get("description") or tx.get("transactionText")
            reference = tx.get("id") or tx.get("reference")
            parsed.append(
                Transaction(
                    date=booked,
                    amount=parse_amount_to_cents(
                        tx.get("amount") or tx.get("transactionAmount") or "0",
                    ),
                    payee_name=payee or None,
                    imported_payee=payee or None,
                    notes=tx.get("details") or tx.get("text") or None,
                    external_id=(
                        f"{str(booked)[:10]}-{reference}"
                        if reference
                        else _fallback_id(tx, str(booked)[:10])
                    ),
                ),
            )
        return parsed

    return []


def select_account(
    accounts: list[HandelsbankenAccount],
    account_name: str,
) -> Optional[HandelsbankenAccount]:
    for account in accounts:
        if account.matches(account_name):
            return account
    return None
