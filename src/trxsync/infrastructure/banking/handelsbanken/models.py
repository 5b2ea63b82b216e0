"""Handelsbanken wire models and endpoint constants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

BASE_URL = "https://secure.handelsbanken.se"

LOGIN_START_PATH = "/logon/se/priv/sv/mbidqr/api/start"
LOGIN_STATUS_PATH = "/logon/se/priv/sv/mbidqr/api/status"
LOGIN_CANCEL_PATH = "/logon/se/priv/sv/mbidqr/api/cancel"

ACCOUNTS_PATH = "/rseda/rykk/bu/accounts/v1/myAccounts"
ALTERNATIVE_ACCOUNTS_PATH = "/se/api/accountsummary/accounts"

TRANSACTIONS_PATH = "/bb/seip/servlet/ipko"
TRANSACTIONS_QUERY = {"appName": "ipko", "appAction": "ShowAccountTransactions"}
ALTERNATIVE_TRANSACTIONS_PATH = "/se/api/accountdetails/transactions"

DEFAULT_SYSTEM = "INLÅ"
DEFAULT_STATUS = "N"

PRELIMINARY_PREFIX = "Prel "


class AuthMode(str, Enum):
    """Where the BankID app runs relative to the browser."""

    SAME_DEVICE = "same-device"
    OTHER_DEVICE = "other-device"


class LoginStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @classmethod
    def parse(cls, value: object) -> LoginStatus:
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.PENDING


@dataclass(frozen=True)
class HandelsbankenAccount:
    """An account as listed by the bank."""

    account_number: str
    chosen_name: str
    account_name: str
    system: str = DEFAULT_SYSTEM
    status: str = DEFAULT_STATUS
    account_holder: str = ""

    @property
    def transactions_key(self) -> str:
        """Account reference expected by the transactions endpoint."""
        return (
            f"{self.account_number}~{self.system}~{self.status}"
            f"~{self.chosen_name}~J"
        )

    def matches(self, name: str) -> bool:
        wanted = name.strip().lower()
        number = wanted.replace(" ", "").replace("-", "")
        return (
            self.chosen_name.lower() == wanted
            or self.account_name.lower() == wanted
            or self.account_number.replace(" ", "").replace("-", "") == number
        )
