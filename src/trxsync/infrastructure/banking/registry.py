"""Name-keyed table of supported bank integrations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from trxsync.domain.banking.exceptions import BankNotFoundError

if TYPE_CHECKING:
    from trxsync.domain.banking.ports import BankIntegration
    from trxsync_config import Settings

logger = logging.getLogger(__name__)

IntegrationFactory = Callable[[], "BankIntegration"]


class BankRegistry:
    """Maps bank names to integration factories.

    Each ``create`` call returns a fresh integration, so concurrent
    import runs never share session state.
    """

    def __init__(self) -> None:
        self._factories: dict[str, IntegrationFactory] = {}

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def register(self, name: str, factory: IntegrationFactory) -> None:
        key = self._key(name)
        if key in self._factories:
            logger.debug("Replacing bank integration %s", key)
        self._factories[key] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._factories

    def get(self, name: str) -> IntegrationFactory:
        """Return the factory for ``name``.

        Raises
        ------
        BankNotFoundError
            If the bank is not registered
        """
        factory = self._factories.get(self._key(name))
        if factory is None:
            raise BankNotFoundError(name, self.names())
        return factory

    def create(self, name: str) -> BankIntegration:
        return self.get(name)()

    @classmethod
    def default(cls, settings: Optional[Settings] = None) -> BankRegistry:
        """Registry with every built-in bank, tuned from settings."""
        from trxsync.infrastructure.banking.handelsbanken import (
            HandelsbankenIntegration,
        )
        from trxsync.infrastructure.banking.mockbank import MockBankIntegration

        login_timeout = settings.auth_login_timeout if settings else 120.0
        poll_interval = settings.auth_poll_interval if settings else 2.0

        registry = cls()
        registry.register(MockBankIntegration.name, MockBankIntegration)
        registry.register(
            HandelsbankenIntegration.name,
            lambda: HandelsbankenIntegration(
                login_timeout=login_timeout,
                poll_interval=poll_interval,
            ),
        )
        return registry
