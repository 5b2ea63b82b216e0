"""Bank session client: login state machine plus lazy-auth transaction fetch.

States::

    UNINITIALIZED -> INITIALIZED -> AUTHENTICATING -> AUTHENTICATED
                                                   -> FAILED
                                                   -> EXPIRED

While AUTHENTICATING the integration may report fresh QR or app tokens
any number of times; each one is published as a ``pending`` session
without changing state. At most one login attempt runs per client.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from trxsync.application.events import EventBus, Unsubscribe
from trxsync.domain.banking.exceptions import (
    AuthSessionExpiredError,
    AuthTimeoutError,
    BankAuthenticationError,
    BankSessionStateError,
    BankTransactionFetchError,
    InvalidDateRangeError,
    MissingBankParamsError,
)
from trxsync.domain.banking.value_objects import (
    AuthSession,
    AuthStatus,
    DedupConfig,
    DedupResult,
    QRCodeData,
    Transaction,
)
from trxsync.domain.shared.exceptions import DomainException

if TYPE_CHECKING:
    from trxsync.domain.banking.ports import BankIntegration
    from trxsync.infrastructure.banking.registry import BankRegistry

logger = logging.getLogger(__name__)

DEFAULT_QR_TIMEOUT_SECONDS = 30.0

StatusCallback = Callable[[AuthSession], None]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"
    EXPIRED = "expired"


class _SessionAuthListener:
    """Forwards integration callbacks into the owning client."""

    def __init__(self, client: BankSessionClient):
        self._client = client

    def on_qr_token(self, token: str) -> None:
        self._client._handle_qr_token(token)

    def on_app_token(self, token: str, session_id: Optional[str] = None) -> None:
        self._client._handle_app_token(token, session_id)

    def on_message(self, message: str) -> None:
        self._client._publish(AuthStatus.PENDING, message=message)


class BankSessionClient:
    """Drive one bank integration through login, fetch and cleanup."""

    def __init__(
        self,
        registry: BankRegistry,
        qr_timeout: float = DEFAULT_QR_TIMEOUT_SECONDS,
        status_bus: Optional[EventBus[AuthSession]] = None,
    ):
        self._registry = registry
        self._qr_timeout = qr_timeout
        self._bus: EventBus[AuthSession] = status_bus or EventBus()

        self._state = SessionState.UNINITIALIZED
        self._bank_name: Optional[str] = None
        self._params: dict[str, Any] = {}
        self._integration: Optional[BankIntegration] = None
        self._session: Optional[AuthSession] = None

        self._auth_task: Optional[asyncio.Task[None]] = None
        self._qr_future: Optional[asyncio.Future[QRCodeData]] = None
        self._terminal_error: Optional[BankAuthenticationError] = None
        self._cleaned_up = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[AuthSession]:
        """Latest published session snapshot."""
        return self._session

    @property
    def bank_name(self) -> Optional[str]:
        return self._bank_name

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, bank_name: str, params: dict[str, Any]) -> None:
        """Look up the bank and hand it the profile parameters.

        Raises
        ------
        BankNotFoundError
            If ``bank_name`` is not registered
        MissingBankParamsError
            If a required parameter is absent
        BankSessionStateError
            If the client was already initialized
        """
        if self._state is not SessionState.UNINITIALIZED:
            msg = f"Bank session already initialized (state: {self._state.value})"
            raise BankSessionStateError(msg)

        integration = self._registry.create(bank_name)
        missing = integration.missing_params(params)
        if missing:
            raise MissingBankParamsError(bank_name, missing)

        await integration.initialize(params)

        self._bank_name = bank_name
        self._params = dict(params)
        self._integration = integration
        self._state = SessionState.INITIALIZED
        logger.info("Initialized bank session for %s", bank_name)

    def on_status_change(self, callback: StatusCallback) -> Unsubscribe:
        """Register an observer called synchronously on every status event."""
        return self._bus.subscribe(callback)

    async def authenticate(self) -> QRCodeData:
        """Start the login if needed and wait for the first scannable token.

        Raises
        ------
        AuthTimeoutError
            If no QR token appears within the wait window
        BankAuthenticationError
            If the login fails or expires before a token appears
        """
        integration = self._require_integration()
        if self._qr_future is not None and self._qr_future.done():
            return self._qr_future.result()
        self._raise_terminal_error()

        self._start_authentication(integration)
        assert self._qr_future is not None
        assert self._auth_task is not None

        done, _ = await asyncio.wait(
            {self._qr_future, self._auth_task},
            timeout=self._qr_timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if self._qr_future in done or self._qr_future.done():
            return self._qr_future.result()
        if self._auth_task in done:
            # Raises the terminal error if the login failed
            self._auth_task.result()
            msg = "Bank authenticated without presenting a QR code"
            raise BankSessionStateError(msg)

        logger.warning(
            "No QR token from %s within %.0fs",
            self._bank_name,
            self._qr_timeout,
        )
        raise AuthTimeoutError(self._qr_timeout)

    async def ensure_authenticated(self) -> None:
        """Drive the state machine to AUTHENTICATED, reusing an in-flight login.

        Raises
        ------
        BankAuthenticationError
            If the login fails
        AuthSessionExpiredError
            If the login window runs out
        """
        integration = self._require_integration()
        if self._state is SessionState.AUTHENTICATED:
            return
        self._raise_terminal_error()

        self._start_authentication(integration)
        assert self._auth_task is not None
        await self._auth_task

    async def fetch_transactions(
        self,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        """Fetch transactions in ``[start_date, end_date]``, logging in first if needed.

        Raises
        ------
        InvalidDateRangeError
            If ``start_date`` is after ``end_date``
        BankAuthenticationError
            If the implicit login fails
        BankTransactionFetchError
            If the bank request or parsing fails; no partial results
        """
        if start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        await self.ensure_authenticated()
        integration = self._require_integration()

        try:
            transactions = await integration.fetch_transactions_from_bank(
                start_date,
                end_date,
            )
        except DomainException:
            raise
        except Exception as e:
            logger.exception("Fetching transactions from %s failed", self._bank_name)
            msg = f"Failed to fetch transactions from {self._bank_name}: {e}"
            raise BankTransactionFetchError(
                msg,
                bank=self._bank_name,
                reason=type(e).__name__,
            ) from e

        logger.info(
            "Fetched %d transactions from %s (%s to %s)",
            len(transactions),
            self._bank_name,
            start_date,
            end_date,
        )
        return sorted(transactions, key=lambda tx: tx.date)

    def dedup_config(self) -> DedupConfig:
        """Profile override of the bank's default dedup settings."""
        integration = self._require_integration()
        return DedupConfig.from_params(
            self._params,
            integration.default_dedup_config(),
        )

    def deduplicate_transactions(
        self,
        new_transactions: list[Transaction],
        existing_transactions: list[Transaction],
    ) -> DedupResult:
        """Apply the bank's matching policy."""
        integration = self._require_integration()
        return integration.deduplicate_transactions(
            new_transactions,
            existing_transactions,
        )

    async def cleanup(self) -> None:
        """Cancel any login in flight and release the integration. Idempotent."""
        if self._cleaned_up:
            return
        self._cleaned_up = True

        try:
            task = self._auth_task
            if task is not None:
                if not task.done():
                    task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    # Already delivered to the in-flight caller
                    logger.debug("Login task ended with %s during cleanup", e)
            if self._integration is not None:
                await self._integration.cleanup()
        finally:
            self._bus.clear()
            self._session = None
            self._qr_future = None
            logger.debug("Bank session for %s cleaned up", self._bank_name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_integration(self) -> BankIntegration:
        if self._integration is None:
            msg = "Bank session is not initialized"
            raise BankSessionStateError(msg)
        if self._cleaned_up:
            msg = "Bank session has been cleaned up"
            raise BankSessionStateError(msg)
        return self._integration

    def _raise_terminal_error(self) -> None:
        if self._terminal_error is not None:
            raise self._terminal_error

    def _start_authentication(self, integration: BankIntegration) -> None:
        if self._auth_task is not None:
            return
        self._state = SessionState.AUTHENTICATING
        self._qr_future = asyncio.get_running_loop().create_future()
        self._publish(AuthStatus.PENDING, message="Starting authentication...")
        self._auth_task = asyncio.create_task(
            self._run_authentication(integration),
            name=f"bank-login-{self._bank_name}",
        )

    async def _run_authentication(self, integration: BankIntegration) -> None:
        try:
            await integration.authenticate(_SessionAuthListener(self))
        except AuthSessionExpiredError as e:
            self._fail(SessionState.EXPIRED, AuthStatus.EXPIRED, e)
            raise
        except BankAuthenticationError as e:
            self._fail(SessionState.FAILED, AuthStatus.FAILED, e)
            raise
        except asyncio.CancelledError:
            raise
        except DomainException as e:
            error = BankAuthenticationError(e.message, bank=self._bank_name)
            self._fail(SessionState.FAILED, AuthStatus.FAILED, error)
            raise error from e
        except Exception as e:
            logger.exception("Login handshake with %s crashed", self._bank_name)
            error = BankAuthenticationError(
                f"Bank authentication failed: {e}",
                bank=self._bank_name,
            )
            self._fail(SessionState.FAILED, AuthStatus.FAILED, error)
            raise error from e

        self._state = SessionState.AUTHENTICATED
        logger.info("Authenticated with %s", self._bank_name)
        self._publish(AuthStatus.AUTHENTICATED, message="Authenticated")

    def _fail(
        self,
        state: SessionState,
        status: AuthStatus,
        error: BankAuthenticationError,
    ) -> None:
        self._state = state
        self._terminal_error = error
        logger.warning("Login with %s ended %s: %s", self._bank_name, state.value, error)
        self._publish(status, message=error.message)

    def _handle_qr_token(self, token: str) -> None:
        if self._state is not SessionState.AUTHENTICATING:
            return
        self._publish(
            AuthStatus.PENDING,
            qr_payload=token,
            message="QR code available - scan with BankID app",
        )
        if self._qr_future is not None and not self._qr_future.done():
            self._qr_future.set_result(QRCodeData(token=token))

    def _handle_app_token(self, token: str, session_id: Optional[str]) -> None:
        if self._state is not SessionState.AUTHENTICATING:
            return
        self._publish(
            AuthStatus.PENDING,
            app_token=token,
            session_id=session_id,
            message="BankID app-to-app token available",
        )

    def _publish(self, status: AuthStatus, **fields: Any) -> None:
        if self._cleaned_up:
            return
        self._session = AuthSession(status=status, **fields)
        self._bus.publish(self._session)
