"""Import transactions for one profile: bank -> reconcile -> ledger."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import TYPE_CHECKING, AsyncGenerator, Callable, Optional

from trxsync.application.dtos import (
    AuthStatusEvent,
    CloseEvent,
    ConnectedEvent,
    ErrorEvent,
    ImportEvent,
    ImportOutcome,
    ProgressEvent,
    QRCodeEvent,
    SuccessEvent,
)
from trxsync.application.events import EventBus
from trxsync.application.services import BankSessionClient, TransactionReconciler
from trxsync.domain.banking.value_objects import AuthSession
from trxsync.domain.ledger.exceptions import NoStartingTransactionError
from trxsync.domain.ledger.value_objects import ImportResult
from trxsync.domain.shared.exceptions import DomainException, ErrorCode
from trxsync.domain.shared.time import today_utc

if TYPE_CHECKING:
    from trxsync.domain.ledger.ports import LedgerPort
    from trxsync.infrastructure.configuration import ProfileRepository
    from trxsync_config import Settings

logger = logging.getLogger(__name__)

# Keeps runs alive after their stream consumer went away
_background_tasks: set[asyncio.Task] = set()

UNEXPECTED_ERROR_MESSAGE = "Import failed unexpectedly"

LedgerFactory = Callable[[], "LedgerPort"]
ClientFactory = Callable[[], BankSessionClient]


class ImportCommand:
    """Run one import: a strictly linear sequence with no retries.

    Every step is announced on the run's event bus. A run always ends
    with exactly one ``success`` or ``error`` event followed by one
    ``close`` event, and the bank client and ledger are always released
    before that terminal event is published.
    """

    def __init__(  # NOQA: PLR0913
        self,
        profiles: ProfileRepository,
        ledger_factory: LedgerFactory,
        client_factory: ClientFactory,
        default_dry_run: bool = False,
        today: Callable[[], date] = today_utc,
    ):
        self._profiles = profiles
        self._ledger_factory = ledger_factory
        self._client_factory = client_factory
        self._default_dry_run = default_dry_run
        self._today = today

    @classmethod
    def from_settings(cls, settings: Settings) -> ImportCommand:
        from trxsync.infrastructure.banking import BankRegistry
        from trxsync.infrastructure.configuration import ProfileRepository
        from trxsync.infrastructure.ledger import create_ledger

        registry = BankRegistry.default(settings)
        return cls(
            profiles=ProfileRepository.from_settings(settings, registry),
            ledger_factory=lambda: create_ledger(settings),
            client_factory=lambda: BankSessionClient(
                registry,
                qr_timeout=settings.auth_qr_timeout,
            ),
            default_dry_run=bool(settings.dry_run),
        )

    async def execute(
        self,
        profile_name: str,
        dry_run: Optional[bool] = None,
        bus: Optional[EventBus[ImportEvent]] = None,
    ) -> ImportOutcome:
        bus = bus or EventBus()
        dry_run = self._default_dry_run if dry_run is None else dry_run
        run = _ImportRun(profile_name, dry_run, bus)

        bus.publish(ConnectedEvent())
        client: Optional[BankSessionClient] = None
        ledger: Optional[LedgerPort] = None
        try:
            run.progress("Loading configuration...")
            config = self._profiles.build_config(profile_name)
            profile = config.profile
            account_id = profile.actual_account_id
            run.progress(f"Configuration loaded for profile: {profile_name}")

            run.progress("Connecting to Actual Budget...")
            ledger = self._ledger_factory()
            await ledger.connect(config.ledger)
            run.progress("Connected to Actual Budget")

            run.progress("Determining date range...")
            start_date = await ledger.get_smart_start_date(account_id)
            if start_date is None:
                raise NoStartingTransactionError(account_id)
            end_date = self._today()
            start_date = min(start_date, end_date)
            run.start_date, run.end_date = start_date, end_date
            run.progress(f"Date range: {start_date} to {end_date}")

            run.progress(f"Initializing {profile.bank} integration...")
            client = self._client_factory()
            await client.initialize(profile.bank, profile.bank_params)
            client.on_status_change(run.relay_auth_status)
            run.progress("Bank integration initialized")

            run.progress("Fetching transactions from bank...")
            fetched = await client.fetch_transactions(start_date, end_date)
            run.fetched = len(fetched)
            run.progress(f"Fetched {len(fetched)} transactions")

            reconciler = TransactionReconciler(
                client.dedup_config(),
                client.deduplicate_transactions,
            )
            if reconciler.config.enabled:
                run.progress(
                    "Checking for duplicates "
                    f"({reconciler.config.overlap_days} days overlap)...",
                )
            dedup = await reconciler.reconcile_with_ledger(
                fetched,
                ledger,
                account_id,
                start_date,
                end_date,
            )
            run.replaced = dedup.replaced_count
            run.dedup_skipped = dedup.skipped_count
            run.errors.extend(dedup.errors)
            for error in dedup.errors:
                run.progress(f"Warning: {error}")
            if dedup.replaced_count or dedup.skipped_count:
                run.progress(
                    f"Deduplication: {dedup.replaced_count} replaced, "
                    f"{dedup.skipped_count} skipped",
                )

            if not dedup.transactions:
                run.progress("No new transactions to import")
                result = ImportResult(dry_run=dry_run)
            else:
                run.progress(
                    "Importing transactions (dry-run)..."
                    if dry_run
                    else "Importing transactions...",
                )
                result = await ledger.import_transactions(
                    account_id,
                    dedup.transactions,
                    dry_run=dry_run,
                    superseded_ids=dedup.superseded_ids,
                )
            run.errors.extend(result.errors)
            outcome = run.succeeded(result)
        except DomainException as e:
            logger.warning("Import for profile %s failed: %s", profile_name, e)
            outcome = run.failed(e.message, e.code.value)
        except Exception:
            logger.exception("Import for profile %s failed unexpectedly", profile_name)
            outcome = run.failed(UNEXPECTED_ERROR_MESSAGE, ErrorCode.INTERNAL_ERROR.value)
        finally:
            await self._cleanup(client, ledger)

        if outcome.success:
            bus.publish(
                SuccessEvent(
                    count=outcome.added,
                    skipped=outcome.skipped,
                    message=run.success_message(outcome),
                ),
            )
        else:
            bus.publish(
                ErrorEvent(
                    message=outcome.error_message or UNEXPECTED_ERROR_MESSAGE,
                    code=outcome.error_code,
                ),
            )
        bus.publish(CloseEvent(success=outcome.success, error=outcome.error_message))
        return outcome

    async def execute_streaming(
        self,
        profile_name: str,
        dry_run: Optional[bool] = None,
    ) -> AsyncGenerator[ImportEvent | ImportOutcome, None]:
        """Yield the run's events up to ``close``, then the outcome.

        The run executes in its own task. A consumer that stops iterating
        does not cancel it; the import continues server-side.
        """
        queue: asyncio.Queue[Optional[ImportEvent]] = asyncio.Queue()
        bus: EventBus[ImportEvent] = EventBus()
        bus.subscribe(queue.put_nowait)

        task = asyncio.create_task(
            self.execute(profile_name, dry_run=dry_run, bus=bus),
            name=f"import-{profile_name}",
        )
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        # Sentinel after the close event, or instead of it if the task died
        task.add_done_callback(lambda _: queue.put_nowait(None))

        while True:
            event = await queue.get()
            if event is None:
                break
            yield event

        yield task.result()

    async def _cleanup(
        self,
        client: Optional[BankSessionClient],
        ledger: Optional[LedgerPort],
    ) -> None:
        if client is not None:
            try:
                await client.cleanup()
            except Exception as e:
                logger.warning("Bank client cleanup failed: %s", e, exc_info=True)
        if ledger is not None:
            try:
                await ledger.shutdown()
            except Exception as e:
                logger.warning("Ledger shutdown failed: %s", e, exc_info=True)


class _ImportRun:
    """Mutable bookkeeping for one run, folded into an ImportOutcome."""

    def __init__(self, profile: str, dry_run: bool, bus: EventBus[ImportEvent]):
        self.profile = profile
        self.dry_run = dry_run
        self.bus = bus
        self.start_date: Optional[date] = None
        self.end_date: Optional[date] = None
        self.fetched = 0
        self.replaced = 0
        self.dedup_skipped = 0
        self.errors: list[str] = []

    def progress(self, message: str) -> None:
        logger.info("[%s] %s", self.profile, message)
        self.bus.publish(ProgressEvent(message))

    def relay_auth_status(self, session: AuthSession) -> None:
        if session.qr_payload:
            self.bus.publish(QRCodeEvent(session.qr_payload))
        self.bus.publish(
            AuthStatusEvent(
                status=session.status.value,
                message=session.message,
                auto_start_token=session.app_token,
            ),
        )

    def succeeded(self, result: ImportResult) -> ImportOutcome:
        return ImportOutcome(
            success=True,
            profile=self.profile,
            dry_run=self.dry_run,
            added=result.added,
            skipped=result.skipped + self.dedup_skipped,
            fetched=self.fetched,
            replaced=self.replaced,
            dedup_skipped=self.dedup_skipped,
            errors=list(self.errors),
            start_date=self.start_date,
            end_date=self.end_date,
        )

    def failed(self, message: str, code: str) -> ImportOutcome:
        return ImportOutcome(
            success=False,
            profile=self.profile,
            dry_run=self.dry_run,
            fetched=self.fetched,
            replaced=self.replaced,
            dedup_skipped=self.dedup_skipped,
            errors=[*self.errors, message],
            start_date=self.start_date,
            end_date=self.end_date,
            error_message=message,
            error_code=code,
        )

    def success_message(self, outcome: ImportOutcome) -> str:
        if self.dry_run:
            return (
                f"Import complete: {outcome.added} transactions would be imported"
            )
        return f"Import complete: {outcome.added} transactions imported"
