"""FastAPI dependency injection for the trxsync API.

Every dependency derives from the settings the app was created with
(``app.state.settings``), so tests can build an app around their own
settings or swap any of these through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from trxsync.application.commands import ImportCommand
from trxsync.domain.ledger.ports import LedgerPort
from trxsync.infrastructure.banking import BankRegistry
from trxsync.infrastructure.configuration import ProfileRepository
from trxsync.infrastructure.ledger import create_ledger
from trxsync_config.settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_bank_registry(settings: AppSettings) -> BankRegistry:
    return BankRegistry.default(settings)


Registry = Annotated[BankRegistry, Depends(get_bank_registry)]


def get_profile_repository(
    settings: AppSettings,
    registry: Registry,
) -> ProfileRepository:
    return ProfileRepository.from_settings(settings, registry)


Profiles = Annotated[ProfileRepository, Depends(get_profile_repository)]


def get_ledger(settings: AppSettings) -> LedgerPort:
    """A fresh, unconnected ledger adapter; the caller shuts it down."""
    return create_ledger(settings)


Ledger = Annotated[LedgerPort, Depends(get_ledger)]


def get_import_command(settings: AppSettings) -> ImportCommand:
    return ImportCommand.from_settings(settings)


Importer = Annotated[ImportCommand, Depends(get_import_command)]
