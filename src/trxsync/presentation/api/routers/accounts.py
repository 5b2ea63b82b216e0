"""Ledger account listing endpoint."""

import logging

from fastapi import APIRouter

from trxsync.presentation.api.dependencies import Ledger, Profiles
from trxsync.presentation.api.schemas import AccountListResponse, AccountResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/accounts",
    summary="List ledger accounts",
    responses={
        200: {"description": "Accounts known to the ledger"},
        400: {"description": "Ledger settings are missing"},
        503: {"description": "Ledger unreachable"},
    },
)
async def list_accounts(profiles: Profiles, ledger: Ledger) -> AccountListResponse:
    """
    List the ledger's accounts using the global ledger settings.

    Handy for finding the ``actualAccountId`` to put into a profile.
    """
    config = profiles.global_ledger_config()
    try:
        await ledger.connect(config)
        accounts = await ledger.list_accounts()
    finally:
        await ledger.shutdown()

    return AccountListResponse(
        accounts=[AccountResponse.from_account(a) for a in accounts],
        count=len(accounts),
    )
