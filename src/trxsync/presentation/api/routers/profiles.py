"""Profile listing endpoint."""

import logging

from fastapi import APIRouter

from trxsync.presentation.api.dependencies import Profiles
from trxsync.presentation.api.schemas import ProfileListResponse, ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/profiles",
    summary="List import profiles",
    responses={
        200: {"description": "All configured profiles"},
        400: {"description": "profiles.json is missing or invalid"},
    },
)
async def list_profiles(profiles: Profiles) -> ProfileListResponse:
    """
    List every profile defined in ``profiles.json``.

    Each profile is validated on the way out, so a malformed entry turns
    the whole response into a ``CONFIGURATION_ERROR`` rather than being
    silently dropped.
    """
    loaded = profiles.list_profiles()
    logger.debug("Listing %d profiles from %s", len(loaded), profiles.path)
    return ProfileListResponse(
        profiles=[ProfileResponse.from_profile(p) for p in loaded],
        count=len(loaded),
    )
