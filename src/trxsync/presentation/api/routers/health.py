"""Health check endpoint."""

from fastapi import APIRouter

from trxsync import __version__
from trxsync.presentation.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", summary="Service health")
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)
