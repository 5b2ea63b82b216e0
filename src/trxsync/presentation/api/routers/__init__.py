from trxsync.presentation.api.routers.accounts import router as accounts_router
from trxsync.presentation.api.routers.health import router as health_router
from trxsync.presentation.api.routers.import_ import router as import_router
from trxsync.presentation.api.routers.profiles import router as profiles_router

__all__ = [
    "accounts_router",
    "health_router",
    "import_router",
    "profiles_router",
]
