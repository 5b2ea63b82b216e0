"""FastAPI application for trxsync."""

from trxsync.presentation.api.app import create_app

__all__ = ["create_app"]
