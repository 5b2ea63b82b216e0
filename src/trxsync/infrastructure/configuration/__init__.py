"""Configuration adapters."""

from trxsync.infrastructure.configuration.profile_repository import ProfileRepository

__all__ = ["ProfileRepository"]
