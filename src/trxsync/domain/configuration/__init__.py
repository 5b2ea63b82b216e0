"""Import profile configuration."""

from trxsync.domain.configuration.exceptions import ProfileNotFoundError
from trxsync.domain.configuration.profile import ImportConfig, Profile

__all__ = ["ImportConfig", "Profile", "ProfileNotFoundError"]
