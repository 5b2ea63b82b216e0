"""Configuration exceptions."""

from trxsync.domain.shared.exceptions import ConfigurationError, ErrorCode


class ProfileNotFoundError(ConfigurationError):
    """Raised when a profile name is not in profiles.json."""

    def __init__(self, name: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "none"
        super().__init__(
            message=f"Profile '{name}' not found. Available profiles: {listing}",
            code=ErrorCode.PROFILE_NOT_FOUND,
            details={"profile": name, "available": available},
        )
