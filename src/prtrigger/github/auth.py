"""Source-hosting API credentials."""

from __future__ import annotations

import os

TOKEN_ENV_VAR = "GITHUB_TOKEN"


class AuthenticationError(Exception):
    """Raised when the API rejects or lacks credentials."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialize authentication error.

        Args:
            message: Error description.
            status_code: HTTP status code if from an API response.
        """
        super().__init__(message)
        self.status_code = status_code


def get_github_token() -> str | None:
    """Get the default API token from the environment.

    Returns:
        The stripped GITHUB_TOKEN value, or None if unset or blank.
    """
    return os.environ.get(TOKEN_ENV_VAR, "").strip() or None


def mask_token(token: str | None) -> str:
    """Mask a token for safe logging.

    Args:
        token: Token to mask.

    Returns:
        Masked token showing first 4 and last 4 characters.
    """
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"
