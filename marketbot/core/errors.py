"""
Error hierarchy for the market maker.

AuthError aborts the run. ApiError is recovered per order or per pair.
ValidationError covers malformed input caught before it reaches the exchange.
"""

from __future__ import annotations

from typing import Optional


class BotError(Exception):
    """Base class for all expected bot failures."""
    pass


class AuthError(BotError):
    """Raised when the exchange rejects the credentials."""
    pass


class ApiError(BotError):
    """Raised when an exchange or rate feed call fails."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class RateUnavailableError(ApiError):
    """Raised when a pair has no reference rate in the merged feeds."""

    def __init__(self, pair: str) -> None:
        super().__init__(f"no reference rate for {pair}")
        self.pair = pair


class ValidationError(BotError):
    """Raised for malformed pairs, prices or amounts."""
    pass
