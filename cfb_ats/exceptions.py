"""
Exceptions raised by the ATS and arbitrage calculations.

Network failures have their own hierarchy in ``cfb_ats.data.sources.base``.
"""
from typing import Any, Optional


class CFBATSError(Exception):
    """Base exception for calculation errors."""


class InvalidInputError(CFBATSError, ValueError):
    """A game or line is missing a numeric field required by a calculation."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class InsufficientDataError(CFBATSError):
    """Not enough usable lines to evaluate an arbitrage."""

    def __init__(self, message: str, usable_lines: int = 0):
        super().__init__(message)
        self.usable_lines = usable_lines
