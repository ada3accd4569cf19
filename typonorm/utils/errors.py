"""Custom exceptions for core logic."""

from __future__ import annotations


class SurfaceUnavailableError(Exception):
    """Raised when no editable document surface is available for a run."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class MissingStyleError(Exception):
    """Raised when a pass requires a style the document does not define."""

    def __init__(self, message: str, *, style_name: str, style_kind: str) -> None:
        super().__init__(message)
        self.style_name = style_name
        self.style_kind = style_kind


class ConvergenceError(Exception):
    """Raised when a fixed-point substitution loop exceeds its iteration bound."""

    def __init__(self, message: str, *, pattern: str, iterations: int) -> None:
        super().__init__(message)
        self.pattern = pattern
        self.iterations = iterations


class ProtectedSpanError(Exception):
    """Raised when protected span tokens are unknown or restored twice."""

    def __init__(self, message: str, *, tokens: list[str]) -> None:
        super().__init__(message)
        self.tokens = tokens
