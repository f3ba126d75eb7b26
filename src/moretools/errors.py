"""Exception types raised by the moretools package."""

from __future__ import annotations

from pathlib import Path

__all__ = ["MoreToolsError", "PackagingDefectError", "InvalidIdentifierError"]


class MoreToolsError(Exception):
    """Base class for all moretools errors."""


class PackagingDefectError(MoreToolsError):
    """Raised when a descriptor bundled with the application is malformed.

    This is a packaging bug of the integrating application. It must be fixed
    before shipping, so it is raised instead of being tolerated at runtime.
    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Malformed bundled descriptor {self.path}: {reason}")


class InvalidIdentifierError(MoreToolsError, ValueError):
    """Raised when a desktop entry name or menu item id is empty."""
