"""Errors and small helpers shared by the browser layer."""

from __future__ import annotations

from typing import Optional


class BrowserActionError(RuntimeError):
    """Raised when executing a browser action fails."""


class LocatorInputMissingError(BrowserActionError):
    """Raised when neither a ref nor a selector was supplied for an element."""

    def __init__(self, element: Optional[str] = None) -> None:
        message = "Either ref or selector is required to locate an element"
        if element:
            message = f"{message} ({element})"
        super().__init__(message)
        self.element = element


class SnapshotCaptureError(BrowserActionError):
    """Raised when any step of a snapshot capture fails."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Error capturing ARIA snapshot during {stage}: {cause}")
        self.stage = stage


class ElementActionError(BrowserActionError):
    """Raised when an element cannot be found or an action on it times out."""

    def __init__(self, element: str, action: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {action} element {element!r}: {cause}")
        self.element = element
        self.action = action


class UnsupportedActionError(BrowserActionError):
    """Raised for command types the executor does not know."""


def to_timeout(timeout: Optional[float]) -> Optional[int]:
    """Convert seconds to the milliseconds Playwright expects."""

    if timeout is None:
        return None
    return int(timeout * 1000)
