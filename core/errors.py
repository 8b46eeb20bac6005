from __future__ import annotations


class SheetguardError(Exception):
    """Base class for errors raised by the dashboard core."""


class AccessorError(SheetguardError):
    """A fetch or update call to the sheet accessor failed."""


class UnknownSourceError(SheetguardError, KeyError):
    def __init__(self, source: str) -> None:
        super().__init__(source)
        self.source = source

    def __str__(self) -> str:
        return f"unknown sheet source: {self.source!r}"
