"""Exceptions raised by matching and spread passes."""

from __future__ import annotations


class SkewdeskError(Exception):
    """Base class for skewdesk errors."""


class StoreReadError(SkewdeskError):
    """Markets, prices or mappings could not be read. The pass aborts before writing."""


class StoreWriteError(SkewdeskError):
    """A write to the store failed."""


class PassLockedError(SkewdeskError):
    """Another pass of the same kind holds the run lock."""

    def __init__(self, name: str, holder: str | None = None) -> None:
        self.name = name
        self.holder = holder
        super().__init__(f"pass '{name}' is already running" + (f" (holder {holder})" if holder else ""))
