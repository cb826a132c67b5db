from typing import Optional, Sequence


class LedgerError(Exception):
    """Base class for errors raised by the ledger replay tool."""


class InvalidRecordError(LedgerError):
    """A CSV row could not be decoded into a transaction."""

    def __init__(self, line: int, reason: str, row: Optional[Sequence[str]] = None):
        self.line = line
        self.reason = reason
        self.row = list(row) if row is not None else None
        super().__init__(f"line {line}: {reason}")
