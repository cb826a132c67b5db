"""CSV input and output for ledger replays.

The input is a header row naming ``type, client, tx, amount`` followed by
one transaction per row. Whitespace around fields is ignored and rows for
disputes, resolves and chargebacks may leave out the amount column.
"""
import csv
import os
from typing import IO, Iterable, Iterator, List, Mapping, Union

import structlog
from pydantic import ValidationError

from account import Account
from errors import InvalidRecordError
from models import AccountSummary, Transaction

logger = structlog.get_logger()

REQUIRED_COLUMNS = ("type", "client", "tx")
REPORT_COLUMNS = ["client", "available", "held", "total", "locked"]


def read_transactions(
    source: Union[str, os.PathLike, IO[str]],
    strict: bool = False
) -> Iterator[Transaction]:
    """Yield transactions from a CSV path or open text stream, in file order.

    Undecodable rows are logged and skipped, or raise InvalidRecordError
    when ``strict`` is set. A header without the required columns always
    raises.
    """
    if isinstance(source, (str, os.PathLike)):
        with open(source, newline="", encoding="utf-8") as handle:
            yield from _read_rows(handle, strict)
    else:
        yield from _read_rows(source, strict)


def _read_rows(handle: IO[str], strict: bool) -> Iterator[Transaction]:
    reader = csv.reader(handle)
    header = next(reader, None)
    if header is None:
        return

    columns = [name.strip().lower() for name in header]
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise InvalidRecordError(reader.line_num, f"missing columns: {', '.join(missing)}", header)

    for row in reader:
        if not any(field.strip() for field in row):
            continue

        # Rows may be shorter than the header; absent trailing fields stay unset.
        data = dict(zip(columns, row))
        try:
            yield Transaction(**data)
        except ValidationError as e:
            error = InvalidRecordError(reader.line_num, _describe(e), row)
            if strict:
                raise error from e
            logger.warning(
                "Skipping invalid row",
                line=error.line,
                reason=error.reason,
                row=error.row
            )


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else item.get("msg", ""))
    return "; ".join(parts)


def summarize(accounts: Union[Mapping[int, Account], Iterable[Account]], precision: int = 4) -> List[AccountSummary]:
    if isinstance(accounts, Mapping):
        accounts = accounts.values()
    summaries = [AccountSummary.from_account(account, precision) for account in accounts]
    return sorted(summaries, key=lambda summary: summary.client)


def write_accounts(
    accounts: Union[Mapping[int, Account], Iterable[Account]],
    stream: IO[str],
    precision: int = 4
) -> int:
    """Write the final account report as CSV. Returns the number of accounts written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)
    summaries = summarize(accounts, precision)
    for summary in summaries:
        writer.writerow(summary.as_row())
    return len(summaries)
