"""CSV input and output.

Input rows look like ``type, client, tx, amount`` with a header line;
whitespace around fields is ignored and dispute-family rows may leave the
amount column out entirely. The report is ``client,available,held,total,locked``.
"""

import csv
from typing import Dict, Iterable, Iterator, Optional, TextIO

import structlog
from pydantic import ValidationError

from errors import RecordError
from models import AccountResponse, TransactionRequest, describe_validation_error

logger = structlog.get_logger(__name__)

INPUT_FIELDS = ["type", "client", "tx", "amount"]
REPORT_FIELDS = ["client", "available", "held", "total", "locked"]


def parse_row(row: Dict[str, Optional[str]], line: Optional[int] = None) -> TransactionRequest:
    """Validate one CSV row. Raises RecordError on malformed input."""
    fields = {}
    for name in INPUT_FIELDS:
        value = row.get(name)
        if value is not None:
            value = value.strip()
        fields[name] = value if value else None
    try:
        return TransactionRequest.model_validate(fields)
    except ValidationError as exc:
        raise RecordError(describe_validation_error(exc), line=line) from exc


class TransactionReader:
    """Iterates the valid records of a CSV stream.

    Malformed rows are logged and counted, or raised as RecordError when
    ``strict`` is set.
    """

    def __init__(self, stream: TextIO, strict: bool = False):
        self.stream = stream
        self.strict = strict
        self.malformed = 0

    def __iter__(self) -> Iterator[TransactionRequest]:
        reader = csv.DictReader(self.stream, skipinitialspace=True)
        if reader.fieldnames is None:
            return
        # drop a leading byte-order mark
        reader.fieldnames = [name.replace("\ufeff", "").strip().lower() for name in reader.fieldnames]

        for row in reader:
            if not any(value and value.strip() for value in row.values() if isinstance(value, str)):
                continue
            try:
                yield parse_row(row, line=reader.line_num)
            except RecordError as exc:
                self.malformed += 1
                logger.warning("Malformed record", line=reader.line_num, error=str(exc))
                if self.strict:
                    raise


def write_report(rows: Iterable[AccountResponse], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_FIELDS)
    for row in rows:
        writer.writerow([
            row.client,
            row.available,
            row.held,
            row.total,
            str(row.locked).lower(),
        ])
