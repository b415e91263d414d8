"""CSV lead log adapter.

Implements the core LeadSinkPort as an append-only UTF-8 CSV file.
"""

from __future__ import annotations

import csv
import os

from core.models import LEAD_FIELDS, LeadRecord


def _row(record: LeadRecord) -> list[str]:
    return [
        record.timestamp_utc.isoformat(),
        record.source,
        record.from_name,
        record.from_email,
        record.title,
        record.message,
        record.url,
        record.city,
        "" if record.price is None else str(record.price),
        repr(record.score),
        str(record.qualified),
    ]


class CsvLeadSink:
    """Append-only CSV writer that satisfies the LeadSinkPort contract."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def append(self, record: LeadRecord) -> None:
        """Append one row, writing the header first when the file is new or empty."""

        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        needs_header = not os.path.exists(self._path) or os.path.getsize(self._path) == 0
        with open(self._path, "a", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            if needs_header:
                writer.writerow(LEAD_FIELDS)
            writer.writerow(_row(record))
