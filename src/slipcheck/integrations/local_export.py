"""Local CSV export of receipt check results for manual review."""

import csv
import fcntl
import os
from pathlib import Path
from typing import Any

from slipcheck.models import ReceiptCheckResult

CSV_HEADER = ["file", "tanggal", "jam", "jumlah", "confidence", "valid", "errors"]


def result_to_row(result: ReceiptCheckResult) -> list[Any]:
    """Flatten a check result into a CSV row.

    Files rejected at intake get empty extraction columns and their intake
    error in the errors column.
    """
    extraction = result.extraction
    verdict = result.verdict

    if extraction is None or verdict is None:
        return [result.file_name, "", "", "", 0, False, result.error or ""]

    return [
        result.file_name,
        extraction.date or "",
        extraction.time or "",
        extraction.amount if extraction.amount is not None else "",
        extraction.confidence,
        verdict.is_valid,
        "; ".join(verdict.errors),
    ]


class ReviewExporter:
    """Appends receipt check results to a CSV file.

    The file opens cleanly in Excel (UTF-8 BOM) and can be appended to by
    several processes at once.
    """

    def export(self, results: list[ReceiptCheckResult], path: Path) -> None:
        """Export results to a local CSV file.

        If the file doesn't exist, it will be created with headers.
        If the file exists, data will be appended to it.

        Args:
            results: Check results to export
            path: Path to the CSV file to write/append to

        Raises:
            PermissionError: If the file cannot be written due to permissions
            OSError: If there are filesystem-related errors
        """
        if not results:
            return

        path.parent.mkdir(parents=True, exist_ok=True)

        # BOM is written by hand so it never lands in the middle on append
        with open(path, mode="a", encoding="utf-8", newline="") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                # Size is checked after locking so concurrent writers agree
                is_new_file = os.fstat(f.fileno()).st_size == 0

                if is_new_file:
                    f.write("\ufeff")  # UTF-8 BOM

                writer = csv.writer(f)

                if is_new_file:
                    writer.writerow(CSV_HEADER)

                for result in results:
                    writer.writerow(result_to_row(result))
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
