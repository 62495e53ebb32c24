"""Append-only CSV store for metric samples.

The store is a header row followed by one row per sample. Rows are only ever
appended; previously written rows never change. Writers serialize through an
exclusive advisory lock on the store file and emit each row with a single
``write`` on an append-mode handle, so readers never observe a partial row.
Readers take no lock.
"""

from __future__ import annotations

import csv
import fcntl
import io
import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from infra_monitor.core.constants import SAMPLE_COLUMNS
from infra_monitor.core.errors import StoreError
from infra_monitor.core.schemas import Sample

logger = logging.getLogger(__name__)


def _encode_line(cells: list[str] | tuple[str, ...]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(cells)
    return buffer.getvalue()


class MetricsStore:
    """Storage manager for the metrics CSV file.

    Handles lazy creation with the header, locked appends, validation for
    analysis, and loading samples as models or as a pandas DataFrame.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"MetricsStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_file()

    def append(self, sample: Sample) -> None:
        """Append one sample, creating the store with its header if needed.

        The header check and the row write happen under ``flock(LOCK_EX)`` so
        concurrent collectors cannot interleave rows or write two headers.

        Raises:
            StoreError: If the store cannot be created or written, or its
                header does not match the sample schema
        """
        line = _encode_line(sample.to_row())
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        except OSError as e:
            raise StoreError(f"Cannot create or open store {self.path}: {e}", self.path) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            try:
                if os.fstat(fd).st_size == 0:
                    line = _encode_line(SAMPLE_COLUMNS) + line
                    logger.info(f"Created metrics store: {self.path}")
                else:
                    self.check_header()
                os.write(fd, line.encode("utf-8"))
                os.fsync(fd)
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError as e:
            raise StoreError(f"Failed to write to store {self.path}: {e}", self.path) from e
        finally:
            os.close(fd)

        logger.debug(f"Appended sample {sample.to_row()[0]} to {self.path}")

    def read_header(self) -> list[str]:
        """Return the header cells, or an empty list for an empty file."""
        try:
            with open(self.path, encoding="utf-8", newline="") as f:
                first = f.readline()
        except OSError as e:
            raise StoreError(f"Cannot read store {self.path}: {e}", self.path) from e
        if not first:
            return []
        return next(csv.reader([first]))

    def check_header(self) -> None:
        """Raise StoreError if the existing header differs from the schema."""
        header = self.read_header()
        if tuple(header) != SAMPLE_COLUMNS:
            raise StoreError(
                f"Store {self.path} has an incompatible header "
                f"({len(header)} columns: {','.join(header)}). "
                "The column set cannot change once samples exist.",
                self.path,
            )

    def ensure_compatible(self) -> None:
        """Check an existing, non-empty store can take new rows.

        A missing or empty store is compatible; it gets a header on first append.

        Raises:
            StoreError: If the existing header does not match the schema
        """
        if self.exists() and self.path.stat().st_size > 0:
            self.check_header()

    def validate(self) -> int:
        """Check the store is usable for analysis.

        Returns:
            Number of complete data rows currently in the store

        Raises:
            StoreError: If the file is missing, has a wrong header, or holds
                no data rows
        """
        if not self.exists():
            raise StoreError(f"Metrics store not found: {self.path}", self.path)
        self.check_header()
        rows = sum(1 for _ in self._iter_rows())
        if rows < 1:
            raise StoreError(
                f"Metrics store {self.path} is empty or contains only the header. "
                "At least one sample is required.",
                self.path,
            )
        logger.info(f"Store validated: {rows} samples in {self.path}")
        return rows

    def _iter_rows(self) -> Iterator[list[str]]:
        """Yield complete data rows, skipping the header.

        A final line without a trailing newline is an append still in flight
        and is not yielded.
        """
        with open(self.path, encoding="utf-8", newline="") as f:
            f.readline()
            for line in f:
                if not line.endswith("\n"):
                    logger.warning(f"Ignoring incomplete trailing line in {self.path}")
                    break
                if not line.strip():
                    continue
                yield next(csv.reader([line]))

    def iter_samples(self) -> Iterator[Sample]:
        """Lazily parse samples in stored (chronological) order.

        Each call re-opens the file, so the sequence can be restarted.
        Malformed rows are skipped with a warning.
        """
        for line_no, row in enumerate(self._iter_rows(), start=2):
            try:
                yield Sample.from_row(row)
            except (ValueError, ValidationError) as e:
                logger.warning(f"Skipping malformed row {line_no} in {self.path}: {e}")

    def load(self) -> list[Sample]:
        """Load all samples into memory."""
        return list(self.iter_samples())

    def load_dataframe(self) -> pd.DataFrame:
        """Load samples as a pandas DataFrame with compound metric columns."""
        return samples_to_dataframe(self.load())


def samples_to_dataframe(samples: list[Sample]) -> pd.DataFrame:
    """Convert samples to a DataFrame.

    Adds ``cpu_total`` and ``mem_percent`` columns computed by the shared
    schema properties.
    """
    rows = []
    for s in samples:
        row = s.model_dump()
        row["timestamp"] = s.timestamp
        row["cpu_total"] = s.cpu_total
        row["mem_percent"] = s.mem_percent
        rows.append(row)
    columns = list(SAMPLE_COLUMNS) + ["cpu_total", "mem_percent"]
    return pd.DataFrame(rows, columns=columns)
