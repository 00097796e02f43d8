"""
import_engine.file_parser - Low-level CSV / XLSX reading and cleaning.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Header whitespace stripping
  • Blank-line skipping
  • Returns a list of raw rows: header → cell text (all str)
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime

from openpyxl import load_workbook

logger = logging.getLogger(__name__)

RawRow = dict[str, str]

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xlsx", ".xls")


class ImportParseError(Exception):
    """Raised when the uploaded file cannot be read at all."""
    pass


def parse_file(raw: str | bytes, filename: str = "upload.csv") -> list[RawRow]:
    """
    Dispatch on the file extension and return the data rows.
    Raises ImportParseError for unsupported, empty or unreadable files.
    """
    name = (filename or "").lower()
    if name.endswith(EXCEL_EXTENSIONS):
        if isinstance(raw, str):
            raise ImportParseError("Excel content must be binary")
        return parse_excel(raw)
    if name.endswith(CSV_EXTENSIONS) or "." not in name:
        return parse_csv(raw)
    raise ImportParseError("Please upload a CSV or Excel file")


def parse_csv(raw: str | bytes) -> list[RawRow]:
    reader = prepare_reader(raw)
    if reader is None:
        raise ImportParseError("CSV has no header row or is empty")

    rows: list[RawRow] = []
    try:
        for row in reader:
            clean = {
                k: (v if isinstance(v, str) else "")
                for k, v in row.items()
                if k is not None          # overflow cells land under None
            }
            if not any(v.strip() for v in clean.values()):
                continue
            rows.append(clean)
    except csv.Error as exc:
        raise ImportParseError(f"CSV parsing error: {exc}") from exc

    logger.debug("Parsed %d CSV rows, columns=%s", len(rows), reader.fieldnames)
    return rows


def prepare_reader(raw: str | bytes) -> csv.DictReader | None:
    """
    Accept raw file content (bytes or str), clean it,
    and return a DictReader.  Returns None if content is empty.
    """
    text = _decode(raw)
    if not text or not text.strip():
        return None

    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames is None:
        return None

    # Strip whitespace from every header
    reader.fieldnames = [h.strip() for h in reader.fieldnames]
    return reader


def parse_excel(raw: bytes) -> list[RawRow]:
    """Read the first worksheet; row 1 is the header."""
    try:
        wb = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except Exception as exc:
        raise ImportParseError(f"Failed to parse Excel file: {exc}") from exc

    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            raise ImportParseError("Excel file has no worksheet")

        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row or not any(c is not None for c in header_row):
            raise ImportParseError("Excel file has no header row")

        headers = [_cell_text(c).strip() for c in header_row]
        rows: list[RawRow] = []
        for values in rows_iter:
            if not values or all(_cell_text(c).strip() == "" for c in values):
                continue
            row = {}
            for idx, header in enumerate(headers):
                if not header:
                    continue
                row[header] = _cell_text(values[idx]) if idx < len(values) else ""
            rows.append(row)
    finally:
        wb.close()

    logger.debug("Parsed %d Excel rows, columns=%s", len(rows), headers)
    return rows


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        return raw.decode("utf-8", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
