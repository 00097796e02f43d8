"""
import_engine - CSV / XLSX project import pipeline.

Public API:
    run_import(file_content, filename, coordinator_id=None, dedupe=False) → ImportReport
    find_column_value(row, candidates) → str
    validate(rows) → ValidationResult
"""

from import_engine.importer import run_import, ImportRun          # noqa: F401
from import_engine.report import ImportReport, RowOutcome          # noqa: F401
from import_engine.file_parser import ImportParseError, parse_file  # noqa: F401
from import_engine.column_resolver import find_column_value        # noqa: F401
from import_engine.validator import validate, NormalizedRow        # noqa: F401
from import_engine.row_processor import RowError, duration_months  # noqa: F401
