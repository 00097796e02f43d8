"""
import_engine.importer - Top-level orchestrator.

Coordinates file_parser → validator → reconciler → row_processor and
produces a structured ImportReport.  Rows are processed strictly one at
a time, in file order, through a generator so callers can stream
progress.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import services.user_service  # noqa: F401  registers bulk-create-users
from db.engine import get_session
from db.store import Store, StoreError
from import_engine.file_parser import parse_file
from import_engine.reconciler import UserReconciler
from import_engine.report import ImportReport, RowOutcome
from import_engine.row_processor import RowProcessor
from import_engine.validator import NormalizedRow, validate

logger = logging.getLogger(__name__)


class ImportRun:
    """
    One import of already-validated rows.  ``rows()`` is an ordered
    generator: each ``next()`` reconciles and writes exactly one row and
    yields its RowOutcome.  The report fills up as the generator runs.
    """

    def __init__(
        self,
        store: Store,
        *,
        coordinator_id: str | None = None,
        dedupe: bool = False,
        report: ImportReport | None = None,
        commit_each_row: bool = False,
    ):
        self.store = store
        self.report = report or ImportReport()
        self.commit_each_row = commit_each_row
        self.reconciler = UserReconciler(store, self.report)
        self.processor = RowProcessor(
            store, self.report,
            coordinator_id=coordinator_id,
            years=self._load_years(),
            dedupe=dedupe,
        )

    def rows(self, valid_rows: list[NormalizedRow]) -> Iterator[RowOutcome]:
        total = len(valid_rows)
        self.report.valid_rows = total
        if not total:
            return

        self.reconciler.precreate(valid_rows)
        self._settle()

        for idx, row in enumerate(valid_rows, start=1):
            ok, skipped = self._process_one(row)
            yield RowOutcome(
                row_number=row.row_number,
                ok=ok,
                percent=round(idx * 100.0 / total, 2),
                skipped=skipped,
            )

    def _process_one(self, row: NormalizedRow) -> tuple[bool, bool]:
        try:
            mentor = self.reconciler.resolve_mentor(row)
            mentee = self.reconciler.resolve_mentee(row)
            project = self.processor.process(row, mentor, mentee)
            self._commit()
        except Exception as exc:
            logger.warning("Row %d failed: %s", row.row_number, exc)
            self._settle()
            self.report.add_error(row.row_number, str(exc))
            return False, False

        if project is None:
            return True, True
        self.report.success += 1
        return True, False

    def _load_years(self) -> list[dict]:
        try:
            return self.store.select("academic_years", order_by="name")
        except StoreError as exc:
            logger.warning("Could not load academic years: %s", exc)
            return []

    def _commit(self):
        if self.commit_each_row:
            self.store.session.commit()

    def _settle(self):
        """Commit whatever made it through; roll back and forget the caches if even that fails."""
        if not self.commit_each_row:
            return
        try:
            self.store.session.commit()
        except SQLAlchemyError:
            logger.exception("Commit after failed row did not go through, rolling back")
            self.store.session.rollback()
            self.reconciler.reset()


def run_import(
    file_content: str | bytes,
    filename: str = "upload.csv",
    *,
    coordinator_id: str | None = None,
    dedupe: bool = False,
    on_progress: Callable[[RowOutcome], None] | None = None,
    session: Session | None = None,
) -> ImportReport:
    """
    Import a CSV/XLSX blob.

    Parameters
    ----------
    file_content : raw file (bytes or str)
    filename : used to pick the CSV or Excel reader
    coordinator_id : recorded as assigned_by / created_by
    dedupe : skip rows that match an existing project
    on_progress : called with every RowOutcome, in order
    session : caller-owned session (caller commits); if omitted a session
              is opened here and every row is committed as it completes

    Raises ImportParseError before any write if the file is unreadable.
    """
    raw_rows = parse_file(file_content, filename)

    validation = validate(raw_rows)
    report = ImportReport(total_rows=len(raw_rows))
    report.errors.extend(validation.errors)
    report.warnings.extend(validation.warnings)

    owned = session is None
    session = session or get_session()
    try:
        run = ImportRun(
            Store(session),
            coordinator_id=coordinator_id,
            dedupe=dedupe,
            report=report,
            commit_each_row=owned,
        )
        for outcome in run.rows(validation.valid_rows):
            if on_progress:
                on_progress(outcome)
        if not owned:
            session.flush()
    finally:
        if owned:
            session.close()

    logger.info(
        "Import done: %d rows, %d valid, %d imported, %d failed, %d skipped, %d warnings",
        report.total_rows, report.valid_rows, report.success, report.failed,
        report.skipped_duplicates, len(report.warnings),
    )
    return report
