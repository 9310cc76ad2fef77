from collections.abc import Callable
import logging
from pathlib import Path
from typing import TypeVar

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from imdb_loader.bulk_load import bulk_load
from imdb_loader.config import LoadConfig
from imdb_loader.db_models import LoadRun
from imdb_loader.errors import LedgerError, LoadError
from imdb_loader.movie_table import TABLE_NAME, recreate_movies_table
from imdb_loader.probe import probe_connection
from imdb_loader.run_store import (
    create_run,
    create_stage_attempt,
    finish_stage,
    mark_run_failed,
    mark_run_finished,
)
from imdb_loader.schemas import STATUS_FAILED, PipelineResult
from imdb_loader.verify import verify_load


logger = logging.getLogger(__name__)
T = TypeVar("T")

LEDGER_STAGE = "ledger"


class StageFailedError(RuntimeError):
    def __init__(self, stage_name: str, cause: Exception) -> None:
        super().__init__(f"stage '{stage_name}' failed: {cause}")
        self.stage_name = stage_name
        self.cause = cause


def early_failure(stage_name: str, exc: LoadError, *, expected: int = 0) -> PipelineResult:
    return PipelineResult(
        run_id=None,
        status=STATUS_FAILED,
        rows_loaded=0,
        expected=expected,
        failed_stage=stage_name,
        error=str(exc),
    )


class LoadPipeline:
    def __init__(self, config: LoadConfig, engine: Engine, session_factory: sessionmaker[Session]) -> None:
        self.config = config
        self.engine = engine
        self.session_factory = session_factory

    def run(self) -> PipelineResult:
        csv_path = Path(self.config.csv_path)
        expected = self.config.expected_record_count

        with self.session_factory() as db:
            try:
                run = create_run(db, table_name=TABLE_NAME, csv_path=str(csv_path), expected_records=expected)
            except SQLAlchemyError as exc:
                db.rollback()
                error = LedgerError(f"could not record load run: {exc}")
                logger.error("load run not started", extra={"stage": LEDGER_STAGE})
                return early_failure(LEDGER_STAGE, error, expected=expected)
            run_id = run.id
            logger.info("load run started", extra={"run_id": run_id, "csv_path": str(csv_path)})

            try:
                # Nothing destructive runs until the probe has passed.
                self._run_stage(db, run_id, "probe", lambda: probe_connection(self.engine))
                self._run_stage(db, run_id, "schema", lambda: recreate_movies_table(self.engine))
                self._run_stage(db, run_id, "ingest", lambda: bulk_load(self.engine, csv_path))
                outcome = self._run_stage(db, run_id, "verify", lambda: verify_load(self.engine, expected))
                self._record(
                    db,
                    "finish run",
                    lambda: mark_run_finished(db, run, status=outcome.status, rows_loaded=outcome.rows_loaded),
                )
            except StageFailedError as exc:
                return self._failed(db, run, run_id, exc, expected)

            return PipelineResult(
                run_id=run_id,
                status=outcome.status,
                rows_loaded=outcome.rows_loaded,
                expected=expected,
                outcome=outcome,
            )

    def _run_stage(self, db: Session, run_id: int, stage_name: str, fn: Callable[[], T]) -> T:
        # Each stage runs exactly once; a failure ends the run.
        stage = self._record(
            db,
            f"start stage '{stage_name}'",
            lambda: create_stage_attempt(db, run_id=run_id, stage_name=stage_name),
        )
        try:
            result = fn()
        except Exception as exc:
            try:
                finish_stage(db, stage, error=str(exc))
            except SQLAlchemyError:
                db.rollback()
                logger.exception("could not record stage failure", extra={"run_id": run_id, "stage": stage_name})
            raise StageFailedError(stage_name, exc) from exc
        self._record(db, f"finish stage '{stage_name}'", lambda: finish_stage(db, stage))
        return result

    def _record(self, db: Session, action: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as exc:
            db.rollback()
            error = LedgerError(f"could not {action} in the run ledger: {exc}")
            raise StageFailedError(LEDGER_STAGE, error) from exc

    def _failed(self, db: Session, run: LoadRun, run_id: int, exc: StageFailedError, expected: int) -> PipelineResult:
        try:
            mark_run_failed(db, run, failed_stage=exc.stage_name, error=str(exc.cause))
        except SQLAlchemyError:
            db.rollback()
            logger.exception("could not record failed run", extra={"run_id": run_id})

        if isinstance(exc.cause, LoadError):
            logger.error("load run failed", extra={"run_id": run_id, "stage": exc.stage_name})
        else:
            logger.exception("load run failed", extra={"run_id": run_id, "stage": exc.stage_name})
        return PipelineResult(
            run_id=run_id,
            status=STATUS_FAILED,
            rows_loaded=0,
            expected=expected,
            failed_stage=exc.stage_name,
            error=str(exc.cause),
        )
