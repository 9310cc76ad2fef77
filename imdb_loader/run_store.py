from datetime import UTC, datetime

from sqlalchemy.orm import Session

from imdb_loader.db_models import LoadRun, StageRun


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def create_run(db: Session, *, table_name: str, csv_path: str, expected_records: int) -> LoadRun:
    run = LoadRun(
        table_name=table_name,
        csv_path=csv_path,
        expected_records=expected_records,
        status="running",
        started_at=utc_now(),
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def mark_run_finished(db: Session, run: LoadRun, *, status: str, rows_loaded: int) -> None:
    run.status = status
    run.rows_loaded = rows_loaded
    run.completed_at = utc_now()
    run.failed_stage = None
    run.error = None
    db.commit()


def mark_run_failed(db: Session, run: LoadRun, *, failed_stage: str, error: str) -> None:
    run.status = "failed"
    run.failed_stage = failed_stage
    run.error = error
    run.completed_at = utc_now()
    db.commit()


def create_stage_attempt(db: Session, *, run_id: int, stage_name: str) -> StageRun:
    stage = StageRun(run_id=run_id, stage_name=stage_name, status="started", started_at=utc_now())
    db.add(stage)
    db.commit()
    db.refresh(stage)
    return stage


def finish_stage(db: Session, stage: StageRun, *, error: str | None = None) -> None:
    finished_at = utc_now()
    stage.status = "failed" if error is not None else "succeeded"
    stage.completed_at = finished_at
    stage.duration_ms = (finished_at - stage.started_at).total_seconds() * 1000
    stage.error = error
    db.commit()
