import logging

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError

from imdb_loader.errors import VerificationError
from imdb_loader.movie_table import TABLE_NAME, movies_table
from imdb_loader.schemas import (
    STATUS_COMPLETE,
    STATUS_EMPTY,
    STATUS_PARTIAL,
    LoadOutcome,
    MoviePreview,
)


logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 5


def classify_outcome(rows_loaded: int, expected: int) -> str:
    if rows_loaded == 0:
        return STATUS_EMPTY
    if rows_loaded == expected:
        return STATUS_COMPLETE
    # Overfilled tables are reported the same way as underfilled ones.
    return STATUS_PARTIAL


def verify_load(engine: Engine, expected: int) -> LoadOutcome:
    count_stmt = select(func.count()).select_from(movies_table)
    preview_stmt = (
        select(
            movies_table.c.series_title,
            movies_table.c.released_year,
            movies_table.c.imdb_rating,
            movies_table.c.director,
        )
        .order_by(movies_table.c.id)
        .limit(PREVIEW_LIMIT)
    )

    try:
        with engine.connect() as conn:
            rows_loaded = conn.execute(count_stmt).scalar_one()
            preview = tuple(MoviePreview(*row) for row in conn.execute(preview_stmt))
    except SQLAlchemyError as exc:
        raise VerificationError(f"could not count rows in {TABLE_NAME}: {exc}") from exc

    outcome = LoadOutcome(
        rows_loaded=rows_loaded,
        expected=expected,
        status=classify_outcome(rows_loaded, expected),
        preview=preview,
    )
    logger.info(
        "load verified",
        extra={"table": TABLE_NAME, "rows_loaded": rows_loaded, "expected": expected, "status": outcome.status},
    )
    return outcome
