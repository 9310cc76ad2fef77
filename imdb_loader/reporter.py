import logging
import sys
from typing import TextIO

from imdb_loader.movie_table import TABLE_NAME
from imdb_loader.schemas import STATUS_COMPLETE, STATUS_PARTIAL, PipelineResult


logger = logging.getLogger(__name__)


def format_status_line(result: PipelineResult) -> str:
    if result.status == STATUS_COMPLETE:
        return f"Data loading completed successfully! Loaded {result.rows_loaded} movies into {TABLE_NAME}."
    if result.status == STATUS_PARTIAL:
        return f"Data loading completed with warnings: {result.outcome.mismatch()}."
    if result.failed_stage is None:
        return f"Data loading failed! No records found in {TABLE_NAME}."
    return f"Error during {result.failed_stage}: {result.error}. Data loading failed!"


def exit_code_for(result: PipelineResult) -> int:
    return 0 if result.status in (STATUS_COMPLETE, STATUS_PARTIAL) else 1


def report(result: PipelineResult, stream: TextIO | None = None) -> int:
    out = stream if stream is not None else sys.stdout
    line = format_status_line(result)
    log_extra = {"run_id": result.run_id, "status": result.status, "rows_loaded": result.rows_loaded}

    if result.status == STATUS_COMPLETE:
        logger.info(line, extra=log_extra)
    elif result.status == STATUS_PARTIAL:
        logger.warning(line, extra=log_extra)
    else:
        logger.error(line, extra=log_extra)

    print(line, file=out)
    if result.outcome is not None:
        for movie in result.outcome.preview:
            print(
                f"  {movie.series_title} ({movie.released_year}) rating={movie.imdb_rating} director={movie.director}",
                file=out,
            )
    return exit_code_for(result)
