from decimal import Decimal
import io

from imdb_loader.reporter import report
from imdb_loader.schemas import LoadOutcome, MoviePreview, PipelineResult


def test_complete_load_exits_zero_and_prints_preview() -> None:
    outcome = LoadOutcome(
        rows_loaded=1000,
        expected=1000,
        status="complete",
        preview=(MoviePreview("The Shawshank Redemption", "1994", Decimal("9.3"), "Frank Darabont"),),
    )
    result = PipelineResult(run_id=1, status="complete", rows_loaded=1000, expected=1000, outcome=outcome)
    out = io.StringIO()

    assert report(result, out) == 0
    assert "completed successfully! Loaded 1000 movies" in out.getvalue()
    assert "The Shawshank Redemption (1994) rating=9.3 director=Frank Darabont" in out.getvalue()


def test_partial_load_exits_zero_with_warning() -> None:
    outcome = LoadOutcome(rows_loaded=500, expected=1000, status="partial")
    result = PipelineResult(run_id=2, status="partial", rows_loaded=500, expected=1000, outcome=outcome)
    out = io.StringIO()

    assert report(result, out) == 0
    assert "completed with warnings: loaded 500 rows, expected 1000." in out.getvalue()


def test_empty_load_exits_one() -> None:
    result = PipelineResult(run_id=3, status="empty", rows_loaded=0, expected=1000)
    out = io.StringIO()

    assert report(result, out) == 1
    assert "No records found in imdb_movies" in out.getvalue()


def test_stage_failure_exits_one_and_names_stage() -> None:
    result = PipelineResult(
        run_id=4,
        status="failed",
        rows_loaded=0,
        expected=1000,
        failed_stage="probe",
        error="cannot connect to database",
    )
    out = io.StringIO()

    assert report(result, out) == 1
    assert out.getvalue().startswith("Error during probe: cannot connect to database")
