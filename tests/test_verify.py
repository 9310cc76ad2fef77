import pytest

from imdb_loader.errors import VerificationMismatch
from imdb_loader.schemas import LoadOutcome
from imdb_loader.verify import classify_outcome


@pytest.mark.parametrize(
    ("rows_loaded", "expected", "status"),
    [
        (1000, 1000, "complete"),
        (500, 1000, "partial"),
        (1001, 1000, "partial"),
        (0, 1000, "empty"),
    ],
)
def test_classify_outcome(rows_loaded: int, expected: int, status: str) -> None:
    assert classify_outcome(rows_loaded, expected) == status


def test_partial_outcome_carries_mismatch_warning() -> None:
    outcome = LoadOutcome(rows_loaded=500, expected=1000, status="partial")

    mismatch = outcome.mismatch()

    assert isinstance(mismatch, VerificationMismatch)
    assert mismatch.rows_loaded == 500
    assert mismatch.expected == 1000
    assert str(mismatch) == "loaded 500 rows, expected 1000"


def test_complete_outcome_has_no_mismatch() -> None:
    assert LoadOutcome(rows_loaded=1000, expected=1000, status="complete").mismatch() is None
