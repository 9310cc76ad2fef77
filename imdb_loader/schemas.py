from dataclasses import dataclass, field
from decimal import Decimal

from imdb_loader.errors import VerificationMismatch


STATUS_COMPLETE = "complete"
STATUS_PARTIAL = "partial"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class MoviePreview:
    series_title: str | None
    released_year: str | None
    imdb_rating: Decimal | None
    director: str | None


@dataclass(frozen=True)
class LoadOutcome:
    rows_loaded: int
    expected: int
    status: str
    preview: tuple[MoviePreview, ...] = field(default=())

    def mismatch(self) -> VerificationMismatch | None:
        if self.status == STATUS_PARTIAL:
            return VerificationMismatch(self.rows_loaded, self.expected)
        return None


@dataclass(frozen=True)
class PipelineResult:
    run_id: int | None
    status: str
    rows_loaded: int
    expected: int
    failed_stage: str | None = None
    error: str | None = None
    outcome: LoadOutcome | None = None
