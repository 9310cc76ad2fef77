from collections.abc import Callable, Generator
import csv
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from imdb_loader.config import LoadConfig
from imdb_loader.database import build_session_factory
from imdb_loader.pipeline import LoadPipeline


HEADER = [
    "Poster_Link",
    "Series_Title",
    "Released_Year",
    "Certificate",
    "Runtime",
    "Genre",
    "IMDB_Rating",
    "Overview",
    "Meta_score",
    "Director",
    "Star1",
    "Star2",
    "Star3",
    "Star4",
    "No_of_Votes",
    "Gross",
]


def movie_row(index: int, **overrides: str) -> list[str]:
    row = {
        "Poster_Link": f"https://m.media-amazon.com/images/M/poster-{index}.jpg",
        "Series_Title": f"Movie {index}",
        "Released_Year": str(1950 + index % 70),
        "Certificate": "UA",
        "Runtime": "142 min",
        "Genre": "Crime, Drama",
        "IMDB_Rating": "8.5",
        "Overview": "Two imprisoned men bond over a number of years.",
        "Meta_score": "80",
        "Director": "Frank Darabont",
        "Star1": "Tim Robbins",
        "Star2": "Morgan Freeman",
        "Star3": "Bob Gunton",
        "Star4": "William Sadler",
        "No_of_Votes": "2343110",
        "Gross": "28,341,469",
    }
    row.update(overrides)
    return [row[name] for name in HEADER]


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def write_dataset(temp_workspace: Path) -> Callable[..., Path]:
    def _write(
        rows: list[list[str]],
        *,
        header: list[str] | None = None,
        name: str = "imdb_top_1000.csv",
        quoting: int = csv.QUOTE_MINIMAL,
    ) -> Path:
        path = temp_workspace / "data" / name
        with path.open("w", encoding="utf-8", newline="") as outfile:
            writer = csv.writer(outfile, quoting=quoting)
            writer.writerow(HEADER if header is None else header)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture()
def target_engine(temp_workspace: Path) -> Generator[Engine, None, None]:
    engine = create_engine(f"sqlite:///{temp_workspace / 'target.db'}", future=True)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(temp_workspace: Path) -> sessionmaker[Session]:
    return build_session_factory(f"sqlite:///{temp_workspace / 'ledger.db'}")


@pytest.fixture()
def make_config(temp_workspace: Path) -> Callable[..., LoadConfig]:
    def _make(csv_path: Path, expected: int = 1000) -> LoadConfig:
        return LoadConfig(
            db_host="localhost",
            db_port=5432,
            db_name="movies",
            db_user="loader",
            db_password="secret",
            csv_path=str(csv_path),
            expected_record_count=expected,
            ledger_database_url=f"sqlite:///{temp_workspace / 'ledger.db'}",
        )

    return _make


@pytest.fixture()
def make_pipeline(
    target_engine: Engine,
    session_factory: sessionmaker[Session],
    make_config: Callable[..., LoadConfig],
) -> Callable[..., LoadPipeline]:
    def _make(csv_path: Path, expected: int = 1000, engine: Engine | None = None) -> LoadPipeline:
        return LoadPipeline(make_config(csv_path, expected), engine or target_engine, session_factory)

    return _make
