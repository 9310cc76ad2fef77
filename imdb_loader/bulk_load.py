from collections.abc import Iterator
import csv
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from pathlib import Path

import psycopg2
from sqlalchemy import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from imdb_loader.errors import IngestError
from imdb_loader.movie_table import COLUMN_WIDTHS, DATA_COLUMNS, TABLE_NAME, movies_table


logger = logging.getLogger(__name__)

INSERT_BATCH_SIZE = 500
# Text columns such as overview are unbounded; stay within a C long on every platform.
FIELD_SIZE_LIMIT = 2**31 - 1
# NUMERIC(3,1) rounds to one decimal place, so 99.95 and up overflows.
RATING_LIMIT = Decimal("99.95")

COPY_SQL = "COPY {table} ({columns}) FROM STDIN WITH (FORMAT csv, HEADER true)".format(
    table=TABLE_NAME,
    columns=", ".join(DATA_COLUMNS),
)


@dataclass(frozen=True)
class DatasetScan:
    path: Path
    columns: tuple[str, ...]
    row_count: int


def check_header(header: list[str | None]) -> None:
    found = tuple((name or "").strip().lower() for name in header)
    if found != DATA_COLUMNS:
        raise IngestError(
            f"CSV header does not match {TABLE_NAME} columns: "
            f"expected {list(DATA_COLUMNS)}, found {list(found)}"
        )


def parse_rating(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        rating = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"imdb_rating {raw!r} is not a number") from exc
    if not rating.is_finite() or abs(rating) >= RATING_LIMIT:
        raise ValueError(f"imdb_rating {raw!r} does not fit NUMERIC(3,1)")
    return rating


def _check_row(line_number: int, row: list[str | None]) -> dict[str, object]:
    if len(row) != len(DATA_COLUMNS):
        raise IngestError(f"line {line_number}: expected {len(DATA_COLUMNS)} fields, found {len(row)}")

    # Unquoted blanks arrive as None (NULL), quoted "" as an empty string, as COPY reads them.
    record: dict[str, object] = dict(zip(DATA_COLUMNS, row))
    for name, width in COLUMN_WIDTHS.items():
        value = record[name]
        if value is not None and len(value) > width:
            raise IngestError(f"line {line_number}: {name} is {len(value)} characters, column allows {width}")

    try:
        record["imdb_rating"] = parse_rating(record["imdb_rating"])
    except ValueError as exc:
        raise IngestError(f"line {line_number}: {exc}") from exc
    return record


def _read_records(path: Path) -> Iterator[dict[str, object]]:
    line_number = 0
    if csv.field_size_limit() < FIELD_SIZE_LIMIT:
        csv.field_size_limit(FIELD_SIZE_LIMIT)
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as infile:
            reader = csv.reader(infile, strict=True, quoting=csv.QUOTE_NOTNULL)
            header = next(reader, None)
            if header is None:
                raise IngestError(f"dataset {path} is empty, expected a header row")
            check_header(header)

            for row in reader:
                line_number = reader.line_num
                yield _check_row(line_number, row)
    except csv.Error as exc:
        raise IngestError(f"malformed CSV in {path} after line {line_number}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise IngestError(f"cannot read dataset {path}: {exc}") from exc


def scan_dataset(path: Path) -> DatasetScan:
    row_count = sum(1 for _ in _read_records(path))
    return DatasetScan(path=path, columns=DATA_COLUMNS, row_count=row_count)


def _copy_from_csv(conn: Connection, path: Path) -> int:
    dbapi_conn = conn.connection.dbapi_connection
    with path.open("r", encoding="utf-8-sig", newline="") as infile:
        with dbapi_conn.cursor() as cur:
            cur.copy_expert(COPY_SQL, infile)
            return cur.rowcount


def _insert_batches(conn: Connection, path: Path) -> int:
    written = 0
    batch: list[dict[str, object]] = []
    for record in _read_records(path):
        batch.append(record)
        if len(batch) >= INSERT_BATCH_SIZE:
            conn.execute(movies_table.insert(), batch)
            written += len(batch)
            batch = []
    if batch:
        conn.execute(movies_table.insert(), batch)
        written += len(batch)
    return written


def bulk_load(engine: Engine, path: Path) -> int:
    scan = scan_dataset(path)
    logger.info("dataset scanned", extra={"path": str(path), "rows": scan.row_count})

    try:
        with engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                written = _copy_from_csv(conn, path)
            else:
                written = _insert_batches(conn, path)
    except (SQLAlchemyError, psycopg2.Error) as exc:
        raise IngestError(f"bulk load into {TABLE_NAME} was rejected: {exc}") from exc
    except OSError as exc:
        raise IngestError(f"cannot read dataset {path}: {exc}") from exc

    logger.info("bulk load committed", extra={"table": TABLE_NAME, "rows": written})
    return written
