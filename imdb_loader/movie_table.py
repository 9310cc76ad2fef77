import logging

from sqlalchemy import Column, Engine, Integer, MetaData, Numeric, String, Table, Text
from sqlalchemy.exc import SQLAlchemyError

from imdb_loader.errors import SchemaError


logger = logging.getLogger(__name__)

TABLE_NAME = "imdb_movies"

metadata = MetaData()

movies_table = Table(
    TABLE_NAME,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("poster_link", Text),
    Column("series_title", String(255)),
    # year, meta score and vote count hold non-numeric sentinels in the dataset
    Column("released_year", Text),
    Column("certificate", String(20)),
    Column("runtime", String(20)),
    Column("genre", String(100)),
    Column("imdb_rating", Numeric(3, 1)),
    Column("overview", Text),
    Column("meta_score", Text),
    Column("director", String(100)),
    Column("star1", String(100)),
    Column("star2", String(100)),
    Column("star3", String(100)),
    Column("star4", String(100)),
    Column("no_of_votes", Text),
    Column("gross", String(20)),
)

# CSV header order. The primary key is generated by the database.
DATA_COLUMNS: tuple[str, ...] = tuple(column.name for column in movies_table.columns if column.name != "id")

COLUMN_WIDTHS: dict[str, int] = {
    column.name: column.type.length
    for column in movies_table.columns
    if isinstance(column.type, String) and column.type.length is not None
}


def recreate_movies_table(engine: Engine) -> None:
    try:
        with engine.begin() as conn:
            movies_table.drop(conn, checkfirst=True)
            movies_table.create(conn)
    except SQLAlchemyError as exc:
        raise SchemaError(f"could not recreate table {TABLE_NAME}: {exc}") from exc

    logger.info("table recreated", extra={"table": TABLE_NAME, "data_columns": len(DATA_COLUMNS)})
