import logging

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from imdb_loader.errors import ConnectivityError


logger = logging.getLogger(__name__)


def probe_connection(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise ConnectivityError(
            f"cannot connect to database at {engine.url.render_as_string(hide_password=True)}: {exc}"
        ) from exc

    logger.info("database connection successful", extra={"dialect": engine.dialect.name})
