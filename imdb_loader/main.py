import argparse
import logging
import os

from sqlalchemy.exc import SQLAlchemyError

from imdb_loader.config import resolve_config
from imdb_loader.database import build_session_factory, build_target_engine
from imdb_loader.errors import ConfigurationError, LedgerError
from imdb_loader.pipeline import LEDGER_STAGE, LoadPipeline, early_failure
from imdb_loader.reporter import report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load the IMDB top 1000 dataset into PostgreSQL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    load_parser = subparsers.add_parser("load", help="drop, recreate and load the imdb_movies table")
    load_parser.add_argument("--csv", dest="csv_path", help="Path to the dataset (overrides IMDB_CSV_PATH)")
    load_parser.add_argument(
        "--expected",
        type=int,
        help="Expected record count (overrides EXPECTED_RECORD_COUNT)",
    )

    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run_load(args: argparse.Namespace) -> int:
    env = dict(os.environ)
    if args.csv_path:
        env["IMDB_CSV_PATH"] = args.csv_path
    if args.expected is not None:
        env["EXPECTED_RECORD_COUNT"] = str(args.expected)

    try:
        config = resolve_config(env)
    except ConfigurationError as exc:
        configure_logging(env.get("LOG_LEVEL") or "INFO")
        return report(early_failure("config", exc))

    configure_logging(config.log_level)

    try:
        session_factory = build_session_factory(config.ledger_database_url)
    except SQLAlchemyError as exc:
        error = LedgerError(f"cannot open run ledger: {exc}")
        return report(early_failure(LEDGER_STAGE, error, expected=config.expected_record_count))

    engine = build_target_engine(config)
    try:
        result = LoadPipeline(config, engine, session_factory).run()
    finally:
        engine.dispose()
    return report(result)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.command == "load":
        raise SystemExit(run_load(args))


if __name__ == "__main__":
    main()
