from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from imdb_loader.errors import ConfigurationError


load_dotenv()

REQUIRED_SETTINGS = ("POSTGRES_DB", "POSTGRES_USER", "POSTGRES_PASSWORD")


@dataclass(frozen=True)
class LoadConfig:
    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    csv_path: str
    expected_record_count: int
    connect_timeout_seconds: int = 5
    ledger_database_url: str = "sqlite:///./load_runs.db"
    log_level: str = "INFO"


def _int_setting(env: Mapping[str, str], name: str, default: str, *, minimum: int) -> int:
    raw = env.get(name) or default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def resolve_config(environ: Mapping[str, str] | None = None) -> LoadConfig:
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_SETTINGS if not env.get(name)]
    if missing:
        raise ConfigurationError(f"missing required environment variables: {', '.join(missing)}")

    csv_path = env.get("IMDB_CSV_PATH") or "data/imdb_top_1000.csv"
    if not Path(csv_path).is_file():
        raise ConfigurationError(f"dataset file not found: {csv_path}")

    return LoadConfig(
        db_host=env.get("POSTGRES_HOST") or "localhost",
        db_port=_int_setting(env, "POSTGRES_PORT", "5432", minimum=1),
        db_name=env["POSTGRES_DB"],
        db_user=env["POSTGRES_USER"],
        db_password=env["POSTGRES_PASSWORD"],
        csv_path=csv_path,
        expected_record_count=_int_setting(env, "EXPECTED_RECORD_COUNT", "1000", minimum=1),
        connect_timeout_seconds=_int_setting(env, "DB_CONNECT_TIMEOUT", "5", minimum=1),
        ledger_database_url=env.get("LEDGER_DATABASE_URL") or "sqlite:///./load_runs.db",
        log_level=env.get("LOG_LEVEL") or "INFO",
    )
