"""Configuration loading for carto-sync: command-line flags over environment variables."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import (DEFAULT_BATCH_SIZE, DEFAULT_CARTO_BACKOFF_FACTOR,
                     DEFAULT_CARTO_BACKOFF_MAX, DEFAULT_CARTO_MAX_RETRIES,
                     DEFAULT_CARTO_SQL_URL, DEFAULT_CARTO_TIMEOUT,
                     DEFAULT_DB_CONNECT_TIMEOUT, CartoConfig, DatabaseConfig,
                     StatementOptions, SyncConfig)

TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the configuration is incomplete or contradictory."""


def _int(value: Optional[str], default: Optional[int]) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        return default


def _bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="carto-sync",
        description="Mirror form records into CARTO / PostGIS tables.",
    )
    parser.add_argument("--form", required=True, type=Path, help="Form document (JSON or YAML)")
    parser.add_argument("--records", required=True, type=Path, help="Records document (JSON or YAML)")
    parser.add_argument("--user", help="CARTO user name (CARTO_USER)")
    parser.add_argument("--api-key", help="CARTO API key (CARTO_API_KEY)")
    parser.add_argument("--database-url", help="Write to PostGIS directly instead (DATABASE_URL)")
    parser.add_argument("--batch-size", type=int, help="Statements per request (BATCH_SIZE)")
    parser.add_argument("--reset", action="store_true", help="Delete every row of the form first")
    parser.add_argument("--dry-run", action="store_true", help="Print SQL instead of running it")
    parser.add_argument("--search-index", action="store_true", default=None, help="Fill record_index columns")
    parser.add_argument(
        "--multiple-values", action="store_true", default=None, help="Fill the _values table"
    )
    parser.add_argument("--max-depth", type=int, help="Maximum repeatable nesting (MAX_DEPTH)")
    return parser


def load_config(args: argparse.Namespace) -> SyncConfig:
    """Build the sync configuration from parsed flags, ``.env`` and the environment."""
    load_dotenv()

    options = StatementOptions(
        search_index=args.search_index if args.search_index is not None else _bool(os.getenv("SEARCH_INDEX")),
        multiple_values=(
            args.multiple_values
            if args.multiple_values is not None
            else _bool(os.getenv("MULTIPLE_VALUES"))
        ),
        max_depth=args.max_depth if args.max_depth is not None else _int(os.getenv("MAX_DEPTH"), None),
    )

    batch_size = args.batch_size or _int(os.getenv("BATCH_SIZE"), DEFAULT_BATCH_SIZE)
    if batch_size < 1:
        raise ConfigError("Batch size must be positive")

    database_url = args.database_url or os.getenv("DATABASE_URL")
    database = None
    carto = None

    if database_url:
        database = DatabaseConfig(
            url=database_url,
            connect_timeout=_float(os.getenv("DATABASE_CONNECT_TIMEOUT"), DEFAULT_DB_CONNECT_TIMEOUT),
        )
    else:
        user = (args.user or os.getenv("CARTO_USER") or "").strip()
        api_key = (args.api_key or os.getenv("CARTO_API_KEY") or "").strip()
        if not args.dry_run and not (user and api_key):
            raise ConfigError(
                "CARTO_USER and CARTO_API_KEY (or --user/--api-key) are required unless --database-url is given"
            )
        if user and api_key:
            carto = CartoConfig(
                user=user,
                api_key=api_key,
                url=os.getenv("CARTO_SQL_URL", DEFAULT_CARTO_SQL_URL),
                timeout=_float(os.getenv("CARTO_TIMEOUT"), DEFAULT_CARTO_TIMEOUT),
                max_retries=_int(os.getenv("CARTO_MAX_RETRIES"), DEFAULT_CARTO_MAX_RETRIES),
                backoff_factor=_float(os.getenv("CARTO_BACKOFF_FACTOR"), DEFAULT_CARTO_BACKOFF_FACTOR),
                backoff_max=_float(os.getenv("CARTO_BACKOFF_MAX"), DEFAULT_CARTO_BACKOFF_MAX),
            )

    return SyncConfig(
        form_path=args.form,
        records_path=args.records,
        carto=carto,
        database=database,
        options=options,
        batch_size=batch_size,
        reset_form=args.reset,
        dry_run=args.dry_run,
    )
