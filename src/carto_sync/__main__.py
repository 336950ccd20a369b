from __future__ import annotations

import asyncio
import os
import sys
from typing import Optional, Protocol, Sequence

from rich.console import Console

from .carto_client import CartoApiError, CartoSqlClient
from .config import ConfigError, build_parser, load_config
from .db_connector import DatabaseRunner
from .documents import DocumentError
from .logging_utils import get_logger, setup_logging
from .models import SyncConfig
from .sync import PrintRunner, SyncResult, run_sync

console = Console()
LOGGER = get_logger("carto_sync.cli")


class TableLister(Protocol):
    async def list_tables(self) -> list[str]: ...


async def log_existing_tables(runner: TableLister) -> list[str]:
    tables = await runner.list_tables()
    LOGGER.info("Existing tables:\n  %s", "\n  ".join(tables) or "(none)")
    return tables


async def execute(config: SyncConfig) -> SyncResult:
    if config.dry_run:
        return await run_sync(config, PrintRunner(console), console=console)

    if config.database is not None:
        async with DatabaseRunner(config.database) as runner:
            await log_existing_tables(runner)
            return await run_sync(config, runner, console=console)

    async with CartoSqlClient(config.carto) as client:
        await log_existing_tables(client)
        return await run_sync(config, client, console=console)


def main(argv: Optional[Sequence[str]] = None) -> None:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        result = asyncio.run(execute(config))
    except DocumentError as exc:
        LOGGER.error("Input error: %s", exc)
        print(f"Input error: {exc}", file=sys.stderr)
        sys.exit(1)
    except CartoApiError as exc:
        LOGGER.exception("CARTO SQL API error")
        print(f"API error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:  # pragma: no cover - guard for CLI usage
        LOGGER.exception("Sync failed")
        print(f"Sync failed: {exc}", file=sys.stderr)
        sys.exit(3)

    if result.records_failed or result.batches_failed:
        sys.exit(3)


if __name__ == "__main__":
    main()
