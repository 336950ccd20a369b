"""Drives a form's records through statement generation and a SQL runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Protocol

from pydantic import ValidationError
from rich.console import Console

from .columns import ColumnCollisionError
from .documents import iter_record_documents, load_document
from .forms import Form, form_from_json
from .models import SyncConfig
from .record_values import (FeatureTraversalError, delete_for_form_statements,
                            update_for_record_statements)
from .records import record_from_json

LOGGER = logging.getLogger("carto_sync")

RECORD_ERRORS = (ValidationError, FeatureTraversalError, ColumnCollisionError)


class StatementRunner(Protocol):
    async def run(self, sql: str) -> Any: ...


@dataclass
class SyncResult:
    records_processed: int = 0
    records_failed: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    statements: int = 0


class PrintRunner:
    """Runner used for dry runs: writes the SQL instead of executing it."""

    def __init__(self, console: Console) -> None:
        self._console = console

    async def run(self, sql: str) -> None:
        self._console.print(sql, markup=False, highlight=False, soft_wrap=True)


class StatementBatcher:
    """Accumulates statements and submits them in order, ``batch_size`` at a time."""

    def __init__(self, runner: StatementRunner, batch_size: int, result: SyncResult) -> None:
        self._runner = runner
        self._batch_size = max(1, batch_size)
        self._result = result
        self._pending: List[str] = []

    async def add(self, statements: Iterable[str]) -> None:
        for sql in statements:
            self._pending.append(sql)
            self._result.statements += 1
        if len(self._pending) >= self._batch_size:
            await self.flush()

    async def flush(self) -> None:
        if not self._pending:
            return
        sql = "\n".join(self._pending)
        count = len(self._pending)
        self._pending = []
        try:
            await self._runner.run(sql)
        except Exception as exc:
            self._result.batches_failed += 1
            LOGGER.error("Batch of %s statements failed: %s", count, exc)
            return
        self._result.batches_sent += 1
        LOGGER.debug("Submitted batch of %s statements", count)


def _record_id(document: Mapping[str, Any]) -> str:
    inner = document.get("record")
    if isinstance(inner, Mapping):
        document = inner
    return str(document.get("id", "?"))


def load_form(config: SyncConfig) -> Form:
    return form_from_json(load_document(config.form_path))


async def run_sync(
    config: SyncConfig, runner: StatementRunner, console: Optional[Console] = None
) -> SyncResult:
    active_console = console or Console()
    result = SyncResult()

    form = load_form(config)
    LOGGER.info("Syncing form %s (%s)", form.name or form.id, form.id)

    batcher = StatementBatcher(runner, config.batch_size, result)

    if config.reset_form:
        LOGGER.info("Deleting all rows of form %s", form.id)
        await batcher.add(statement.sql for statement in delete_for_form_statements(form))
        await batcher.flush()

    documents = load_document(config.records_path)

    with active_console.status("Building record statements...") as status:
        for document in iter_record_documents(documents):
            record_id = _record_id(document)
            try:
                record = record_from_json(form, document)
                statements = [
                    statement.sql for statement in update_for_record_statements(record, config.options)
                ]
            except RECORD_ERRORS as exc:
                result.records_failed += 1
                LOGGER.error("Skipping record %s: %s", record_id, exc)
                continue
            except Exception:
                result.records_failed += 1
                LOGGER.exception("Skipping record %s: unexpected error", record_id)
                continue

            await batcher.add(statements)
            result.records_processed += 1

            if result.records_processed % 25 == 0:
                status.update(
                    f"Processed {result.records_processed} records; {result.statements} statements"
                )

        await batcher.flush()

    LOGGER.info(
        "Sync completed: %s records (%s failed), %s batches (%s failed)",
        result.records_processed,
        result.records_failed,
        result.batches_sent,
        result.batches_failed,
    )
    return result
