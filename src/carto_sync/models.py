from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_CARTO_SQL_URL = "https://{user}.carto.com/api/v2/sql"
DEFAULT_CARTO_TIMEOUT = 60.0
DEFAULT_CARTO_MAX_RETRIES = 3
DEFAULT_CARTO_BACKOFF_FACTOR = 1.0
DEFAULT_CARTO_BACKOFF_MAX = 30.0
DEFAULT_DB_CONNECT_TIMEOUT = 60.0
DEFAULT_BATCH_SIZE = 1000
DEFAULT_PRIMARY_KEY = "cartodb_id"


@dataclass(frozen=True)
class CartoConfig:
    user: str
    api_key: str
    url: str = DEFAULT_CARTO_SQL_URL
    timeout: float = DEFAULT_CARTO_TIMEOUT
    max_retries: int = DEFAULT_CARTO_MAX_RETRIES
    backoff_factor: float = DEFAULT_CARTO_BACKOFF_FACTOR
    backoff_max: float = DEFAULT_CARTO_BACKOFF_MAX

    @property
    def sql_url(self) -> str:
        return self.url.format(user=self.user)


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    connect_timeout: float = DEFAULT_DB_CONNECT_TIMEOUT


@dataclass(frozen=True)
class StatementOptions:
    """Switches for the optional parts of statement generation."""

    search_index: bool = False
    multiple_values: bool = False
    max_depth: Optional[int] = None
    primary_key: str = DEFAULT_PRIMARY_KEY


@dataclass(frozen=True)
class SyncConfig:
    form_path: Path
    records_path: Path
    carto: Optional[CartoConfig] = None
    database: Optional[DatabaseConfig] = None
    options: StatementOptions = field(default_factory=StatementOptions)
    batch_size: int = DEFAULT_BATCH_SIZE
    reset_form: bool = False
    dry_run: bool = False
