from pathlib import Path

import pytest

from carto_sync.config import ConfigError, build_parser, load_config
from carto_sync.models import DEFAULT_BATCH_SIZE

ENV_VARS = [
    "CARTO_USER",
    "CARTO_API_KEY",
    "CARTO_SQL_URL",
    "CARTO_TIMEOUT",
    "CARTO_MAX_RETRIES",
    "DATABASE_URL",
    "BATCH_SIZE",
    "SEARCH_INDEX",
    "MULTIPLE_VALUES",
    "MAX_DEPTH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def _parse(*argv: str):
    return build_parser().parse_args(["--form", "form.json", "--records", "records.json", *argv])


def test_flags_build_carto_config() -> None:
    config = load_config(_parse("--user", "acme", "--api-key", "secret"))

    assert config.carto is not None
    assert config.carto.sql_url == "https://acme.carto.com/api/v2/sql"
    assert config.carto.api_key == "secret"
    assert config.database is None
    assert config.batch_size == DEFAULT_BATCH_SIZE
    assert config.form_path == Path("form.json")
    assert not config.options.search_index


def test_environment_supplies_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARTO_USER", "acme")
    monkeypatch.setenv("CARTO_API_KEY", "secret")
    monkeypatch.setenv("BATCH_SIZE", "50")
    monkeypatch.setenv("SEARCH_INDEX", "yes")
    monkeypatch.setenv("MAX_DEPTH", "4")
    monkeypatch.setenv("CARTO_MAX_RETRIES", "not-a-number")

    config = load_config(_parse())

    assert config.batch_size == 50
    assert config.options.search_index
    assert not config.options.multiple_values
    assert config.options.max_depth == 4
    assert config.carto.max_retries == 3


def test_flags_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARTO_USER", "env-user")
    monkeypatch.setenv("CARTO_API_KEY", "env-key")
    monkeypatch.setenv("BATCH_SIZE", "50")

    config = load_config(_parse("--user", "flag-user", "--batch-size", "10", "--multiple-values"))

    assert config.carto.user == "flag-user"
    assert config.batch_size == 10
    assert config.options.multiple_values


def test_database_url_replaces_carto() -> None:
    config = load_config(_parse("--database-url", "postgresql+psycopg://u:p@localhost/gis"))

    assert config.carto is None
    assert config.database.url == "postgresql+psycopg://u:p@localhost/gis"


def test_missing_credentials_are_an_error() -> None:
    with pytest.raises(ConfigError):
        load_config(_parse())


def test_dry_run_needs_no_credentials() -> None:
    config = load_config(_parse("--dry-run", "--reset"))

    assert config.dry_run
    assert config.reset_form
    assert config.carto is None


def test_batch_size_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATCH_SIZE", "0")

    with pytest.raises(ConfigError):
        load_config(_parse("--dry-run"))
