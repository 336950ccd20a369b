"""Statement descriptors and their rendering to PostgreSQL text."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from psycopg import sql


class StatementKind(str, Enum):
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class RawExpression:
    """SQL embedded verbatim instead of being quoted as a literal."""

    sql: str


@dataclass(frozen=True)
class Statement:
    kind: StatementKind
    table: str
    values: Dict[str, Any] = field(default_factory=dict)
    pk: Optional[str] = None

    @property
    def sql(self) -> str:
        return render_statement(self)


def insert_statement(table: str, values: Mapping[str, Any], pk: str) -> Statement:
    return Statement(StatementKind.INSERT, table, dict(values), pk=pk)


def delete_statement(table: str, filters: Optional[Mapping[str, Any]] = None) -> Statement:
    return Statement(StatementKind.DELETE, table, dict(filters or {}))


def quote_literal(value: Any) -> str:
    return sql.Literal(value).as_string(None)


def _value_sql(value: Any) -> sql.Composable:
    if isinstance(value, RawExpression):
        return sql.SQL(value.sql)
    return sql.Literal(value)


def render_statement(statement: Statement) -> str:
    table = sql.Identifier(statement.table)

    if statement.kind is StatementKind.INSERT:
        columns = sql.SQL(", ").join(sql.Identifier(name) for name in statement.values)
        values = sql.SQL(", ").join(_value_sql(value) for value in statement.values.values())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({});").format(table, columns, values)
        return query.as_string(None)

    if not statement.values:
        return sql.SQL("DELETE FROM {};").format(table).as_string(None)

    conditions = sql.SQL(" AND ").join(
        sql.SQL("{} = {}").format(sql.Identifier(name), _value_sql(value))
        for name, value in statement.values.items()
    )
    return sql.SQL("DELETE FROM {} WHERE {};").format(table, conditions).as_string(None)
