"""Column layouts of the two table objects."""

from enum import Enum


class ColumnType(str, Enum):
    UTF8 = "UTF8"
    INT32 = "INT32"
    BOOLEAN = "BOOLEAN"


TableSchema = dict[str, ColumnType]

USERS_TABLE = "users"
BETS_TABLE = "bets"

USERS_SCHEMA: TableSchema = {
    "id": ColumnType.UTF8,
    "username": ColumnType.UTF8,
    "password": ColumnType.UTF8,
    "wins": ColumnType.INT32,
    "losses": ColumnType.INT32,
    "is_admin": ColumnType.BOOLEAN,
}

# Nested values (participants, probation detail) are JSON strings.
BETS_SCHEMA: TableSchema = {
    "id": ColumnType.UTF8,
    "owner_id": ColumnType.UTF8,
    "subject": ColumnType.UTF8,
    "esito": ColumnType.UTF8,
    "sospensione_json": ColumnType.UTF8,
    "invite_code": ColumnType.UTF8,
    "participants_json": ColumnType.UTF8,
    "created_at": ColumnType.UTF8,
    "terminated_at": ColumnType.UTF8,
    "realized": ColumnType.UTF8,
}

TABLE_SCHEMAS: dict[str, TableSchema] = {
    USERS_TABLE: USERS_SCHEMA,
    BETS_TABLE: BETS_SCHEMA,
}
