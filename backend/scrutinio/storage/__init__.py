"""Storage layer for Scrutinio - Parquet tables kept as whole objects in S3.

This package provides:
- Table schemas for the ``users`` and ``bets`` objects
- The Parquet codec (encode a full row set, decode into a restartable row view)
- The table repository (read-or-empty, overwrite-whole-table)
"""

from .codec import CodecError, DecodedRows, decode, encode
from .repository import TableRepository
from .schema import (
    BETS_SCHEMA,
    BETS_TABLE,
    TABLE_SCHEMAS,
    USERS_SCHEMA,
    USERS_TABLE,
    ColumnType,
    TableSchema,
)

__all__ = [
    # Codec
    "CodecError",
    "DecodedRows",
    "decode",
    "encode",
    # Repository
    "TableRepository",
    # Schemas
    "BETS_SCHEMA",
    "BETS_TABLE",
    "TABLE_SCHEMAS",
    "USERS_SCHEMA",
    "USERS_TABLE",
    "ColumnType",
    "TableSchema",
]
