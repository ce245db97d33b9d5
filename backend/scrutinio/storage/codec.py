"""Parquet encoding of fixed-schema row sets.

A table is always written and read as one complete Parquet buffer. Decoding
parses the whole buffer up front and hands back a ``DecodedRows`` view, a
finite sequence that converts Arrow record batches to plain dicts on
iteration. Iterating it twice yields the same rows in the same order.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from scrutinio.storage.schema import ColumnType, TableSchema

logger = logging.getLogger(__name__)

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_BOOLEAN_TEXT = {"true": True, "false": False, "1": True, "0": False}

_ARROW_TYPES: dict[ColumnType, pa.DataType] = {
    ColumnType.UTF8: pa.string(),
    ColumnType.INT32: pa.int32(),
    ColumnType.BOOLEAN: pa.bool_(),
}

COLUMN_DEFAULTS: dict[ColumnType, Any] = {
    ColumnType.UTF8: "",
    ColumnType.INT32: 0,
    ColumnType.BOOLEAN: False,
}


class CodecError(ValueError):
    """Bytes could not be decoded, or rows could not be encoded, for a schema."""

    pass


def arrow_schema(schema: TableSchema) -> pa.Schema:
    return pa.schema([(name, _ARROW_TYPES[col_type]) for name, col_type in schema.items()])


def _coerce(value: Any, col_type: ColumnType, column: str) -> Any:
    if value is None:
        return COLUMN_DEFAULTS[col_type]
    if col_type is ColumnType.UTF8:
        return str(value)
    if col_type is ColumnType.INT32:
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Column {column!r} expects an integer, got {value!r}") from e
        if not _INT32_MIN <= number <= _INT32_MAX:
            raise CodecError(f"Column {column!r} value {number} is outside int32 range")
        return number
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _BOOLEAN_TEXT:
        return _BOOLEAN_TEXT[text]
    raise CodecError(f"Column {column!r} expects a boolean, got {value!r}")


class DecodedRows(Sequence[dict[str, Any]]):
    """Restartable row view over a decoded Arrow table."""

    def __init__(self, table: pa.Table, schema: TableSchema):
        self._table = table
        self._defaults = {name: COLUMN_DEFAULTS[col_type] for name, col_type in schema.items()}

    def _fill(self, row: dict[str, Any]) -> dict[str, Any]:
        return {
            name: default if row.get(name) is None else row[name]
            for name, default in self._defaults.items()
        }

    def __len__(self) -> int:
        return self._table.num_rows

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("row index out of range")
        return self._fill(self._table.slice(index, 1).to_pylist()[0])

    def __iter__(self) -> Iterator[dict[str, Any]]:
        for batch in self._table.to_batches():
            for row in batch.to_pylist():
                yield self._fill(row)

    def __repr__(self) -> str:
        return f"DecodedRows(rows={len(self)}, columns={list(self._defaults)})"


def encode(schema: TableSchema, rows: Iterable[Mapping[str, Any]]) -> bytes:
    """Encode the complete row set as a Parquet buffer."""
    materialized = list(rows)
    columns = {
        name: [_coerce(row.get(name), col_type, name) for row in materialized]
        for name, col_type in schema.items()
    }
    table = pa.Table.from_pydict(columns, schema=arrow_schema(schema))

    sink = pa.BufferOutputStream()
    pq.write_table(table, sink)
    data = sink.getvalue().to_pybytes()
    logger.debug(f"Encoded {len(materialized)} rows into {len(data)} bytes")
    return data


def decode(data: bytes, schema: TableSchema) -> DecodedRows:
    """Decode a Parquet buffer, conforming it to ``schema``.

    Columns absent from the file are filled with the column default, so
    objects written before a column existed still decode. Extra columns are
    dropped.
    """
    try:
        table = pq.read_table(pa.BufferReader(data))
    except (pa.ArrowException, OSError, ValueError) as e:
        raise CodecError(f"Failed to decode Parquet buffer: {e}") from e

    arrays = []
    for name, col_type in schema.items():
        target = _ARROW_TYPES[col_type]
        if name not in table.column_names:
            default = COLUMN_DEFAULTS[col_type]
            arrays.append(pa.chunked_array([pa.array([default] * table.num_rows, type=target)]))
            continue
        column = table.column(name)
        if not column.type.equals(target):
            try:
                column = column.cast(target)
            except (pa.ArrowException, ValueError) as e:
                raise CodecError(f"Column {name!r} cannot be read as {col_type.value}: {e}") from e
        arrays.append(column)

    conformed = pa.Table.from_arrays(arrays, schema=arrow_schema(schema))
    return DecodedRows(conformed, schema)
