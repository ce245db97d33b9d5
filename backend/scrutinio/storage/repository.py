"""Whole-table persistence on top of an object store.

Each logical table lives in exactly one object. Reads fetch and decode the
entire object; writes encode the entire row set and overwrite the object
unconditionally. There is no append or partial update path, and no
conditional write: two writers racing on one table lose updates.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from scrutinio.config import StorageConfig
from scrutinio.exceptions import StorageError
from scrutinio.services.objectstore import ObjectNotFoundError, ObjectStore, ObjectStoreError
from scrutinio.storage import codec
from scrutinio.storage.schema import TABLE_SCHEMAS, TableSchema

logger = logging.getLogger(__name__)


class TableRepository:
    """Read-or-empty / write-whole-table access to the ``users`` and ``bets`` objects."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        prefix: str = "",
        suffix: str = ".bin",
        schemas: Mapping[str, TableSchema] | None = None,
    ):
        if not bucket:
            raise ValueError("Storage bucket is not configured (set STORAGE__BUCKET)")
        self.store = store
        self.bucket = bucket
        self.prefix = prefix
        self.suffix = suffix
        self.schemas = dict(schemas or TABLE_SCHEMAS)

    @classmethod
    def from_config(cls, store: ObjectStore, config: StorageConfig) -> "TableRepository":
        return cls(store, bucket=config.bucket, prefix=config.prefix, suffix=config.object_suffix)

    def object_key(self, table: str) -> str:
        self._schema(table)
        return f"{self.prefix}{table}{self.suffix}"

    def _schema(self, table: str) -> TableSchema:
        try:
            return self.schemas[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    def table_exists(self, table: str) -> bool:
        key = self.object_key(table)
        try:
            return self.store.exists(self.bucket, key)
        except ObjectStoreError as e:
            raise StorageError(str(e)) from e

    def read_table(self, table: str) -> Sequence[dict[str, Any]]:
        """Return every row of ``table``, or an empty list if the object does not exist yet."""
        schema = self._schema(table)
        key = self.object_key(table)

        try:
            data = self.store.get(self.bucket, key)
        except ObjectNotFoundError:
            logger.info(f"Table object s3://{self.bucket}/{key} not found, treating as empty")
            return []
        except ObjectStoreError as e:
            raise StorageError(str(e)) from e

        try:
            rows = codec.decode(data, schema)
        except codec.CodecError as e:
            logger.error(f"Corrupted table object s3://{self.bucket}/{key}: {e}")
            raise StorageError(str(e)) from e

        logger.debug(f"Read {len(rows)} rows from {table}")
        return rows

    def write_table(self, table: str, rows: Iterable[Mapping[str, Any]]) -> None:
        """Encode the full row set and overwrite the table object."""
        schema = self._schema(table)
        key = self.object_key(table)

        try:
            data = codec.encode(schema, rows)
        except codec.CodecError as e:
            raise StorageError(str(e)) from e

        try:
            self.store.put(self.bucket, key, data)
        except ObjectStoreError as e:
            raise StorageError(str(e)) from e

        logger.debug(f"Wrote table {table} to s3://{self.bucket}/{key}")
