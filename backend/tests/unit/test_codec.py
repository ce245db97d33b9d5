"""
Unit Tests: Parquet Codec

Test cases:
- Typed columns survive encode/decode
- Decoded rows can be iterated more than once
- Missing columns fall back to defaults, extra columns are dropped
- Out-of-range integers and garbage bytes raise CodecError
"""

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from scrutinio.storage import BETS_SCHEMA, USERS_SCHEMA, CodecError, decode, encode


def _parquet_bytes(table: pa.Table) -> bytes:
    sink = pa.BufferOutputStream()
    pq.write_table(table, sink)
    return sink.getvalue().to_pybytes()


def test_users_rows_keep_their_types():
    rows = [
        {"id": "a1", "username": "alice", "password": "x", "wins": 3, "losses": 1, "is_admin": True},
        {"id": "b2", "username": "bob", "password": "y", "wins": 0, "losses": 7, "is_admin": False},
    ]

    decoded = decode(encode(USERS_SCHEMA, rows), USERS_SCHEMA)

    assert len(decoded) == 2
    assert list(decoded) == rows
    assert isinstance(decoded[0]["wins"], int)
    assert decoded[0]["is_admin"] is True


def test_decoded_rows_are_restartable():
    rows = [{"id": str(i), "subject": f"S{i}"} for i in range(5)]
    decoded = decode(encode(BETS_SCHEMA, rows), BETS_SCHEMA)

    first = [row["id"] for row in decoded]
    second = [row["id"] for row in decoded]

    assert first == second == ["0", "1", "2", "3", "4"]
    assert decoded[-1]["id"] == "4"
    assert [row["id"] for row in decoded[1:3]] == ["1", "2"]


def test_empty_row_set_decodes_to_empty_sequence():
    decoded = decode(encode(USERS_SCHEMA, []), USERS_SCHEMA)

    assert len(decoded) == 0
    assert list(decoded) == []


def test_missing_values_become_column_defaults():
    decoded = decode(encode(USERS_SCHEMA, [{"id": "a1", "username": "alice"}]), USERS_SCHEMA)

    assert decoded[0] == {
        "id": "a1",
        "username": "alice",
        "password": "",
        "wins": 0,
        "losses": 0,
        "is_admin": False,
    }


def test_older_layout_without_is_admin_still_decodes():
    legacy = pa.table(
        {
            "id": pa.array(["a1"], pa.string()),
            "username": pa.array(["alice"], pa.string()),
            "password": pa.array(["demo"], pa.string()),
            "wins": pa.array([2], pa.int64()),
            "losses": pa.array([1], pa.int64()),
            "note": pa.array(["dropped"], pa.string()),
        }
    )

    decoded = decode(_parquet_bytes(legacy), USERS_SCHEMA)

    assert decoded[0]["is_admin"] is False
    assert decoded[0]["wins"] == 2
    assert "note" not in decoded[0]


def test_int32_overflow_is_rejected():
    with pytest.raises(CodecError, match="int32"):
        encode(USERS_SCHEMA, [{"id": "a", "username": "a", "wins": 2**31}])


def test_non_integer_counter_is_rejected():
    with pytest.raises(CodecError, match="integer"):
        encode(USERS_SCHEMA, [{"id": "a", "username": "a", "wins": "many"}])


def test_boolean_text_is_parsed():
    rows = [
        {"id": "a", "username": "a", "is_admin": "false"},
        {"id": "b", "username": "b", "is_admin": "True"},
        {"id": "c", "username": "c", "is_admin": 0},
    ]

    decoded = decode(encode(USERS_SCHEMA, rows), USERS_SCHEMA)

    assert [row["is_admin"] for row in decoded] == [False, True, False]


def test_non_boolean_flag_is_rejected():
    with pytest.raises(CodecError, match="boolean"):
        encode(USERS_SCHEMA, [{"id": "a", "username": "a", "is_admin": "maybe"}])


def test_garbage_bytes_raise_codec_error():
    with pytest.raises(CodecError):
        decode(b"definitely not parquet", USERS_SCHEMA)
