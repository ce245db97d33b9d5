"""Pytest configuration and fixtures."""

import threading

import pytest
from fastapi.testclient import TestClient

from scrutinio.accounts import UserLedger
from scrutinio.api import create_app
from scrutinio.bets import BetEngine
from scrutinio.config import SecurityConfig, Settings, StorageConfig
from scrutinio.services.objectstore import ObjectNotFoundError, ObjectStoreError
from scrutinio.storage import TableRepository

TEST_BUCKET = "scrutinio-test"
# Low iteration count keeps hashing fast; the token format is unchanged.
TEST_ITERATIONS = 1_000


class InMemoryObjectStore:
    """Dict-backed stand-in for S3ObjectStore.

    ``fail_on`` maps an operation name ("get", "put", "exists") to a key; the
    matching call raises ObjectStoreError, simulating a transport failure.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.fail_on: dict[str, str] = {}
        self.puts: list[str] = []
        self._lock = threading.Lock()

    def _maybe_fail(self, operation: str, key: str) -> None:
        if self.fail_on.get(operation) == key:
            raise ObjectStoreError(f"simulated {operation} failure", key=key)

    def exists(self, bucket: str, key: str) -> bool:
        self._maybe_fail("exists", key)
        return (bucket, key) in self.objects

    def get(self, bucket: str, key: str) -> bytes:
        self._maybe_fail("get", key)
        with self._lock:
            try:
                return self.objects[(bucket, key)]
            except KeyError:
                raise ObjectNotFoundError(f"Object not found: s3://{bucket}/{key}") from None

    def put(self, bucket: str, key: str, data: bytes) -> None:
        self._maybe_fail("put", key)
        with self._lock:
            self.objects[(bucket, key)] = bytes(data)
            self.puts.append(key)


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage=StorageConfig(bucket=TEST_BUCKET, prefix="test/"),
        security=SecurityConfig(password_iterations=TEST_ITERATIONS),
    )


@pytest.fixture
def repository(store, settings) -> TableRepository:
    return TableRepository.from_config(store, settings.storage)


@pytest.fixture
def ledger(repository, settings) -> UserLedger:
    return UserLedger(repository, settings.security)


@pytest.fixture
def engine(repository, ledger) -> BetEngine:
    return BetEngine(repository, ledger)


@pytest.fixture
def users(ledger):
    """Three registered users; ``admin`` holds the admin flag."""
    u1 = ledger.register("u1-owner", "pw1")
    u2 = ledger.register("u2-rival", "pw2")
    admin = ledger.register("admin", "root")
    ledger.set_admin(admin.id)
    return {"u1": u1.id, "u2": u2.id, "admin": admin.id}


@pytest.fixture
def client(settings, store) -> TestClient:
    app = create_app(settings, store=store)
    with TestClient(app) as test_client:
        yield test_client
