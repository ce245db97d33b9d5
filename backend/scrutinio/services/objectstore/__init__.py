from .client import ObjectStore, S3ObjectStore, create_object_store
from .config import ObjectStoreConfig
from .exceptions import ObjectNotFoundError, ObjectStoreError

__all__ = [
    "ObjectStore",
    "S3ObjectStore",
    "create_object_store",
    "ObjectStoreConfig",
    "ObjectStoreError",
    "ObjectNotFoundError",
]
