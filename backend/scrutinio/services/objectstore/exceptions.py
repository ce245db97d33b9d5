class ObjectStoreError(Exception):
    """Base exception for object storage failures."""

    def __init__(self, message: str, bucket: str | None = None, key: str | None = None):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class ObjectNotFoundError(ObjectStoreError):
    """Requested object does not exist."""

    pass
