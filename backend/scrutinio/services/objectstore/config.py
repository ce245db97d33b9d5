from pydantic import BaseModel


class ObjectStoreConfig(BaseModel):
    """Connection parameters for an S3-compatible endpoint."""

    endpoint_url: str | None = "https://s3.cubbit.eu"
    region: str = "us-east-1"
    access_key_id: str = ""
    secret_access_key: str = ""
    force_path_style: bool = False
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 60.0
    max_attempts: int = 3

    @property
    def addressing_style(self) -> str:
        return "path" if self.force_path_style else "auto"
