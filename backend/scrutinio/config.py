"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scrutinio.services.objectstore import ObjectStoreConfig

logger = logging.getLogger(__name__)


class StorageConfig(ObjectStoreConfig):
    """Bucket layout for the table objects."""

    bucket: str = ""
    prefix: str = ""
    object_suffix: str = ".bin"  # ".parquet" for buckets written by the Next.js app

    def object_store_config(self) -> ObjectStoreConfig:
        return ObjectStoreConfig(**self.model_dump(include=set(ObjectStoreConfig.model_fields)))


class SecurityConfig(BaseModel):
    """Credential hashing and account rules."""

    password_iterations: int = Field(default=310_000, ge=1)
    salt_bytes: int = Field(default=16, ge=8)
    key_length: int = Field(default=32, ge=16)
    min_username_length: int = 3


class ServerConfig(BaseModel):
    """HTTP server parameters."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )


class Settings(BaseSettings):
    """Main configuration class."""

    config_path: Path = Path("config.yaml")
    log_level: str = "INFO"
    logfire_token: str = ""
    environment: str = "development"

    # Nested configuration sections
    storage: StorageConfig = Field(default_factory=StorageConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.config_path

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}. Using defaults.")
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["storage", "security", "server"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name] or {}

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get cached Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
