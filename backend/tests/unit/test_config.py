"""
Unit Tests: Settings

Test cases:
- Nested env vars with the ``__`` delimiter
- YAML overlay merged section by section
"""

from scrutinio.config import Settings


def test_nested_env_vars(monkeypatch):
    monkeypatch.setenv("STORAGE__BUCKET", "school-bets")
    monkeypatch.setenv("STORAGE__OBJECT_SUFFIX", ".parquet")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.storage.bucket == "school-bets"
    assert settings.storage.object_suffix == ".parquet"
    assert settings.log_level == "DEBUG"


def test_yaml_overlay_keeps_unlisted_fields(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "storage:\n"
        "  bucket: from-yaml\n"
        "  force_path_style: true\n"
        "server:\n"
        "  port: 9000\n",
        encoding="utf-8",
    )

    settings = Settings(_env_file=None, config_path=config_file)
    settings.load_yaml_config()

    assert settings.storage.bucket == "from-yaml"
    assert settings.storage.object_store_config().addressing_style == "path"
    assert settings.storage.region == "us-east-1"
    assert settings.server.port == 9000
    assert settings.security.password_iterations == 310_000


def test_missing_yaml_file_uses_defaults(tmp_path):
    settings = Settings(_env_file=None, config_path=tmp_path / "absent.yaml")
    settings.load_yaml_config()

    assert settings.storage.object_suffix == ".bin"
