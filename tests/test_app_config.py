import pytest

from utils.app_config import DEFAULT_MAX_UPLOAD_BYTES, AppConfig


def test_defaults(monkeypatch, tmp_path):
    for name in ("UPLOAD_DIR", "MAX_UPLOAD_BYTES", "DATABASE_RESET", "DEV_AUTO_LOGIN", "OPENAI_MODEL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))

    config = AppConfig.from_env()

    assert config.database_dir == tmp_path
    assert config.upload_dir == tmp_path / "uploads"
    assert config.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 100 * 1024 * 1024
    assert config.dev_auto_login is False
    assert config.reset_database is False
    assert config.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "files"))
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("DEV_AUTO_LOGIN", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = AppConfig.from_env()

    assert config.upload_dir == tmp_path / "files"
    assert config.max_upload_bytes == 2048
    assert config.dev_auto_login is True
    assert config.log_level == "DEBUG"


def test_missing_database_dir_is_an_error(monkeypatch):
    monkeypatch.delenv("DATABASE_DIR", raising=False)

    with pytest.raises(RuntimeError):
        AppConfig.from_env()


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_invalid_upload_ceiling_is_an_error(monkeypatch, tmp_path, value):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    monkeypatch.setenv("MAX_UPLOAD_BYTES", value)

    with pytest.raises(RuntimeError):
        AppConfig.from_env()
