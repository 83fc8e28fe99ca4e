# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from src.config.loader import (
    DatabaseSettings,
    LoggingSettings,
    ProductServiceSettings,
    Settings,
    get_config_path,
    get_project_root,
    load_config_json,
)

ENV_KEYS = [
    "DEBUG",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "LOG_TO_FILE",
    "LOG_FILE_PATH",
    "LOG_FORMAT",
    "DB_URL",
    "DB_USER",
    "DB_PASSWORD",
    "DB_MIN_POOL_SIZE",
    "DB_MAX_POOL_SIZE",
    "DB_COMMAND_TIMEOUT",
    "PRODUCT_SERVICE_BASE_URL",
    "PRODUCT_SERVICE_TIMEOUT_MS",
    "HTTP_HOST",
    "HTTP_PORT",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Убирает переменные окружения, перекрывающие config.json."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Временный config.json с ключом-комментарием."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"_comment_db": "Настройки БД", **mock_config}),
        encoding="utf-8",
    )
    return path


class TestPaths:
    """Тесты путей проекта."""

    def test_root_contains_src_and_config(self) -> None:
        """Проверяет структуру корня проекта."""
        root = get_project_root()

        assert (root / "src").is_dir()
        assert (root / "config").is_dir()

    def test_config_path(self) -> None:
        """Проверяет путь к config.json."""
        assert get_config_path() == get_project_root() / "config" / "config.json"


class TestLoadConfigJson:
    """Тесты для load_config_json."""

    def test_comments_are_dropped(self, config_file: Path) -> None:
        """Проверяет, что ключи _comment_ отфильтрованы."""
        data = load_config_json(config_file)

        assert "_comment_db" not in data
        assert data["PRODUCT_SERVICE_TIMEOUT_MS"] == 1500

    def test_missing_file(self, tmp_path: Path) -> None:
        """Проверяет ошибку для отсутствующего файла."""
        with pytest.raises(FileNotFoundError):
            load_config_json(tmp_path / "missing.json")

    def test_project_config_is_valid(self, config_path: Path, clean_env) -> None:
        """Проверяет, что поставляемый config.json загружается."""
        settings = Settings.from_config_json(config_path)

        assert settings.system.PROJECT_NAME == "order_service"
        assert settings.http.HTTP_PORT == 8080
        assert settings.product_service.PRODUCT_SERVICE_TIMEOUT_MS == 5000


class TestSectionModels:
    """Тесты секций настроек."""

    def test_jdbc_prefix_stripped(self) -> None:
        """Проверяет приём JDBC-строки подключения."""
        db = DatabaseSettings(DB_URL="jdbc:postgresql://db:5432/orders")

        assert db.dsn == "postgresql://db:5432/orders"

    def test_unsupported_db_url(self) -> None:
        """Проверяет отказ для не-PostgreSQL URL."""
        with pytest.raises(ValidationError):
            DatabaseSettings(DB_URL="mysql://db/orders")

    def test_timeout_seconds(self) -> None:
        """Проверяет перевод таймаута в секунды."""
        product_service = ProductServiceSettings(PRODUCT_SERVICE_TIMEOUT_MS=2500)

        assert product_service.timeout_seconds == 2.5

    def test_timeout_must_be_positive(self) -> None:
        """Проверяет запрет нулевого таймаута."""
        with pytest.raises(ValidationError):
            ProductServiceSettings(PRODUCT_SERVICE_TIMEOUT_MS=0)

    def test_unknown_log_format(self) -> None:
        """Проверяет отказ для неизвестного формата логов."""
        with pytest.raises(ValidationError):
            LoggingSettings(LOG_FORMAT="xml")


class TestSettingsFromConfigJson:
    """Тесты сборки Settings из config.json и окружения."""

    def test_values_from_file(self, config_file: Path, clean_env) -> None:
        """Проверяет значения из файла."""
        settings = Settings.from_config_json(config_file)

        assert settings.system.ENVIRONMENT == "test"
        assert settings.logging.LOG_FORMAT == "json"
        assert settings.database.dsn == "postgresql://db.test:5432/orders_test"
        assert settings.database.DB_USER == "orders"
        assert settings.database.DB_MAX_POOL_SIZE == 4
        assert settings.product_service.PRODUCT_SERVICE_BASE_URL == "http://catalog.test"
        assert settings.product_service.timeout_seconds == 1.5
        assert settings.http.HTTP_PORT == 9090

    def test_env_overrides_file(self, config_file: Path, clean_env) -> None:
        """Проверяет приоритет переменных окружения."""
        clean_env.setenv("DB_URL", "postgresql://prod-db:5432/orders")
        clean_env.setenv("DB_PASSWORD", "from-env")
        clean_env.setenv("PRODUCT_SERVICE_TIMEOUT_MS", "750")
        clean_env.setenv("HTTP_PORT", "8181")

        settings = Settings.from_config_json(config_file)

        assert settings.database.DB_URL == "postgresql://prod-db:5432/orders"
        assert settings.database.DB_PASSWORD == "from-env"
        assert settings.product_service.PRODUCT_SERVICE_TIMEOUT_MS == 750
        assert settings.http.HTTP_PORT == 8181

    def test_defaults_for_missing_keys(self, tmp_path: Path, clean_env) -> None:
        """Проверяет значения по умолчанию для пустого файла."""
        path = tmp_path / "config.json"
        path.write_text("{}", encoding="utf-8")

        settings = Settings.from_config_json(path)

        assert settings.product_service.PRODUCT_SERVICE_TIMEOUT_MS == 5000
        assert settings.http.HTTP_PORT == 8080
        assert settings.database.DB_URL == "postgresql://localhost:5432/orders"
