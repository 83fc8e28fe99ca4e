# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Значения по умолчанию берутся из config/config.json,
переменные окружения имеют приоритет.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Загружает config.json и возвращает словарь без ключей-комментариев."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "order_service"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/order_service.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_format(cls, v: str) -> str:
        """Допустимы только json и colored."""
        if v not in ("json", "colored"):
            raise ValueError(f"Неизвестный формат логов: {v}")
        return v


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_URL: str = "postgresql://localhost:5432/orders"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30

    @field_validator("DB_URL")
    @classmethod
    def strip_jdbc_prefix(cls, v: str) -> str:
        """Принимает JDBC-строку вида jdbc:postgresql://... и убирает префикс."""
        if v.startswith("jdbc:"):
            v = v[len("jdbc:"):]
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError(f"DB_URL должен начинаться с postgresql://: {v}")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL (без учётных данных)."""
        return self.DB_URL


class ProductServiceSettings(BaseModel):
    """Настройки клиента каталога товаров."""
    PRODUCT_SERVICE_BASE_URL: str = "http://localhost:8081"
    PRODUCT_SERVICE_TIMEOUT_MS: int = Field(5000, gt=0)

    @field_validator("PRODUCT_SERVICE_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def timeout_seconds(self) -> float:
        """Таймаут одного запроса в секундах."""
        return self.PRODUCT_SERVICE_TIMEOUT_MS / 1000


class HttpSettings(BaseModel):
    """Настройки HTTP-сервера."""
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = Field(8080, gt=0, lt=65536)


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    product_service: ProductServiceSettings = Field(default_factory=ProductServiceSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Значения переопределяются из переменных окружения.
        """
        data = load_config_json(path)

        def pick(key: str, default: Any) -> Any:
            return os.getenv(key, data.get(key, default))

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "order_service"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=pick("DEBUG", False),
                ENVIRONMENT=pick("ENVIRONMENT", "development"),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=pick("LOG_LEVEL", "INFO"),
                LOG_TO_FILE=pick("LOG_TO_FILE", False),
                LOG_FILE_PATH=pick("LOG_FILE_PATH", "logs/order_service.log"),
                LOG_FORMAT=pick("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            database=DatabaseSettings(
                DB_URL=pick("DB_URL", "postgresql://localhost:5432/orders"),
                DB_USER=pick("DB_USER", "postgres"),
                DB_PASSWORD=pick("DB_PASSWORD", ""),
                DB_MIN_POOL_SIZE=pick("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=pick("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=pick("DB_COMMAND_TIMEOUT", 30),
            ),
            product_service=ProductServiceSettings(
                PRODUCT_SERVICE_BASE_URL=pick("PRODUCT_SERVICE_BASE_URL", "http://localhost:8081"),
                PRODUCT_SERVICE_TIMEOUT_MS=pick("PRODUCT_SERVICE_TIMEOUT_MS", 5000),
            ),
            http=HttpSettings(
                HTTP_HOST=pick("HTTP_HOST", "0.0.0.0"),
                HTTP_PORT=pick("HTTP_PORT", 8080),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением подгружает .env из корня проекта, если он есть.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
