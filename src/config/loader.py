# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
    """Загружает config.json и возвращает словарь."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "bts_delivery_client"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"
    COMPONENT_MODE: str = "web_client"


class DeploymentSettings(BaseModel):
    """Настройки развертывания веб-клиента."""
    WEB_CLIENT_HOST: str = "0.0.0.0"
    WEB_CLIENT_PORT: int = 8082
    STORAGE_SECRET: str = "change-me"

    @field_validator("STORAGE_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Секрет хранилища NiceGUI из окружения имеет приоритет."""
        return os.getenv("STORAGE_SECRET", "") or v


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class ApiSettings(BaseModel):
    """Настройки backend REST API."""
    API_BASE_URL: str = "http://localhost:5000"
    API_TIMEOUT: float = 10.0
    API_AUTH_TOKEN: str = ""

    @field_validator("API_AUTH_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv("API_AUTH_TOKEN", "")
        return v

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class RealtimeSettings(BaseModel):
    """Настройки WebSocket уведомлений."""
    WS_BASE_URL: str = "ws://localhost:5000"
    RECONNECT_DELAY: float = 3.0
    RECENT_ORDER_TTL: float = 30.0
    UNREAD_RESET_SECONDS: float = 10.0
    SOUND_ENABLED: bool = True

    @field_validator("RECONNECT_DELAY", "RECENT_ORDER_TTL", "UNREAD_RESET_SECONDS")
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("значение должно быть положительным")
        return v


class GoogleMapsSettings(BaseModel):
    """Настройки Google Maps API."""
    GOOGLE_MAPS_API_KEY: str = ""
    GEOCODING_LANGUAGE: str = "en"

    @field_validator("GOOGLE_MAPS_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает API ключ из переменных окружения."""
        if not v:
            return os.getenv("GOOGLE_MAPS_API_KEY", "")
        return v


class DeliverySettings(BaseModel):
    """Настройки процесса доставки."""
    LOCATION_UPDATE_INTERVAL: float = 10.0
    DEFAULT_CUSTOMER_RATING: int = 5
    CURRENCY_SYMBOL: str = "₱"

    @field_validator("DEFAULT_CUSTOMER_RATING")
    @classmethod
    def rating_range(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("рейтинг должен быть от 1 до 5")
        return v


class DomainSettings(BaseModel):
    """Настройки локализации."""
    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: list[str] = Field(default_factory=lambda: ["en", "fil"])
    TIMEZONE: str = "Asia/Manila"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    realtime: RealtimeSettings = Field(default_factory=RealtimeSettings)
    google_maps: GoogleMapsSettings = Field(default_factory=GoogleMapsSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт объект Settings из плоского словаря config.json.
        Секреты и адреса переопределяются из переменных окружения.
        """
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "bts_delivery_client"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                ENVIRONMENT=data.get("ENVIRONMENT", "development"),
                COMPONENT_MODE=os.getenv("COMPONENT_MODE", data.get("COMPONENT_MODE", "web_client")),
            ),
            deployment=DeploymentSettings(
                WEB_CLIENT_HOST=data.get("WEB_CLIENT_HOST", "0.0.0.0"),
                WEB_CLIENT_PORT=int(os.getenv("WEB_CLIENT_PORT", data.get("WEB_CLIENT_PORT", 8082))),
                STORAGE_SECRET=data.get("STORAGE_SECRET", "change-me"),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            api=ApiSettings(
                API_BASE_URL=os.getenv("API_BASE_URL", data.get("API_BASE_URL", "http://localhost:5000")),
                API_TIMEOUT=data.get("API_TIMEOUT", 10.0),
                API_AUTH_TOKEN=os.getenv("API_AUTH_TOKEN", data.get("API_AUTH_TOKEN", "")),
            ),
            realtime=RealtimeSettings(
                WS_BASE_URL=os.getenv("WS_BASE_URL", data.get("WS_BASE_URL", "ws://localhost:5000")),
                RECONNECT_DELAY=data.get("RECONNECT_DELAY", 3.0),
                RECENT_ORDER_TTL=data.get("RECENT_ORDER_TTL", 30.0),
                UNREAD_RESET_SECONDS=data.get("UNREAD_RESET_SECONDS", 10.0),
                SOUND_ENABLED=data.get("SOUND_ENABLED", True),
            ),
            google_maps=GoogleMapsSettings(
                GOOGLE_MAPS_API_KEY=os.getenv("GOOGLE_MAPS_API_KEY", data.get("GOOGLE_MAPS_API_KEY", "")),
                GEOCODING_LANGUAGE=data.get("GEOCODING_LANGUAGE", "en"),
            ),
            delivery=DeliverySettings(
                LOCATION_UPDATE_INTERVAL=data.get("LOCATION_UPDATE_INTERVAL", 10.0),
                DEFAULT_CUSTOMER_RATING=data.get("DEFAULT_CUSTOMER_RATING", 5),
                CURRENCY_SYMBOL=data.get("CURRENCY_SYMBOL", "₱"),
            ),
            domain=DomainSettings(
                DEFAULT_LANGUAGE=data.get("DEFAULT_LANGUAGE", "en"),
                SUPPORTED_LANGUAGES=data.get("SUPPORTED_LANGUAGES", ["en", "fil"]),
                TIMEZONE=data.get("TIMEZONE", "Asia/Manila"),
            ),
        )

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """Создаёт объект Settings из config.json."""
        return cls.from_dict(load_config_json(path))


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
