# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.config.loader import (
    get_project_root,
    get_config_path,
    load_config_json,
    SystemSettings,
    DeploymentSettings,
    LoggingSettings,
    ApiSettings,
    RealtimeSettings,
    GoogleMapsSettings,
    DeliverySettings,
    DomainSettings,
    Settings,
)


class TestGetProjectRoot:
    """Тесты для функции get_project_root."""

    def test_returns_path_object(self) -> None:
        assert isinstance(get_project_root(), Path)

    def test_root_contains_src_directory(self) -> None:
        """В корне проекта есть директория src."""
        assert (get_project_root() / "src").is_dir()

    def test_root_contains_config_directory(self) -> None:
        assert (get_project_root() / "config").is_dir()


class TestGetConfigPath:
    """Тесты для функции get_config_path."""

    def test_path_ends_with_config_json(self) -> None:
        path = get_config_path()

        assert path.name == "config.json"
        assert path.parent.name == "config"


class TestLoadConfigJson:
    """Тесты для функции load_config_json."""

    def test_loads_dict(self) -> None:
        config = load_config_json()

        assert isinstance(config, dict)

    def test_contains_required_keys(self) -> None:
        """Проверяет наличие обязательных ключей."""
        config = load_config_json()

        for key in ("PROJECT_NAME", "API_BASE_URL", "WS_BASE_URL", "RECENT_ORDER_TTL", "CURRENCY_SYMBOL"):
            assert key in config

    def test_raises_file_not_found(self, tmp_path: Path) -> None:
        """Проверяет исключение при отсутствии файла."""
        with pytest.raises(FileNotFoundError):
            load_config_json(tmp_path / "nonexistent.json")


class TestSectionDefaults:
    """Значения по умолчанию секций настроек."""

    def test_system_defaults(self) -> None:
        settings = SystemSettings()

        assert settings.PROJECT_NAME == "bts_delivery_client"
        assert settings.COMPONENT_MODE == "web_client"

    def test_deployment_defaults(self) -> None:
        with patch.dict(os.environ, {"STORAGE_SECRET": ""}):
            settings = DeploymentSettings()

        assert settings.WEB_CLIENT_PORT == 8082
        assert settings.STORAGE_SECRET == "change-me"

    def test_logging_defaults(self) -> None:
        settings = LoggingSettings()

        assert settings.LOG_TO_FILE is False
        assert settings.LOG_FORMAT == "colored"

    def test_realtime_defaults(self) -> None:
        """Окно «новых» заказов 30 с, сброс счётчика через 10 с."""
        settings = RealtimeSettings()

        assert settings.RECONNECT_DELAY == 3.0
        assert settings.RECENT_ORDER_TTL == 30.0
        assert settings.UNREAD_RESET_SECONDS == 10.0

    def test_delivery_defaults(self) -> None:
        settings = DeliverySettings()

        assert settings.DEFAULT_CUSTOMER_RATING == 5
        assert settings.CURRENCY_SYMBOL == "₱"

    def test_domain_defaults(self) -> None:
        settings = DomainSettings()

        assert settings.DEFAULT_LANGUAGE == "en"
        assert settings.SUPPORTED_LANGUAGES == ["en", "fil"]


class TestValidators:
    """Проверки валидаторов pydantic."""

    def test_api_base_url_strips_trailing_slash(self) -> None:
        assert ApiSettings(API_BASE_URL="http://api.test/").API_BASE_URL == "http://api.test"

    def test_api_token_from_env(self) -> None:
        with patch.dict(os.environ, {"API_AUTH_TOKEN": "env_token"}):
            assert ApiSettings().API_AUTH_TOKEN == "env_token"

    def test_explicit_api_token_wins(self) -> None:
        with patch.dict(os.environ, {"API_AUTH_TOKEN": "env_token"}):
            assert ApiSettings(API_AUTH_TOKEN="explicit").API_AUTH_TOKEN == "explicit"

    def test_google_maps_key_from_env(self) -> None:
        with patch.dict(os.environ, {"GOOGLE_MAPS_API_KEY": "maps_key"}):
            assert GoogleMapsSettings().GOOGLE_MAPS_API_KEY == "maps_key"

    def test_storage_secret_from_env(self) -> None:
        with patch.dict(os.environ, {"STORAGE_SECRET": "from_env"}):
            assert DeploymentSettings(STORAGE_SECRET="from_file").STORAGE_SECRET == "from_env"

    @pytest.mark.parametrize("field", ["RECONNECT_DELAY", "RECENT_ORDER_TTL", "UNREAD_RESET_SECONDS"])
    def test_realtime_rejects_non_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            RealtimeSettings(**{field: 0})

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating: int) -> None:
        with pytest.raises(ValidationError):
            DeliverySettings(DEFAULT_CUSTOMER_RATING=rating)


class TestSettings:
    """Тесты для главного класса Settings."""

    def test_from_config_json(self) -> None:
        """Проверяет создание настроек из config.json."""
        settings = Settings.from_config_json()

        assert settings.system.PROJECT_NAME == "bts_delivery_client"
        assert settings.realtime.RECENT_ORDER_TTL == 30.0
        assert settings.google_maps.GEOCODING_LANGUAGE == "en"

    def test_from_dict(self, mock_config: dict[str, Any]) -> None:
        """Плоский словарь раскладывается по секциям, комментарии игнорируются."""
        with patch.dict(os.environ):
            for key in ("API_BASE_URL", "WS_BASE_URL", "WEB_CLIENT_PORT", "COMPONENT_MODE"):
                os.environ.pop(key, None)
            settings = Settings.from_dict(mock_config)

        assert settings.system.PROJECT_NAME == "bts_delivery_test"
        assert settings.system.ENVIRONMENT == "test"
        assert settings.deployment.WEB_CLIENT_PORT == 9000
        assert settings.api.API_BASE_URL == "http://api.test"
        assert settings.api.API_TIMEOUT == 5.0
        assert settings.realtime.WS_BASE_URL == "ws://api.test"

    def test_env_overrides_config(self, mock_config: dict[str, Any]) -> None:
        """Адреса и порт из окружения важнее config.json."""
        env = {
            "API_BASE_URL": "https://prod.example/",
            "WS_BASE_URL": "wss://prod.example",
            "WEB_CLIENT_PORT": "8443",
        }
        with patch.dict(os.environ, env):
            settings = Settings.from_dict(mock_config)

        assert settings.api.API_BASE_URL == "https://prod.example"
        assert settings.realtime.WS_BASE_URL == "wss://prod.example"
        assert settings.deployment.WEB_CLIENT_PORT == 8443

    def test_filters_comment_keys(self, tmp_path: Path, mock_config: dict[str, Any]) -> None:
        """Проверяет фильтрацию комментариев в config.json."""
        mock_config["_comment_test"] = "This is a comment"
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(mock_config), encoding="utf-8")

        settings = Settings.from_config_json(config_file)

        assert settings.system.PROJECT_NAME == "bts_delivery_test"

    def test_get_settings_is_cached(self) -> None:
        from src.config.loader import get_settings

        assert get_settings() is get_settings()
