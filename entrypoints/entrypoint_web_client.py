#!/usr/bin/env python3
# entrypoint_web_client.py
"""
Точка входа для запуска Web Client компонента в Docker контейнере.
Интерфейс курьера и ленты заказов ресторана.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

from src.web_client.app import run_web_client
from src.common.logger import setup_logging
from src.config import settings

if __name__ == "__main__":
    """Запуск Web Client компонента."""

    instance_id = os.getenv("WEB_CLIENT_INSTANCE_ID", "0")
    print(f"🌐 Запуск Web Client instance #{instance_id}")

    setup_logging()
    try:
        # NiceGUI сам управляет циклом событий
        run_web_client(
            host=settings.deployment.WEB_CLIENT_HOST,
            port=settings.deployment.WEB_CLIENT_PORT,
        )
    except KeyboardInterrupt:
        pass
