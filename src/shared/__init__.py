# src/shared/__init__.py
"""
Общий код клиента.

Модули:
- models: DTO и Pydantic-модели обмена с backend API
"""

__all__: list[str] = []
