# src/core/__init__.py
"""
Доменный слой (Core Domain).
Логика клиента доставки, независимая от UI и транспорта.
"""
