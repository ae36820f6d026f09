# src/web_client/components/header.py
"""
Компонент шапки для клиентского интерфейса.
"""

from __future__ import annotations

from nicegui import ui


def create_client_header(title: str) -> None:
    """Создаёт шапку страницы курьера или ресторана."""
    with ui.header().classes("items-center justify-between bg-orange-600 text-white"):
        with ui.row().classes("items-center gap-4"):
            ui.label(f"🛵 {title}").classes("text-xl font-bold")

        with ui.row().classes("items-center gap-2"):
            ui.button("Rider", on_click=lambda: ui.navigate.to("/rider")).props("flat color=white")
            ui.button("Orders", on_click=lambda: ui.navigate.to("/vendor/orders")).props("flat color=white")
