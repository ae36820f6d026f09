from __future__ import annotations

import json
import uuid
from typing import Dict, Optional, Tuple

from nicegui import ui

from src.config import settings
from src.common.logger import log_info

# Цвета маркеров по ролям точек маршрута
MARKER_COLORS = {
    "rider": "#2563eb",
    "restaurant": "#ea580c",
    "customer": "#16a34a",
}


class MapComponent:
    """
    Компонент карты Google Maps.

    Маркеры создаются один раз и далее только перемещаются,
    поэтому частые обновления геолокации не пересоздают их.
    """

    def __init__(self, center: Tuple[float, float] = (14.5995, 120.9842), zoom: int = 14) -> None:
        self.map_id = f"map_{uuid.uuid4().hex}"
        self.center = center
        self.zoom = zoom
        self.map_element: Optional[ui.element] = None
        self.markers: Dict[str, Tuple[float, float]] = {}

    @property
    def enabled(self) -> bool:
        return bool(settings.google_maps.GOOGLE_MAPS_API_KEY)

    def render(self) -> None:
        """Рендерит контейнер карты и инициализирует JS."""
        if not self.enabled:
            with ui.column().classes('w-full h-48 items-center justify-center bg-gray-200 rounded'):
                ui.icon('map', size='3rem', color='gray-400')
                ui.label("Google Maps API key not configured").classes('text-gray-500')
            return

        self.map_element = ui.element('div').props(f'id="{self.map_id}"').classes('w-full h-64 rounded')
        self._init_map_js()

    def _init_map_js(self) -> None:
        """Подключает Maps JS SDK тегом script один раз на страницу."""
        js_code = f"""
            window.markers_{self.map_id} = {{}};
            window.onMapReady_{self.map_id} = [];
            window.whenMapReady_{self.map_id} = (callback) => {{
                if (window.map_{self.map_id}) {{
                    callback(window.map_{self.map_id});
                }} else {{
                    window.onMapReady_{self.map_id}.push(callback);
                }}
            }};

            const init_{self.map_id} = () => {{
                const el = document.getElementById("{self.map_id}");
                if (!el) {{
                    console.error("Map element not found: {self.map_id}");
                    return;
                }}
                window.map_{self.map_id} = new google.maps.Map(el, {{
                    center: {{ lat: {self.center[0]}, lng: {self.center[1]} }},
                    zoom: {self.zoom},
                    disableDefaultUI: true,
                    clickableIcons: false,
                }});
                window.onMapReady_{self.map_id}.forEach(cb => cb(window.map_{self.map_id}));
                window.onMapReady_{self.map_id} = [];
            }};

            if (window.google && window.google.maps) {{
                init_{self.map_id}();
            }} else {{
                window.gmapsCallbacks = window.gmapsCallbacks || [];
                window.gmapsCallbacks.push(init_{self.map_id});
                if (!document.getElementById("gmaps-sdk")) {{
                    window.gmapsLoaded = () => window.gmapsCallbacks.forEach(cb => cb());
                    const script = document.createElement("script");
                    script.id = "gmaps-sdk";
                    script.async = true;
                    script.src = "https://maps.googleapis.com/maps/api/js?key={settings.google_maps.GOOGLE_MAPS_API_KEY}&callback=gmapsLoaded";
                    document.head.append(script);
                }}
            }}
        """
        ui.run_javascript(js_code)

    async def set_marker(self, name: str, lat: float, lng: float, title: str = "") -> None:
        """Создаёт маркер или перемещает существующий."""
        self.markers[name] = (lat, lng)
        if not self.enabled:
            return

        color = MARKER_COLORS.get(name, "#6b7280")
        js = f"""
        window.whenMapReady_{self.map_id}(map => {{
            const pos = {{ lat: {lat}, lng: {lng} }};
            const markers = window.markers_{self.map_id};
            if (markers[{json.dumps(name)}]) {{
                markers[{json.dumps(name)}].setPosition(pos);
            }} else {{
                markers[{json.dumps(name)}] = new google.maps.Marker({{
                    position: pos,
                    map: map,
                    title: {json.dumps(title)},
                    icon: {{
                        path: google.maps.SymbolPath.CIRCLE,
                        scale: 8,
                        fillColor: "{color}",
                        fillOpacity: 1,
                        strokeColor: "white",
                        strokeWeight: 2,
                    }},
                }});
            }}
        }});
        """
        ui.run_javascript(js)

    async def remove_marker(self, name: str) -> None:
        if self.markers.pop(name, None) is None or not self.enabled:
            return
        js = f"""
        window.whenMapReady_{self.map_id}(() => {{
            const markers = window.markers_{self.map_id};
            if (markers[{json.dumps(name)}]) {{
                markers[{json.dumps(name)}].setMap(null);
                delete markers[{json.dumps(name)}];
            }}
        }});
        """
        ui.run_javascript(js)

    async def fit_bounds(self) -> None:
        """Масштабирует карту, чтобы вместить все маркеры."""
        if not self.markers or not self.enabled:
            return

        await log_info(f"Карта {self.map_id}: масштабирование под {len(self.markers)} точек", type_msg="debug")
        points_js = ", ".join(f"{{ lat: {lat}, lng: {lng} }}" for lat, lng in self.markers.values())
        js = f"""
        window.whenMapReady_{self.map_id}(map => {{
            const bounds = new google.maps.LatLngBounds();
            [{points_js}].forEach(p => bounds.extend(p));
            map.fitBounds(bounds);
        }});
        """
        ui.run_javascript(js)
