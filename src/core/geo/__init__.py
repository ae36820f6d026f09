# src/core/geo/__init__.py
"""
Geo-сервис.
Геолокация курьера и расчёт расстояний.
"""

from src.core.geo.service import (
    LocationSource,
    LocationTracker,
    format_distance,
    haversine_km,
    rider_location_publisher,
)

__all__ = [
    "LocationSource",
    "LocationTracker",
    "format_distance",
    "haversine_km",
    "rider_location_publisher",
]
