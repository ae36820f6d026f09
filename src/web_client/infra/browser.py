from __future__ import annotations

import base64
from typing import Optional

from nicegui import ui

from src.shared.models.location_dto import LocationDTO

_GEOLOCATION_JS = """
return await new Promise((resolve) => {
    if (!navigator.geolocation) {
        resolve({error: "unsupported"});
        return;
    }
    navigator.geolocation.getCurrentPosition(
        (pos) => resolve({
            lat: pos.coords.latitude,
            lng: pos.coords.longitude,
            accuracy: pos.coords.accuracy,
            heading: pos.coords.heading,
            speed: pos.coords.speed,
        }),
        (err) => resolve({error: err.code === 1 ? "denied" : err.message}),
        {enableHighAccuracy: true, timeout: 10000, maximumAge: 5000},
    );
});
"""


class BrowserLocationSource:
    """Геолокация через navigator.geolocation текущего клиента."""

    async def get_location(self) -> Optional[LocationDTO]:
        result = await ui.run_javascript(_GEOLOCATION_JS, timeout=15.0)
        if not result:
            return None
        error = result.get("error")
        if error == "denied":
            raise PermissionError("Geolocation permission denied")
        if error:
            raise OSError(error)
        return LocationDTO.model_validate(result)


class BrowserCamera:
    """Задняя камера телефона: getUserMedia + снимок через canvas."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id

    async def start(self) -> None:
        result = await ui.run_javascript(f"""
        try {{
            const stream = await navigator.mediaDevices.getUserMedia({{
                video: {{ facingMode: "environment", width: {{ ideal: 1920 }}, height: {{ ideal: 1080 }} }}
            }});
            const video = document.getElementById("{self.video_id}");
            video.srcObject = stream;
            await video.play();
            return {{ok: true}};
        }} catch (e) {{
            return {{error: e.name === "NotAllowedError" ? "denied" : e.message}};
        }}
        """, timeout=20.0)
        error = (result or {}).get("error")
        if error == "denied":
            raise PermissionError("Camera permission denied")
        if error:
            raise OSError(error)

    async def capture(self) -> bytes:
        data_url = await ui.run_javascript(f"""
        const video = document.getElementById("{self.video_id}");
        const canvas = document.createElement("canvas");
        canvas.width = video.videoWidth;
        canvas.height = video.videoHeight;
        canvas.getContext("2d").drawImage(video, 0, 0);
        return canvas.toDataURL("image/jpeg", 0.8);
        """, timeout=10.0)
        return base64.b64decode(data_url.split(",", 1)[1])

    async def stop(self) -> None:
        ui.run_javascript(f"""
        const video = document.getElementById("{self.video_id}");
        if (video && video.srcObject) {{
            video.srcObject.getTracks().forEach(t => t.stop());
            video.srcObject = null;
        }}
        """)
