# src/core/delivery/proof.py
"""
Фото-подтверждение доставки.

Съёмка камерой или выбор файла, предпросмотр, загрузка на backend.
Для бесконтактной доставки фото обязательно перед завершением.
"""

from __future__ import annotations

import base64
import inspect
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from src.common.logger import log_error, log_info
from src.common.constants import TypeMsg
from src.core.notifications.service import NotificationService
from src.infra.api_clients import ApiError
from src.shared.models.enums import DeliveryType, requires_photo_proof


@dataclass(frozen=True)
class ProofPhoto:
    """Снимок, ожидающий загрузки."""
    content: bytes
    filename: str
    content_type: str = "image/jpeg"

    @property
    def preview_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class CameraSource(Protocol):
    """Камера устройства (задняя камера телефона)."""

    async def start(self) -> None: ...

    async def capture(self) -> bytes: ...

    async def stop(self) -> None: ...


class ProofUploader(Protocol):
    async def upload_delivery_proof(
        self, order_id: str, content: bytes, filename: str, content_type: str = ...
    ) -> str: ...


PhotoCallback = Callable[[str], Union[Awaitable[None], None]]


class DeliveryProofCapture:
    """
    Сценарий съёмки фото-подтверждения для одного заказа.

    Состояния: камера выключена -> камера активна -> снимок готов ->
    загружено. Ошибка загрузки оставляет снимок для повторной попытки.
    """

    def __init__(
        self,
        order_id: str,
        delivery_type: DeliveryType | str,
        uploader: ProofUploader,
        notifications: NotificationService,
        on_photo_uploaded: PhotoCallback,
        is_required: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.order_id = order_id
        self.delivery_type = delivery_type
        self.is_required = is_required

        self._uploader = uploader
        self._notifications = notifications
        self._on_photo_uploaded = on_photo_uploaded
        self._clock = clock

        self._camera: Optional[CameraSource] = None
        self.captured: Optional[ProofPhoto] = None
        self.uploaded_url: Optional[str] = None
        self.is_uploading = False
        self.skipped = False

    @property
    def photo_required(self) -> bool:
        return self.is_required or requires_photo_proof(self.delivery_type)

    @property
    def is_camera_active(self) -> bool:
        return self._camera is not None

    @property
    def can_complete(self) -> bool:
        return not self.photo_required or bool(self.uploaded_url)

    # =========================================================================
    # КАМЕРА
    # =========================================================================

    async def start_camera(self, camera: CameraSource) -> bool:
        """Включает камеру. При отказе доступа предлагает загрузку файла."""
        try:
            await camera.start()
        except (PermissionError, OSError) as e:
            self._notifications.error("CAMERA_DENIED_TITLE", "CAMERA_DENIED_BODY")
            await log_info(f"Камера недоступна для заказа {self.order_id}: {e}", type_msg=TypeMsg.WARNING, logger_name="proof")
            return False

        self._camera = camera
        return True

    async def capture_photo(self) -> Optional[ProofPhoto]:
        """Снимает кадр и выключает камеру."""
        if self._camera is None:
            return None

        try:
            content = await self._camera.capture()
        finally:
            await self.stop_camera()

        millis = int(self._clock() * 1000)
        self.captured = ProofPhoto(
            content=content,
            filename=f"delivery-proof-{self.order_id}-{millis}.jpg",
            content_type="image/jpeg",
        )
        return self.captured

    async def stop_camera(self) -> None:
        camera, self._camera = self._camera, None
        if camera is not None:
            await camera.stop()

    def select_file(
        self,
        source: Union[str, Path, bytes],
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ProofPhoto:
        """
        Выбор готового файла вместо камеры.

        Raises:
            ValueError: Файл не является изображением
        """
        if isinstance(source, (str, Path)):
            path = Path(source)
            content = path.read_bytes()
            filename = filename or path.name
        else:
            content = source

        filename = filename or f"delivery-proof-{self.order_id}.jpg"
        content_type = content_type or mimetypes.guess_type(filename)[0] or ""
        if not content_type.startswith("image/"):
            raise ValueError(f"Файл {filename} не является изображением")

        self.captured = ProofPhoto(content=content, filename=filename, content_type=content_type)
        return self.captured

    # =========================================================================
    # ЗАГРУЗКА
    # =========================================================================

    async def confirm_upload(self) -> Optional[str]:
        """Загружает снимок. Возвращает URL или None."""
        photo = self.captured
        if photo is None or self.is_uploading:
            return None

        self.is_uploading = True
        try:
            url = await self._uploader.upload_delivery_proof(
                self.order_id, photo.content, photo.filename, photo.content_type
            )
        except ApiError as e:
            self._notifications.error("PROOF_UPLOAD_FAILED_TITLE", "PROOF_UPLOAD_FAILED_BODY")
            await log_error(f"Ошибка загрузки фото заказа {self.order_id}: {e}", logger_name="proof")
            return None
        finally:
            self.is_uploading = False

        self.uploaded_url = url
        self._notifications.notify("PHOTO_UPLOADED_TITLE", "PROOF_UPLOADED_BODY")

        result: Any = self._on_photo_uploaded(url)
        if inspect.isawaitable(result):
            await result

        self.captured = None
        return url

    async def reset(self) -> None:
        """Переснять: сбрасывает снимок и камеру."""
        self.captured = None
        await self.stop_camera()

    def skip(self) -> bool:
        """Пропуск фото (только если оно не обязательно)."""
        if self.photo_required:
            return False
        self.skipped = True
        return True
