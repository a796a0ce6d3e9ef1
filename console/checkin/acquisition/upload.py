"""Single-shot acquisition from an uploaded image."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..errors import AcquisitionError, AcquisitionErrorKind
from ..state import ScanMode
from .decoder import decode_image_bytes

logger = logging.getLogger(__name__)

ImageDecoder = Callable[[bytes], Optional[str]]


class ImageUploadSource:
    mode = ScanMode.IMAGE_UPLOAD

    def __init__(self, data: bytes, *, filename: Optional[str] = None, decoder: ImageDecoder = decode_image_bytes) -> None:
        self._data = data
        self._filename = filename
        self._decoder = decoder

    async def acquire(self) -> str:
        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, self._decoder, self._data)
        if not text:
            logger.info("No QR code found in uploaded image %s", self._filename or "<unnamed>")
            raise AcquisitionError(AcquisitionErrorKind.NOT_FOUND, "no QR code in image")
        return text

    def cancel(self) -> None:
        # Nothing to release; the decode attempt is a single executor call.
        pass


__all__ = ["ImageUploadSource"]
