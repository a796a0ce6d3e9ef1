"""OpenCV QR decoding for single frames and uploaded images."""
from __future__ import annotations

import logging
from typing import Any, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_detector = cv2.QRCodeDetector()


def decode_frame(image: Any) -> Optional[str]:
    """Return the QR text found in ``image`` or ``None``. Misses are not errors."""

    if image is None:
        return None
    try:
        data, points, _ = _detector.detectAndDecode(image)
    except cv2.error:
        logger.debug("QR detector rejected frame", exc_info=True)
        return None
    if points is None or not data:
        return None
    return data


def decode_image_bytes(data: bytes) -> Optional[str]:
    """Decode an uploaded image file (PNG, JPEG, ...) held in memory."""

    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        logger.info("Uploaded file is not a readable image (%d bytes)", len(data))
        return None
    return decode_frame(image)


def encode_jpeg(image: Any, quality: int = 80) -> Optional[bytes]:
    ok, encoded = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        return None
    return encoded.tobytes()


__all__ = ["decode_frame", "decode_image_bytes", "encode_jpeg"]
