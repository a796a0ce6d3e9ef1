"""Live camera acquisition: first decoded frame wins."""
from __future__ import annotations

import asyncio
from asyncio import QueueEmpty
import logging
from typing import Any, AsyncIterator, Callable, Optional, Tuple

import cv2
import numpy as np

from ..errors import AcquisitionError, AcquisitionErrorKind
from ..state import ScanMode
from .decoder import decode_frame, encode_jpeg
from .handle import AcquisitionHandle, Capture

logger = logging.getLogger(__name__)

CaptureFactory = Callable[[], Capture]
FrameDecoder = Callable[[Any], Optional[str]]

MAX_CONSECUTIVE_READ_FAILURES = 30


class BlankCapture:
    """Stand-in device used when camera hardware is disabled; never yields a code."""

    def __init__(self, width: int = 640, height: int = 480) -> None:
        self._frame = np.zeros((height, width, 3), dtype=np.uint8)

    def read(self) -> Tuple[bool, Any]:
        return True, self._frame

    def release(self) -> None:
        pass


def opencv_capture_factory(index: int, width: int, height: int) -> CaptureFactory:
    def factory() -> Capture:
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise AcquisitionError(AcquisitionErrorKind.DEVICE_UNAVAILABLE, f"camera {index} could not be opened")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        return capture

    return factory


class CameraStreamSource:
    """Reads frames from one camera until a QR code decodes or the scan is cancelled."""

    mode = ScanMode.CAMERA_STREAM

    def __init__(
        self,
        capture_factory: CaptureFactory,
        *,
        decoder: FrameDecoder = decode_frame,
        fps: int = 15,
    ) -> None:
        self._capture_factory = capture_factory
        self._decoder = decoder
        self._frame_interval = 1 / fps if fps > 0 else 0.0
        self._handle: Optional[AcquisitionHandle] = None
        self._stop_event = asyncio.Event()
        self._preview_subscribers: list[asyncio.Queue[Optional[bytes]]] = []

    @property
    def handle(self) -> Optional[AcquisitionHandle]:
        return self._handle

    async def acquire(self) -> str:
        if self._handle is not None:
            raise RuntimeError("camera source already acquiring")
        loop = asyncio.get_running_loop()
        opening = loop.run_in_executor(None, self._capture_factory)
        try:
            capture = await asyncio.shield(opening)
        except asyncio.CancelledError:
            # The device may still be opening in the executor; close it before giving up.
            (late,) = await asyncio.gather(opening, return_exceptions=True)
            if not isinstance(late, BaseException):
                AcquisitionHandle(late).release()
            raise
        except AcquisitionError:
            raise
        except Exception as exc:
            logger.exception("Camera could not be opened")
            raise AcquisitionError(AcquisitionErrorKind.DEVICE_UNAVAILABLE, str(exc)) from exc
        self._handle = AcquisitionHandle(capture)
        logger.info("Camera scan started (handle %s)", self._handle.handle_id)
        try:
            return await self._frame_loop(self._handle)
        finally:
            self._release()

    def cancel(self) -> None:
        self._stop_event.set()
        self._release()

    async def preview_stream(self) -> AsyncIterator[bytes]:
        queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=2)
        self._preview_subscribers.append(queue)
        try:
            while True:
                frame = await queue.get()
                if frame is None:
                    return
                yield frame
        finally:
            self._preview_subscribers.remove(queue)

    async def _frame_loop(self, handle: AcquisitionHandle) -> str:
        loop = asyncio.get_running_loop()
        failures = 0
        while not self._stop_event.is_set():
            ok, frame = await loop.run_in_executor(None, handle.read)
            if self._stop_event.is_set():
                break
            if not ok:
                failures += 1
                if failures >= MAX_CONSECUTIVE_READ_FAILURES:
                    raise AcquisitionError(AcquisitionErrorKind.DEVICE_UNAVAILABLE, "camera stopped delivering frames")
                await asyncio.sleep(self._frame_interval)
                continue
            failures = 0
            text = await loop.run_in_executor(None, self._decoder, frame)
            if text:
                logger.info("QR code decoded from camera frame")
                return text
            if self._preview_subscribers:
                self._broadcast_frame(encode_jpeg(frame))
            await asyncio.sleep(self._frame_interval)
        raise asyncio.CancelledError()

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.release()
        self._broadcast_frame(None)

    def _broadcast_frame(self, frame: Optional[bytes]) -> None:
        for queue in list(self._preview_subscribers):
            if queue.full():
                try:
                    queue.get_nowait()
                except QueueEmpty:
                    pass
            queue.put_nowait(frame)


__all__ = ["BlankCapture", "CameraStreamSource", "opencv_capture_factory"]
