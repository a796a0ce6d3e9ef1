"""Scan session orchestration: acquisition, normalization, check-in, outcome."""
from __future__ import annotations

import asyncio
from asyncio import QueueEmpty
import logging
from typing import AsyncIterator, Callable, List, Optional

from .acquisition.base import AcquisitionSource
from .acquisition.camera import BlankCapture, CameraStreamSource, opencv_capture_factory
from .acquisition.upload import ImageUploadSource
from .backend.checkin import CheckinClient
from .config import Settings, get_settings
from .errors import AcquisitionError, AcquisitionErrorKind
from .normalizer import normalize_ticket_id
from .state import CheckinResult, ControllerEvent, ScanSession, ScanSnapshot, ScanState

logger = logging.getLogger(__name__)

CameraSourceFactory = Callable[[], CameraStreamSource]
UploadSourceFactory = Callable[..., AcquisitionSource]


class ScanController:
    """Owns the single active scan session and the device it holds.

    The acquisition source is released on the transition out of Acquiring,
    whichever way that transition happens (decode, error, stop, teardown).
    """

    def __init__(
        self,
        *,
        checkin_client: CheckinClient,
        settings: Optional[Settings] = None,
        camera_source_factory: Optional[CameraSourceFactory] = None,
        upload_source_factory: UploadSourceFactory = ImageUploadSource,
    ) -> None:
        self.settings = settings or get_settings()
        self._checkin = checkin_client
        self._camera_source_factory = camera_source_factory or self._default_camera_source
        self._upload_source_factory = upload_source_factory

        self._lock = asyncio.Lock()
        self._session: Optional[ScanSession] = None
        self._source: Optional[AcquisitionSource] = None
        self._session_task: Optional[asyncio.Task[None]] = None
        self._ui_subscribers: List[asyncio.Queue[ControllerEvent]] = []

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    @property
    def state(self) -> ScanState:
        return self.snapshot().state

    def snapshot(self) -> ScanSnapshot:
        return ScanSnapshot.of(self._session)

    def register_ui(self) -> asyncio.Queue[ControllerEvent]:
        queue: asyncio.Queue[ControllerEvent] = asyncio.Queue(maxsize=8)
        queue.put_nowait(ControllerEvent(type="state", snapshot=self.snapshot()))
        self._ui_subscribers.append(queue)
        return queue

    def unregister_ui(self, queue: asyncio.Queue[ControllerEvent]) -> None:
        if queue in self._ui_subscribers:
            self._ui_subscribers.remove(queue)

    async def start_camera(self) -> ScanSnapshot:
        """Begin a camera scan; returns once the camera session is Acquiring."""

        source = self._camera_source_factory()
        await self._begin(source)
        return self.snapshot()

    async def submit_image(self, data: bytes, *, filename: Optional[str] = None) -> ScanSnapshot:
        """Scan an uploaded image and wait for the session to settle."""

        source = self._upload_source_factory(data, filename=filename)
        task = await self._begin(source)
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        return self.snapshot()

    async def stop(self) -> bool:
        """User cancel. Only an Acquiring session can be stopped; no outcome is recorded."""

        async with self._lock:
            session = self._session
            if session is None or session.state != ScanState.ACQUIRING:
                return False
            await self._cancel_acquisition()
            self._session = None
            await self._broadcast(ControllerEvent(type="state", snapshot=ScanSnapshot.idle(), data={"reason": "stopped"}))
            logger.info("Scan %s stopped by user", session.session_id)
            return True

    async def close(self) -> None:
        """Teardown: release the device and let an in-flight submission finish."""

        logger.info("Closing scan controller")
        async with self._lock:
            await self._force_terminal()
        for queue in list(self._ui_subscribers):
            self.unregister_ui(queue)

    async def preview_frames(self) -> AsyncIterator[bytes]:
        source = self._source
        if not isinstance(source, CameraStreamSource):
            return
        async for frame in source.preview_stream():
            yield frame

    def _default_camera_source(self) -> CameraStreamSource:
        settings = self.settings
        if settings.camera_enable_hardware:
            factory = opencv_capture_factory(
                settings.camera_index, settings.preview_frame_width, settings.preview_frame_height
            )
        else:
            logger.warning("Camera hardware disabled; camera scans will only show blank frames")

            def factory() -> BlankCapture:
                return BlankCapture(settings.preview_frame_width, settings.preview_frame_height)

        return CameraStreamSource(factory, fps=settings.camera_fps)

    async def _begin(self, source: AcquisitionSource) -> asyncio.Task[None]:
        async with self._lock:
            await self._force_terminal()
            session = ScanSession(mode=source.mode)
            session.advance(ScanState.ACQUIRING)
            self._session = session
            self._source = source
            logger.info("Scan %s started (%s)", session.session_id, session.mode.value)
            await self._publish(session)
            self._session_task = asyncio.create_task(self._run_session(session, source), name="scan-session")
            return self._session_task

    async def _force_terminal(self) -> None:
        session = self._session
        if session is None or session.is_terminal:
            return
        if session.state == ScanState.ACQUIRING:
            await self._cancel_acquisition()
        elif self._session_task is not None:
            # A submission cannot be aborted once issued; wait for it to settle.
            logger.info("Waiting for in-flight check-in of scan %s", session.session_id)
            await asyncio.shield(self._session_task)

    async def _cancel_acquisition(self) -> None:
        source, task = self._source, self._session_task
        if source is not None:
            source.cancel()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._source = None
        session = self._session
        if session is not None and session.state == ScanState.ACQUIRING and not session.cancelled:
            session.cancel()

    async def _run_session(self, session: ScanSession, source: AcquisitionSource) -> None:
        try:
            try:
                raw_payload = await source.acquire()
            finally:
                source.cancel()
                if self._source is source:
                    self._source = None

            ticket_id = normalize_ticket_id(raw_payload)
            if ticket_id != raw_payload:
                logger.info("Normalized payload %r to ticket id %r", raw_payload, ticket_id)
            session.decoded(raw_payload, ticket_id)
            await self._publish(session)

            session.advance(ScanState.SUBMITTING)
            await self._publish(session)
            result = await self._checkin.submit(ticket_id)
            await self._settle(session, result)
        except AcquisitionError as exc:
            logger.info("Scan %s acquisition failed: %s", session.session_id, exc.kind.value)
            await self._settle(session, CheckinResult(success=False, message=self._acquisition_message(exc)))
        except asyncio.CancelledError:
            if session.state == ScanState.ACQUIRING and not session.cancelled:
                session.cancel()
            logger.info("Scan %s cancelled", session.session_id)
            raise
        except Exception:
            logger.exception("Scan %s failed", session.session_id)
            if not session.is_terminal:
                await self._settle(session, CheckinResult(success=False, message=self.settings.failure_message))

    async def _settle(self, session: ScanSession, result: CheckinResult) -> None:
        session.settle(result)
        logger.info(
            "Scan %s settled success=%s message=%r", session.session_id, result.success, result.message
        )
        await self._publish(session)

    def _acquisition_message(self, exc: AcquisitionError) -> str:
        if exc.kind == AcquisitionErrorKind.DEVICE_UNAVAILABLE:
            return self.settings.device_unavailable_message
        return self.settings.not_found_message

    async def _publish(self, session: ScanSession) -> None:
        if session is not self._session:
            logger.debug("Scan %s is no longer current; not publishing %s", session.session_id, session.state.value)
            return
        await self._broadcast(ControllerEvent(type="state", snapshot=ScanSnapshot.of(session)))

    async def _broadcast(self, event: ControllerEvent) -> None:
        logger.debug("Broadcasting event: %s", event)
        for queue in list(self._ui_subscribers):
            if queue.full():
                try:
                    queue.get_nowait()
                except QueueEmpty:
                    pass
            queue.put_nowait(event)


__all__ = ["ScanController"]
