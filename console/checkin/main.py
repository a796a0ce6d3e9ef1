"""FastAPI entry-point for the check-in console."""
from __future__ import annotations

from typing import AsyncIterator, Optional

import httpx
import uvicorn
from fastapi import FastAPI, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from .auth import AuthSession
from .backend.checkin import CheckinClient
from .backend.http_client import TicketingHttpClient
from .config import Settings, get_settings
from .errors import AuthenticationError
from .logging_config import configure_logging
from .scan_controller import CameraSourceFactory, ScanController


class LoginRequest(BaseModel):
    email: str
    password: str


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    camera_source_factory: Optional[CameraSourceFactory] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    http_client = TicketingHttpClient(settings, transport=transport)
    auth = AuthSession(settings, http_client)
    controller = ScanController(
        checkin_client=CheckinClient(http_client, settings),
        settings=settings,
        camera_source_factory=camera_source_factory,
    )

    app = FastAPI(title="checkin-console", version="0.1.0")
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.auth = auth
    app.state.controller = controller

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await controller.close()
        await http_client.aclose()

    @app.get("/healthz")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok", "state": controller.state.value})

    @app.get("/scan")
    async def scan_snapshot() -> JSONResponse:
        return JSONResponse(controller.snapshot().as_dict())

    @app.post("/scan/camera")
    async def start_camera_scan() -> JSONResponse:
        snapshot = await controller.start_camera()
        return JSONResponse(snapshot.as_dict())

    @app.post("/scan/stop")
    async def stop_scan() -> JSONResponse:
        stopped = await controller.stop()
        return JSONResponse({"stopped": stopped, **controller.snapshot().as_dict()})

    @app.post("/scan/upload")
    async def upload_scan(file: UploadFile = File(...)) -> JSONResponse:
        data = await file.read()
        snapshot = await controller.submit_image(data, filename=file.filename)
        return JSONResponse(snapshot.as_dict())

    @app.get("/preview")
    async def preview_stream() -> StreamingResponse:
        boundary = "frame"

        async def frame_iterator() -> AsyncIterator[bytes]:
            async for frame in controller.preview_frames():
                header = (
                    f"--{boundary}\r\n"
                    f"Content-Type: image/jpeg\r\n"
                    f"Content-Length: {len(frame)}\r\n\r\n"
                ).encode("ascii")
                yield header + frame + b"\r\n"

        media_type = f"multipart/x-mixed-replace; boundary={boundary}"
        return StreamingResponse(frame_iterator(), media_type=media_type)

    @app.websocket("/ws/ui")
    async def ui_socket(ws: WebSocket) -> None:
        await ws.accept()
        queue = controller.register_ui()
        try:
            while True:
                event = await queue.get()
                await ws.send_json(event.as_dict())
        except WebSocketDisconnect:
            pass
        finally:
            controller.unregister_ui(queue)

    @app.post("/auth/login")
    async def login(body: LoginRequest) -> JSONResponse:
        try:
            user = await auth.login(body.email, body.password)
        except AuthenticationError as exc:
            raise HTTPException(status_code=401, detail=exc.message) from exc
        return JSONResponse(user.as_dict())

    @app.post("/auth/logout")
    async def logout() -> JSONResponse:
        auth.logout()
        return JSONResponse({"status": "ok"})

    @app.get("/auth/me")
    async def current_user() -> JSONResponse:
        if auth.user is None:
            raise HTTPException(status_code=401, detail="Not logged in")
        return JSONResponse(auth.user.as_dict())

    @app.get("/events")
    async def list_events() -> JSONResponse:
        try:
            events = await http_client.list_events()
        except httpx.HTTPStatusError as exc:
            raise HTTPException(status_code=502, detail=f"ticketing service returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail="ticketing service unreachable") from exc
        return JSONResponse(events)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "checkin.main:create_app",
        factory=True,
        host=settings.controller_host,
        port=settings.controller_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
